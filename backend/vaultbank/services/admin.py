"""Admin accounts and dashboard queries."""
import logging

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from vaultbank.clock import utcnow_iso
from vaultbank.config import get_settings
from vaultbank.database import unit_of_work
from vaultbank.exceptions import AuthenticationError
from vaultbank.models.admin import Admin
from vaultbank.models.user import User
from vaultbank.security import get_password_hash, verify_password
from vaultbank.services.transactions import get_transaction_stats

logger = logging.getLogger(__name__)


def create_admin(
    db: Session,
    username: str,
    email: str,
    password: str,
    name: str = "Admin User",
    role: str = "admin",
) -> Admin:
    with unit_of_work(db):
        admin = Admin(
            username=username,
            email=email,
            password_hash=get_password_hash(password),
            name=name,
            role=role,
        )
        db.add(admin)
    logger.info(f"Created admin {username}", extra={"action": "admin.create"})
    return admin


def bootstrap_admin(db: Session) -> Admin | None:
    """Create the configured super admin if credentials are set and it is missing."""
    settings = get_settings()
    if not settings.admin_username or not settings.admin_password:
        return None

    existing = db.query(Admin).filter(Admin.username == settings.admin_username).first()
    if existing:
        return existing

    return create_admin(
        db,
        username=settings.admin_username,
        email=settings.admin_email,
        password=settings.admin_password,
        name="System Administrator",
        role="super_admin",
    )


def authenticate_admin(db: Session, username: str, password: str) -> Admin:
    admin = db.query(Admin).filter(Admin.username == username).first()
    if not admin or not admin.is_active or not verify_password(password, admin.password_hash):
        logger.warning(f"Failed admin login for {username}", extra={"action": "admin.login_failed"})
        raise AuthenticationError()

    with unit_of_work(db):
        admin.last_login = utcnow_iso()
    return admin


def get_dashboard_stats(db: Session) -> dict:
    stats = get_transaction_stats(db)
    stats["total_users"] = db.query(func.count(User.id)).scalar() or 0
    return stats


def list_users(
    db: Session,
    search: str | None = None,
    is_active: bool | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[User], int]:
    """Newest-first page of users, optionally filtered."""
    query = db.query(User)
    if is_active is not None:
        query = query.filter(User.is_active.is_(is_active))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            User.username.ilike(pattern),
            User.email.ilike(pattern),
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
        ))

    total = query.count()
    users = query.order_by(User.created_at.desc()).offset(offset).limit(limit).all()
    return users, total
