"""Database connection and session management."""
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from vaultbank.config import get_settings
from vaultbank.exceptions import DuplicateKey, PersistenceFailure

settings = get_settings()

# SQLite requires check_same_thread=False for FastAPI
connect_args = {"check_same_thread": False} if "sqlite" in settings.database_url else {}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Context manager for database session (for use outside of FastAPI)."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Generator[Session, None, None]:
    """Commit everything done inside the block, or nothing.

    Storage errors are translated into domain errors after rolling back.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateKey(_constraint_name(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceFailure("Storage error") from exc
    except Exception:
        db.rollback()
        raise


def _constraint_name(exc: IntegrityError) -> str:
    message = str(exc.orig)
    # sqlite: "UNIQUE constraint failed: users.email"
    if "constraint failed:" in message:
        column = message.split("constraint failed:", 1)[1].strip().split(",")[0]
        return f"{column.split('.')[-1]} already exists"
    return "Record already exists"
