import re
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from conftest import make_user, set_balance
from vaultbank.database import Base
from vaultbank.exceptions import (
    AccountNotFound,
    InsufficientFunds,
    InvalidStatusTransition,
    PersistenceFailure,
    ValidationError,
)
from vaultbank.models.account import Account
from vaultbank.models.transaction import Transaction
from vaultbank.schemas.metadata import OtherMetadata, TransferMetadata
from vaultbank.services import identifiers
from vaultbank.services.accounts import create_default_accounts, get_checking_account
from vaultbank.services.balances import signed_effect
from vaultbank.services.transactions import (
    Recipient,
    calculate_fee,
    create_deposit,
    create_transfer,
    list_transactions,
    set_transaction_status,
)

RECIPIENT = Recipient(
    name="John Smith",
    account_number="123456789012",
    email="john@example.com",
    bank_name="First Bank",
    account_type="checking",
    routing_number="021000021",
    purpose="Rent",
)


def _funded_user(session, balance="1000.00", username="tester01"):
    user = make_user(session, username)
    create_default_accounts(session, user.id)
    session.commit()
    checking = get_checking_account(session, user.id)
    set_balance(session, checking, balance)
    return user, checking


def _checking_balance(session, user_id) -> Decimal:
    session.expire_all()
    return get_checking_account(session, user_id).balance


def test_signed_effect_signs():
    assert signed_effect("debit", Decimal("10.00")) == Decimal("-10.00")
    assert signed_effect("credit", Decimal("10.00")) == Decimal("10.00")
    assert signed_effect("debit", Decimal("10.00"), "reverse") == Decimal("10.00")
    assert signed_effect("credit", Decimal("10.00"), "reverse") == Decimal("-10.00")
    with pytest.raises(ValueError):
        signed_effect("refund", Decimal("1.00"))


def test_fee_defaults_to_configured_rate():
    assert calculate_fee(Decimal("100.00")) == Decimal("0.60")
    assert calculate_fee(Decimal("33.33")) == Decimal("0.20")
    assert calculate_fee(Decimal("100.00"), Decimal("0")) == Decimal("0.00")
    assert calculate_fee(Decimal("100.00"), Decimal("2.5")) == Decimal("2.50")


def test_transfer_creates_pending_debit_without_moving_balance(session):
    user, checking = _funded_user(session)

    txn = create_transfer(session, user.id, RECIPIENT, Decimal("100.00"))

    assert txn.status == "pending"
    assert txn.type == "debit"
    assert txn.amount == Decimal("100.60")
    assert txn.account_id == checking.id
    assert txn.description == "Transfer to John Smith - First Bank"
    assert _checking_balance(session, user.id) == Decimal("1000.00")

    details = txn.details
    assert isinstance(details, TransferMetadata)
    assert details.account_last4 == "9012"
    assert details.transfer_fee == Decimal("0.60")
    assert details.total_amount == Decimal("100.60")
    assert "123456789012" not in txn.metadata_json


def test_transfer_rejected_when_balance_below_total(session):
    user, _ = _funded_user(session, balance="100.50")

    with pytest.raises(InsufficientFunds):
        create_transfer(session, user.id, RECIPIENT, Decimal("100.00"))

    assert session.query(Transaction).count() == 0


def test_transfer_rejected_when_it_would_break_minimum_balance(session):
    user, _ = _funded_user(session, balance="110.00")

    with pytest.raises(InsufficientFunds):
        create_transfer(session, user.id, RECIPIENT, Decimal("100.00"), fee=Decimal("0"))

    assert session.query(Transaction).count() == 0


def test_transfer_validates_amounts(session):
    user, _ = _funded_user(session)

    with pytest.raises(ValidationError):
        create_transfer(session, user.id, RECIPIENT, Decimal("0"))
    with pytest.raises(ValidationError):
        create_transfer(session, user.id, RECIPIENT, Decimal("10"), fee=Decimal("-1"))


def test_transfer_without_checking_account(session):
    user = make_user(session)
    session.commit()

    with pytest.raises(AccountNotFound):
        create_transfer(session, user.id, RECIPIENT, Decimal("10.00"))


def test_complete_then_fail_restores_balance_for_debit(session):
    user, _ = _funded_user(session)
    txn = create_transfer(session, user.id, RECIPIENT, Decimal("100.00"))

    set_transaction_status(session, txn, "completed")
    assert txn.status == "completed"
    assert _checking_balance(session, user.id) == Decimal("899.40")

    set_transaction_status(session, txn, "failed")
    assert txn.status == "failed"
    assert _checking_balance(session, user.id) == Decimal("1000.00")


def test_complete_then_fail_restores_balance_for_credit(session):
    user, _ = _funded_user(session, balance="50.00")
    txn = create_deposit(session, user.id, Decimal("250.25"))
    assert isinstance(txn.details, OtherMetadata)

    set_transaction_status(session, txn, "completed")
    assert _checking_balance(session, user.id) == Decimal("300.25")

    set_transaction_status(session, txn, "failed")
    assert _checking_balance(session, user.id) == Decimal("50.00")


def test_pending_to_failed_has_no_balance_effect(session):
    user, _ = _funded_user(session)
    txn = create_transfer(session, user.id, RECIPIENT, Decimal("100.00"))

    set_transaction_status(session, txn, "failed")

    assert txn.status == "failed"
    assert _checking_balance(session, user.id) == Decimal("1000.00")


def test_completion_stamps_last_transaction_time(session):
    user, checking = _funded_user(session)
    assert checking.last_transaction_at is None
    txn = create_transfer(session, user.id, RECIPIENT, Decimal("10.00"))

    set_transaction_status(session, txn, "completed")

    session.expire_all()
    assert get_checking_account(session, user.id).last_transaction_at is not None


@pytest.mark.parametrize(
    "path",
    [
        ("pending",),
        ("completed", "completed"),
        ("completed", "pending"),
        ("failed", "completed"),
        ("failed", "failed"),
        ("failed", "pending"),
    ],
)
def test_invalid_transitions_are_rejected_without_state_change(session, path):
    user, _ = _funded_user(session)
    txn = create_transfer(session, user.id, RECIPIENT, Decimal("100.00"))
    *setup, rejected = path
    for step in setup:
        set_transaction_status(session, txn, step)
    status_before = txn.status
    balance_before = _checking_balance(session, user.id)

    with pytest.raises(InvalidStatusTransition):
        set_transaction_status(session, txn, rejected)

    session.expire_all()
    assert session.get(Transaction, txn.id).status == status_before
    assert _checking_balance(session, user.id) == balance_before


def test_missing_checking_account_keeps_transaction_pending(session):
    user, checking = _funded_user(session)
    txn = create_transfer(session, user.id, RECIPIENT, Decimal("100.00"))
    session.delete(checking)
    session.commit()

    with pytest.raises(AccountNotFound):
        set_transaction_status(session, txn, "completed")

    session.expire_all()
    assert session.get(Transaction, txn.id).status == "pending"


def test_stale_concurrent_completion_is_not_applied_twice(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'bank.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    setup = factory()
    user, _ = _funded_user(setup)
    txn_id = create_transfer(setup, user.id, RECIPIENT, Decimal("100.00")).id
    user_id = user.id
    setup.close()

    first, second = factory(), factory()
    try:
        first_view = first.get(Transaction, txn_id)
        second_view = second.get(Transaction, txn_id)
        assert first_view.status == second_view.status == "pending"

        set_transaction_status(first, first_view, "completed")
        with pytest.raises(InvalidStatusTransition):
            set_transaction_status(second, second_view, "completed")
    finally:
        first.close()
        second.close()

    check = factory()
    try:
        assert check.get(Transaction, txn_id).status == "completed"
        assert get_checking_account(check, user_id).balance == Decimal("899.40")
    finally:
        check.close()
        engine.dispose()


def test_reference_format():
    pattern = re.compile(r"^TXN-\d{6}-[A-Z0-9]{4}$")
    for _ in range(100):
        assert pattern.match(identifiers.random_reference())


def test_references_are_unique_across_many_transactions(session):
    user, checking = _funded_user(session)
    pattern = re.compile(r"^TXN-\d{6}-[A-Z0-9]{4}$")

    references = set()
    for _ in range(1100):
        reference = identifiers.generate_reference(session)
        assert pattern.match(reference)
        references.add(reference)
        session.add(Transaction(
            user_id=user.id,
            account_id=checking.id,
            type="credit",
            amount=Decimal("1.00"),
            description="Seed",
            reference=reference,
        ))
        session.flush()

    assert len(references) == 1100
    session.rollback()


def test_reference_generation_gives_up_on_persistent_collision(session, monkeypatch):
    user, _ = _funded_user(session)
    txn = create_transfer(session, user.id, RECIPIENT, Decimal("10.00"))
    monkeypatch.setattr(identifiers, "random_reference", lambda: txn.reference)

    with pytest.raises(PersistenceFailure):
        create_transfer(session, user.id, RECIPIENT, Decimal("10.00"))
    assert session.query(Transaction).count() == 1


def test_list_transactions_filters_and_pages(session):
    user, _ = _funded_user(session, balance="5000.00")
    other, _ = _funded_user(session, username="other001")
    created = [create_transfer(session, user.id, RECIPIENT, Decimal("10.00")) for _ in range(3)]
    create_transfer(session, other.id, RECIPIENT, Decimal("10.00"))
    set_transaction_status(session, created[0], "completed")

    page, total = list_transactions(session, user_id=user.id, limit=2)
    assert total == 3
    assert len(page) == 2

    completed, total_completed = list_transactions(session, user_id=user.id, status="completed")
    assert total_completed == 1
    assert completed[0].id == created[0].id

    _, everyone = list_transactions(session)
    assert everyone == 4


def test_end_to_end_transfer_lifecycle(session):
    user = make_user(session, "endtoend1")
    accounts = create_default_accounts(session, user.id)
    session.commit()
    assert len(accounts) == 3
    checking = accounts[0]
    set_balance(session, checking, "1000.00")

    txn = create_transfer(session, user.id, RECIPIENT, Decimal("100.00"))
    assert txn.status == "pending"
    assert txn.amount == Decimal("100.60")
    assert _checking_balance(session, user.id) == Decimal("1000.00")

    set_transaction_status(session, txn, "completed")
    assert _checking_balance(session, user.id) == Decimal("899.40")

    set_transaction_status(session, txn, "failed")
    assert _checking_balance(session, user.id) == Decimal("1000.00")
    assert session.query(Account).filter(Account.user_id == user.id).count() == 3
