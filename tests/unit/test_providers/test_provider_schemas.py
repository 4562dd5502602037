from datetime import date

import pytest
from pydantic import ValidationError

from moneyapp.schemas.provider import RawAccount, RawTransaction, to_minor_units


@pytest.mark.parametrize(
    ("value", "expected"),
    [(12.34, 1234), (12.345, 1235), (-12.345, -1235), (0, 0), ("45.00", 4500), (None, None)],
)
def test_to_minor_units(value, expected) -> None:
    assert to_minor_units(value) == expected


def test_raw_transaction_from_provider() -> None:
    txn = RawTransaction.from_provider(
        {
            "transaction_id": "tx_1",
            "account_id": "acc_1",
            "name": "Payroll ACME",
            "amount": -1500.0,
            "date": "2024-01-15",
            "authorized_date": None,
            "category": ["Transfer", "Payroll"],
            "pending": True,
        }
    )
    assert txn.amount == -150000
    assert txn.date == date(2024, 1, 15)
    assert txn.category == ["Transfer", "Payroll"]
    assert txn.detailed_category == "Payroll"
    assert txn.pending is True
    assert txn.city is None


def test_raw_transaction_without_category() -> None:
    txn = RawTransaction.from_provider(
        {
            "transaction_id": "tx_1",
            "account_id": "acc_1",
            "name": "Something",
            "amount": 1.0,
            "date": "2024-01-15",
            "category": None,
        }
    )
    assert txn.category == []
    assert txn.detailed_category is None


def test_raw_transaction_requires_ids_and_amount() -> None:
    with pytest.raises(ValidationError):
        RawTransaction.from_provider({"account_id": "acc_1", "amount": 1.0, "date": "2024-01-15"})
    with pytest.raises(ValidationError):
        RawTransaction.from_provider({"transaction_id": "tx", "account_id": "acc_1", "date": "2024-01-15"})


def test_raw_account_falls_back_to_official_name() -> None:
    account = RawAccount.from_provider(
        {"account_id": "acc_1", "official_name": "Gold Card", "balances": {"current": "2.50"}}
    )
    assert account.name == "Gold Card"
    assert account.current_balance == 250
    assert account.type == "other"


def test_raw_records_reject_values_wider_than_their_columns() -> None:
    with pytest.raises(ValidationError):
        RawTransaction.from_provider(
            {
                "transaction_id": "tx_1",
                "account_id": "acc_1",
                "name": "Coffee",
                "amount": 4.5,
                "date": "2024-01-15",
                "location": {"country": "United States"},
            }
        )
    with pytest.raises(ValidationError):
        RawAccount.from_provider({"account_id": "acc_1", "name": "Checking", "mask": "12345678901"})
