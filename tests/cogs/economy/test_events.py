"""
經濟事件測試

測試覆蓋：
- 由交易結果建立事件
- JSON Schema 驗證
- 轉換為事件總線事件
"""

import json
from decimal import Decimal
from unittest.mock import MagicMock

import jsonschema
import pytest

from total_economy.cogs.core.event_bus import EventPriority
from total_economy.cogs.economy.events import (
    EconomyEventType,
    EconomyTransactionEvent,
    create_transaction_event,
    validate_transaction_event,
)
from total_economy.cogs.economy.models import (
    Currency,
    ResultType,
    TransactionResult,
    TransactionType,
    TransferResult,
)

DOLLAR = Currency("Dollar", "Dollars", "$", is_default=True)


def _account(identifier):
    account = MagicMock()
    account.identifier = identifier
    return account


def _result(result=ResultType.SUCCESS, amount="5.00"):
    return TransactionResult(
        account=_account("alice"),
        currency=DOLLAR,
        amount=Decimal(amount),
        contexts=frozenset(),
        result=result,
        type=TransactionType.DEPOSIT,
    )


class TestCreateTransactionEvent:
    """交易事件建立測試"""

    def test_transaction_event(self):
        event = create_transaction_event(_result(), cause={"source": "test"})

        assert event.event_type is EconomyEventType.TRANSACTION
        assert event.account == "alice"
        assert event.amount == "5.00"
        assert event.result == "success"
        assert event.cause == {"source": "test"}
        assert "account_to" not in event.to_dict()
        assert event.timestamp.endswith("+00:00")

    def test_transfer_event(self):
        result = TransferResult(
            account=_account("alice"),
            currency=DOLLAR,
            amount=Decimal("2.50"),
            contexts=frozenset(),
            result=ResultType.SUCCESS,
            type=TransactionType.TRANSFER,
            account_to=_account("bob"),
        )

        event = create_transaction_event(result)

        assert event.event_type is EconomyEventType.TRANSFER
        assert event.to_dict()["account_to"] == "bob"

    def test_json_round_trip(self):
        event = create_transaction_event(_result())

        restored = EconomyTransactionEvent.from_json(event.to_json())

        assert restored == event
        assert json.loads(event.to_json())["type"] == "deposit"


class TestValidation:
    """Schema 驗證測試"""

    def test_rejects_invalid_amount(self):
        data = create_transaction_event(_result()).to_dict()
        data["amount"] = "five"

        with pytest.raises(jsonschema.ValidationError):
            validate_transaction_event(data)

    def test_rejects_unknown_result(self):
        data = create_transaction_event(_result()).to_dict()
        data["result"] = "maybe"

        with pytest.raises(jsonschema.ValidationError):
            validate_transaction_event(data)

    def test_rejects_extra_fields(self):
        data = create_transaction_event(_result()).to_dict()
        data["balance"] = "10.00"

        with pytest.raises(jsonschema.ValidationError):
            validate_transaction_event(data)


class TestBusEvent:
    """事件總線事件轉換測試"""

    def test_successful_result_has_high_priority(self):
        bus_event = create_transaction_event(_result()).to_bus_event()

        assert bus_event.event_type == "economy.transaction"
        assert bus_event.source == "total_economy"
        assert bus_event.target == "alice"
        assert bus_event.priority is EventPriority.HIGH
        assert bus_event.data["amount"] == "5.00"

    def test_failed_result_has_normal_priority(self):
        bus_event = create_transaction_event(_result(ResultType.ACCOUNT_NO_FUNDS)).to_bus_event()

        assert bus_event.priority is EventPriority.NORMAL
