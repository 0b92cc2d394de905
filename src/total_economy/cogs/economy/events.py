"""Economy Event Definitions for Total Economy.

此模組定義經濟系統的事件 Payload 結構, 支援:
- 交易事件 (economy.transaction): 存款、提款、設定餘額
- 轉帳事件 (economy.transfer)
- 事件驗證和序列化
- JSON Schema 定義
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from jsonschema import Draft7Validator

from total_economy.cogs.core.event_bus import Event, EventPriority

from .models import TransactionResult, TransferResult


class EconomyEventType(Enum):
    """經濟事件類型枚舉."""

    TRANSACTION = "economy.transaction"
    TRANSFER = "economy.transfer"


EVENT_SOURCE = "total_economy"

_DECIMAL_PATTERN = r"^-?[0-9]+(\.[0-9]+)?$"


@dataclass
class EconomyTransactionEvent:
    """經濟交易事件.

    每次交易嘗試(無論成功或失敗)都會發布一次, 在持久化之後、
    回傳呼叫端之前.

    Attributes:
        account: 帳戶識別碼
        currency: 貨幣顯示名稱
        amount: 請求的金額(十進位字串)
        contexts: 情境集合(``key=value`` 字串)
        result: 結果類型
        type: 交易類型
        timestamp: 事件發生時間戳(ISO 格式)
        account_to: 轉入帳戶識別碼(僅轉帳事件)
        cause: 觸發交易的原因(可選)
    """

    account: str
    currency: str
    amount: str
    contexts: list[str]
    result: str
    type: str
    timestamp: str
    account_to: str | None = None
    cause: dict[str, Any] | None = None

    @property
    def event_type(self) -> EconomyEventType:
        if self.account_to is not None:
            return EconomyEventType.TRANSFER
        return EconomyEventType.TRANSACTION

    def to_dict(self) -> dict[str, Any]:
        """轉換為字典格式."""
        data = asdict(self)
        if data["account_to"] is None:
            del data["account_to"]
        return data

    def to_json(self) -> str:
        """轉換為 JSON 字串."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EconomyTransactionEvent:
        """從字典建立事件實例."""
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> EconomyTransactionEvent:
        """從 JSON 字串建立事件實例."""
        return cls.from_dict(json.loads(json_str))

    def validate(self) -> bool:
        """驗證事件資料的有效性."""
        return validate_transaction_event(self.to_dict())

    def to_bus_event(self) -> Event:
        """轉換為事件總線上的事件."""
        priority = EventPriority.HIGH if self.result == "success" else EventPriority.NORMAL
        return Event(
            event_type=self.event_type.value,
            data=self.to_dict(),
            source=EVENT_SOURCE,
            target=self.account,
            priority=priority,
        )


# JSON Schema 定義
ECONOMY_TRANSACTION_EVENT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "EconomyTransactionEvent",
    "description": "經濟交易事件的資料結構",
    "type": "object",
    "properties": {
        "account": {
            "type": "string",
            "description": "帳戶識別碼",
            "minLength": 1,
        },
        "account_to": {
            "type": "string",
            "description": "轉入帳戶識別碼",
            "minLength": 1,
        },
        "currency": {
            "type": "string",
            "description": "貨幣顯示名稱",
            "minLength": 1,
        },
        "amount": {
            "type": "string",
            "description": "交易金額",
            "pattern": _DECIMAL_PATTERN,
        },
        "contexts": {
            "type": "array",
            "description": "情境集合",
            "items": {"type": "string"},
        },
        "result": {
            "type": "string",
            "description": "結果類型",
            "enum": ["success", "failed", "account_no_funds"],
        },
        "type": {
            "type": "string",
            "description": "交易類型",
            "enum": ["deposit", "withdraw", "transfer"],
        },
        "timestamp": {
            "type": "string",
            "description": "事件發生時間戳(ISO 格式)",
            "format": "date-time",
        },
        "cause": {
            "type": ["object", "null"],
            "description": "觸發交易的原因",
            "additionalProperties": True,
        },
    },
    "required": ["account", "currency", "amount", "contexts", "result", "type", "timestamp"],
    "additionalProperties": False,
}


def validate_transaction_event(data: dict[str, Any]) -> bool:
    """驗證交易事件資料.

    Args:
        data: 事件資料字典

    Returns:
        是否通過驗證

    Raises:
        jsonschema.ValidationError: 當資料不符合 Schema 時
    """
    validator = Draft7Validator(ECONOMY_TRANSACTION_EVENT_SCHEMA)
    validator.validate(data)
    return True


def create_transaction_event(
    result: TransactionResult,
    cause: dict[str, Any] | None = None,
) -> EconomyTransactionEvent:
    """由交易結果建立事件實例.

    便利函數, 自動設定時間戳並驗證資料.

    Args:
        result: 交易或轉帳結果
        cause: 觸發交易的原因

    Returns:
        經濟交易事件實例
    """
    payload = result.to_dict()
    event = EconomyTransactionEvent(
        account=payload["account"],
        currency=payload["currency"],
        amount=payload["amount"],
        contexts=payload["contexts"],
        result=payload["result"],
        type=payload["type"],
        timestamp=datetime.now(UTC).isoformat(),
        account_to=payload.get("account_to") if isinstance(result, TransferResult) else None,
        cause=cause,
    )

    event.validate()
    return event


__all__ = [
    "ECONOMY_TRANSACTION_EVENT_SCHEMA",
    "EconomyEventType",
    "EconomyTransactionEvent",
    "create_transaction_event",
    "validate_transaction_event",
]
