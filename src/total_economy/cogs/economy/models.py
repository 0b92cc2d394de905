"""Economy Models for Total Economy.

此模組定義經濟系統的資料模型, 包括:
- ResultType / TransactionType 枚舉
- Currency 與 Context 值物件
- TransactionResult / TransferResult 交易結果
- 金額截斷與解析工具
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Any

from total_economy.core.config import MAX_AMOUNT
from total_economy.core.errors import ValidationError

if TYPE_CHECKING:
    from .service.account import EconomyAccount

# 所有餘額固定保留兩位小數
MONEY_QUANTUM = Decimal("0.01")


class ResultType(Enum):
    """交易結果類型.

    - SUCCESS: 交易完成
    - FAILED: 前置條件不符(最常見為帳戶沒有該貨幣的餘額紀錄)
    - ACCOUNT_NO_FUNDS: 提款或轉帳會使餘額變為負數
    """

    SUCCESS = "success"
    FAILED = "failed"
    ACCOUNT_NO_FUNDS = "account_no_funds"

    def __str__(self) -> str:
        return self.value


class TransactionType(Enum):
    """交易類型枚舉."""

    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TRANSFER = "transfer"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, value: str) -> TransactionType:
        """從字串建立 TransactionType."""
        try:
            return cls(value.lower())
        except ValueError:
            raise ValidationError(
                field="transaction_type",
                value=value,
                validation_rule="one of deposit, withdraw, transfer",
            )


@dataclass(frozen=True)
class Context:
    """限定餘額適用條件的 key/value 對, 僅作傳遞用途."""

    key: str
    value: str

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


@dataclass(frozen=True)
class Currency:
    """貨幣值物件.

    Attributes:
        display_name: 單數顯示名稱, 小寫後用於組成餘額鍵
        plural_display_name: 複數顯示名稱
        symbol: 貨幣符號
        default_fraction_digits: 顯示用小數位數
        is_default: 是否為預設貨幣
    """

    display_name: str
    plural_display_name: str
    symbol: str
    default_fraction_digits: int = 2
    is_default: bool = False

    @property
    def name(self) -> str:
        return self.display_name.lower()

    @property
    def balance_key(self) -> str:
        """帳戶設定樹中的餘額鍵, 例如 ``dollar-balance``."""
        return f"{self.name}-balance"

    def format(self, amount: Decimal, num_fraction_digits: int | None = None) -> str:
        """格式化金額, 例如 ``$1,234.50``."""
        digits = self.default_fraction_digits if num_fraction_digits is None else num_fraction_digits
        quantum = Decimal(1).scaleb(-digits)
        value = Decimal(amount).quantize(quantum, rounding=ROUND_DOWN)
        sign = "-" if value < 0 else ""
        return f"{sign}{self.symbol}{abs(value):,.{digits}f}"


def truncate_amount(amount: Decimal | int | str) -> Decimal:
    """截斷至兩位小數(朝零方向, 非四捨五入).

    >>> truncate_amount(Decimal("10.129"))
    Decimal('10.12')
    """
    return Decimal(amount).quantize(MONEY_QUANTUM, rounding=ROUND_DOWN)


def in_money_range(amount: Decimal) -> bool:
    """金額是否介於 0 與 MAX_AMOUNT 之間(含兩端).

    超出範圍的金額在截斷時會超過 Decimal 的精度, 交易一律視為失敗.
    """
    return amount.is_finite() and 0 <= amount <= MAX_AMOUNT


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """將輸入轉為 Decimal 金額.

    Raises:
        ValidationError: 當輸入不是有限的十進位數字時
    """
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(
            field=field,
            value=value,
            validation_rule="decimal number",
            message=f"Invalid amount: {value}",
        )
    if not amount.is_finite():
        raise ValidationError(
            field=field,
            value=value,
            validation_rule="finite decimal number",
            message=f"Invalid amount: {value}",
        )
    return amount


@dataclass(frozen=True)
class TransactionResult:
    """單一帳戶交易結果(建立後不可變)."""

    account: EconomyAccount
    currency: Currency
    amount: Decimal
    contexts: frozenset[Context]
    result: ResultType
    type: TransactionType

    @property
    def is_success(self) -> bool:
        return self.result is ResultType.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """轉換為事件 payload 用的字典."""
        return {
            "account": self.account.identifier,
            "currency": self.currency.display_name,
            "amount": format(self.amount, "f"),
            "contexts": sorted(str(context) for context in self.contexts),
            "result": self.result.value,
            "type": self.type.value,
        }


@dataclass(frozen=True)
class TransferResult(TransactionResult):
    """雙帳戶轉帳結果."""

    account_to: EconomyAccount

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["account_to"] = self.account_to.identifier
        return data


__all__ = [
    "MAX_AMOUNT",
    "MONEY_QUANTUM",
    "Context",
    "Currency",
    "ResultType",
    "TransactionResult",
    "TransactionType",
    "TransferResult",
    "in_money_range",
    "parse_amount",
    "truncate_amount",
]
