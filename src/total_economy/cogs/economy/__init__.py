"""Economy cog for Total Economy.

提供玩家帳戶、交易結果模型、帳戶設定持久化與交易事件.
"""

from .events import (
    ECONOMY_TRANSACTION_EVENT_SCHEMA,
    EconomyEventType,
    EconomyTransactionEvent,
    create_transaction_event,
    validate_transaction_event,
)
from .models import (
    Context,
    Currency,
    ResultType,
    TransactionResult,
    TransactionType,
    TransferResult,
    parse_amount,
    truncate_amount,
)
from .service import (
    AccountManager,
    EconomyAccount,
    MojangProfileService,
    StaticProfileService,
    UniqueAccount,
    VirtualAccount,
)

__all__ = [
    "ECONOMY_TRANSACTION_EVENT_SCHEMA",
    "AccountManager",
    "Context",
    "Currency",
    "EconomyAccount",
    "EconomyEventType",
    "EconomyTransactionEvent",
    "MojangProfileService",
    "ResultType",
    "StaticProfileService",
    "TransactionResult",
    "TransactionType",
    "TransferResult",
    "UniqueAccount",
    "VirtualAccount",
    "create_transaction_event",
    "parse_amount",
    "truncate_amount",
    "validate_transaction_event",
]
