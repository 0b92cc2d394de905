"""Economy Account for Total Economy.

此模組提供玩家帳戶的餘額操作實作, 支援:
- 餘額查詢 (以帳戶設定樹為唯一資料來源, 不做快取)
- 設定、重設、存款、提款
- 原子性轉帳 (單一交易鎖內完成檢查、寫入與儲存)
- 儲存失敗時的補償回滾
- 每次操作都發布一個交易事件
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Iterable
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import aiohttp

from total_economy.core.errors import DatabaseError, ExternalServiceError

from ..models import (
    Context,
    Currency,
    ResultType,
    TransactionResult,
    TransactionType,
    TransferResult,
    in_money_range,
    parse_amount,
    truncate_amount,
)

if TYPE_CHECKING:
    from ..database import ConfigurationNode
    from .account_manager import AccountManager
    from .profile_service import ProfileService

logger = logging.getLogger(__name__)

# 玩家名稱查詢失敗時的替代顯示名稱
DISPLAY_NAME_PLACEHOLDER = "ERROR"

ZERO = Decimal("0.00")


class EconomyAccount:
    """經濟帳戶基底類別.

    帳戶本身不持有餘額, 所有讀寫都經由 AccountManager 的共用設定樹,
    路徑為 ``(identifier, "<貨幣名稱小寫>-balance")``, 值為兩位小數字串.
    所有會修改設定樹的操作都在 ``manager.transaction_lock`` 內完成,
    事件則在釋放鎖之後、回傳之前發布.
    """

    def __init__(self, identifier: str, manager: AccountManager):
        self._identifier = identifier
        self.manager = manager

    @property
    def identifier(self) -> str:
        return self._identifier

    async def get_display_name(self) -> str:
        return self._identifier

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EconomyAccount):
            return NotImplemented
        return self.identifier == other.identifier and self.manager is other.manager

    def __hash__(self) -> int:
        return hash(self.identifier)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identifier!r})"

    # ------------------------------------------------------------------
    # 設定樹存取
    # ------------------------------------------------------------------

    def _balance_node(self, currency: Currency) -> ConfigurationNode:
        return self.manager.account_config.get_node(self.identifier, currency.balance_key)

    def _read_balance(self, currency: Currency) -> Decimal | None:
        node = self._balance_node(currency)
        if node.is_virtual():
            return None
        return parse_amount(node.get_string(), field=currency.balance_key)

    def _write_balance(self, currency: Currency, amount: Decimal) -> None:
        self._balance_node(currency).set_value(format(truncate_amount(amount), "f"))

    @staticmethod
    def _in_range(*amounts: Decimal | None) -> bool:
        """所有金額都存在且介於 0 與上限之間."""
        return all(amount is not None and in_money_range(amount) for amount in amounts)

    def _commit(self, changes: list[tuple[EconomyAccount, Currency, Decimal]]) -> bool:
        """寫入餘額並儲存設定檔; 儲存失敗時還原所有寫入.

        Returns:
            是否成功儲存
        """
        previous = [
            (account, currency, account._balance_node(currency).get_value())
            for account, currency, _amount in changes
        ]
        for account, currency, amount in changes:
            account._write_balance(currency, amount)

        try:
            self.manager.save_account_config()
        except DatabaseError as e:
            for account, currency, value in reversed(previous):
                account._balance_node(currency).set_value(value)
            logger.error(
                f"儲存帳戶設定失敗, 已還原變更: account={self.identifier}, error={e}"
            )
            return False
        return True

    async def _finish(
        self, result: TransactionResult, cause: dict[str, Any] | None
    ) -> TransactionResult:
        await self.manager.publish_result(result, cause)
        return result

    def _result(
        self,
        currency: Currency,
        amount: Decimal,
        contexts: frozenset[Context],
        result: ResultType,
        transaction_type: TransactionType,
    ) -> TransactionResult:
        return TransactionResult(
            account=self,
            currency=currency,
            amount=amount,
            contexts=contexts,
            result=result,
            type=transaction_type,
        )

    # ------------------------------------------------------------------
    # 查詢
    # ------------------------------------------------------------------

    def get_default_balance(self, currency: Currency) -> Decimal:
        return self.manager.starting_balance

    def get_active_contexts(self) -> frozenset[Context]:
        return frozenset()

    def has_balance(self, currency: Currency, contexts: Iterable[Context] = ()) -> bool:
        """帳戶在設定樹中是否有該貨幣的餘額紀錄."""
        return not self._balance_node(currency).is_virtual()

    def get_balance(self, currency: Currency, contexts: Iterable[Context] = ()) -> Decimal:
        """取得餘額; 沒有紀錄時回傳 0."""
        balance = self._read_balance(currency)
        return ZERO if balance is None else balance

    def get_balances(self, contexts: Iterable[Context] = ()) -> dict[Currency, Decimal]:
        # 尚未支援多貨幣查詢
        return {}

    # ------------------------------------------------------------------
    # 異動
    # ------------------------------------------------------------------

    async def set_balance(
        self,
        currency: Currency,
        amount: Decimal | int | str,
        cause: dict[str, Any] | None = None,
        contexts: Iterable[Context] = (),
    ) -> TransactionResult:
        """直接設定餘額(截斷至兩位小數, 不受上限限制).

        帳戶必須已有該貨幣的餘額紀錄, 否則回傳 FAILED 且不做任何變更.
        """
        amount = parse_amount(amount)
        contexts = frozenset(contexts)
        outcome = ResultType.FAILED

        async with self.manager.transaction_lock:
            if in_money_range(amount) and self.has_balance(currency, contexts):
                if self._commit([(self, currency, amount)]):
                    outcome = ResultType.SUCCESS

        return await self._finish(
            self._result(currency, amount, contexts, outcome, TransactionType.DEPOSIT),
            cause,
        )

    async def reset_balance(
        self,
        currency: Currency,
        cause: dict[str, Any] | None = None,
        contexts: Iterable[Context] = (),
    ) -> TransactionResult:
        """將餘額設為 0."""
        return await self.set_balance(currency, ZERO, cause, contexts)

    async def reset_balances(
        self,
        cause: dict[str, Any] | None = None,
        contexts: Iterable[Context] = (),
    ) -> dict[Currency, TransactionResult]:
        """批次重設尚未支援: 永遠回報預設貨幣的 FAILED 結果, 不做任何變更."""
        currency = self.manager.default_currency
        result = self._result(
            currency, ZERO, frozenset(contexts), ResultType.FAILED, TransactionType.WITHDRAW
        )
        await self._finish(result, cause)
        return {currency: result}

    async def deposit(
        self,
        currency: Currency,
        amount: Decimal | int | str,
        cause: dict[str, Any] | None = None,
        contexts: Iterable[Context] = (),
    ) -> TransactionResult:
        """存款; 啟用金額上限時, 超過上限的部分會被截去."""
        amount = parse_amount(amount)
        contexts = frozenset(contexts)
        outcome = ResultType.FAILED

        async with self.manager.transaction_lock:
            current = self._read_balance(currency)
            if self._in_range(amount, current):
                new_balance = self.manager.clamp_to_cap(current + truncate_amount(amount))
                if in_money_range(new_balance) and self._commit(
                    [(self, currency, new_balance)]
                ):
                    outcome = ResultType.SUCCESS

        return await self._finish(
            self._result(currency, amount, contexts, outcome, TransactionType.DEPOSIT),
            cause,
        )

    async def withdraw(
        self,
        currency: Currency,
        amount: Decimal | int | str,
        cause: dict[str, Any] | None = None,
        contexts: Iterable[Context] = (),
    ) -> TransactionResult:
        """提款; 餘額不足時回傳 ACCOUNT_NO_FUNDS 且不做任何變更."""
        amount = parse_amount(amount)
        contexts = frozenset(contexts)
        outcome = ResultType.FAILED

        async with self.manager.transaction_lock:
            current = self._read_balance(currency)
            if self._in_range(amount, current):
                new_balance = current - amount
                if new_balance < 0:
                    outcome = ResultType.ACCOUNT_NO_FUNDS
                elif self._commit([(self, currency, new_balance)]):
                    outcome = ResultType.SUCCESS

        return await self._finish(
            self._result(currency, amount, contexts, outcome, TransactionType.WITHDRAW),
            cause,
        )

    async def transfer(
        self,
        to: EconomyAccount,
        currency: Currency,
        amount: Decimal | int | str,
        cause: dict[str, Any] | None = None,
        contexts: Iterable[Context] = (),
    ) -> TransferResult:
        """轉帳至另一個帳戶.

        兩個帳戶的檢查、寫入與儲存在同一個交易鎖內完成; 任一條件不符
        時兩邊都不會變動, 儲存失敗時兩邊都會還原. 轉入後會超過金額上限時
        回傳 FAILED, 不會像存款一樣截去超出的部分.

        Returns:
            類型為 TRANSFER 的轉帳結果
        """
        amount = parse_amount(amount)
        contexts = frozenset(contexts)
        outcome = ResultType.FAILED

        async with self.manager.transaction_lock:
            current = self._read_balance(currency)
            target_current = to._read_balance(currency) if to.manager is self.manager else None

            if to != self and self._in_range(amount, current, target_current):
                # 兩邊以同一個截斷後的金額異動, 總額不變
                moved = truncate_amount(amount)
                new_balance = current - moved
                target_balance = target_current + moved
                if new_balance < 0:
                    outcome = ResultType.ACCOUNT_NO_FUNDS
                elif self.manager.exceeds_cap(target_balance):
                    # 轉入帳戶無法收下全額時整筆拒絕, 不做部分轉帳
                    logger.info(
                        f"轉帳超過金額上限, 已拒絕: {self.identifier} -> {to.identifier}, "
                        f"amount={amount}"
                    )
                elif in_money_range(target_balance) and self._commit(
                    [(self, currency, new_balance), (to, currency, target_balance)]
                ):
                    outcome = ResultType.SUCCESS

        result = TransferResult(
            account=self,
            currency=currency,
            amount=amount,
            contexts=contexts,
            result=outcome,
            type=TransactionType.TRANSFER,
            account_to=to,
        )
        if result.is_success:
            logger.info(
                f"轉帳成功: {self.identifier} -> {to.identifier}, "
                f"amount={amount}, currency={currency.display_name}"
            )
        await self._finish(result, cause)
        return result


class UniqueAccount(EconomyAccount):
    """以玩家 UUID 識別的帳戶."""

    def __init__(
        self,
        unique_id: uuid.UUID,
        manager: AccountManager,
        profile_service: ProfileService | None = None,
    ):
        super().__init__(str(unique_id), manager)
        self._unique_id = unique_id
        self.profile_service = profile_service

    @property
    def unique_id(self) -> uuid.UUID:
        return self._unique_id

    async def get_display_name(self) -> str:
        """查詢玩家名稱; 查詢失敗時記錄警告並回傳替代字串."""
        if self.profile_service is None:
            return DISPLAY_NAME_PLACEHOLDER
        try:
            return await self.profile_service.get_name(self._unique_id)
        except (ExternalServiceError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"無法取得玩家名稱: uuid={self._unique_id}, error={e}")
            return DISPLAY_NAME_PLACEHOLDER


class VirtualAccount(EconomyAccount):
    """非玩家帳戶 (例如商店或銀行), 以任意字串識別."""


__all__ = [
    "DISPLAY_NAME_PLACEHOLDER",
    "EconomyAccount",
    "UniqueAccount",
    "VirtualAccount",
]
