"""Account Manager for Total Economy.

此模組提供帳戶的建立、查詢與共用設定樹管理, 支援:
- 帳戶設定檔的載入與儲存
- 玩家帳戶與虛擬帳戶的建立和查詢
- 預設貨幣與金額上限設定
- 交易結果的事件發布
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from decimal import Decimal
from pathlib import Path
from typing import Any, cast

import jsonschema

from total_economy.cogs.core.event_bus import EventBus
from total_economy.core.config import EconomyConfig
from total_economy.core.errors import DatabaseError, NotFoundError, ValidationError

from ..database import AccountConfigLoader, ConfigurationNode
from ..events import create_transaction_event
from ..models import Currency, TransactionResult, truncate_amount
from .account import EconomyAccount, UniqueAccount, VirtualAccount
from .profile_service import ProfileService

logger = logging.getLogger(__name__)


class AccountManager:
    """帳戶管理器.

    持有所有帳戶共用的設定樹與交易鎖. 帳戶物件只是設定樹上的視圖,
    同一識別碼在同一管理器中只會有一個帳戶實例.
    """

    def __init__(
        self,
        config: EconomyConfig,
        event_bus: EventBus,
        profile_service: ProfileService | None = None,
        accounts_path: str | Path | None = None,
    ):
        self.config = config
        self.event_bus = event_bus
        self.profile_service = profile_service
        self.loader = AccountConfigLoader(accounts_path or config.accounts_file)
        self.transaction_lock = asyncio.Lock()

        self._account_config = ConfigurationNode()
        self._accounts: dict[str, EconomyAccount] = {}
        self._default_currency = Currency(
            display_name=config.currency_singular,
            plural_display_name=config.currency_plural,
            symbol=config.currency_symbol,
            is_default=True,
        )

    # ------------------------------------------------------------------
    # 設定
    # ------------------------------------------------------------------

    @property
    def account_config(self) -> ConfigurationNode:
        return self._account_config

    @property
    def default_currency(self) -> Currency:
        return self._default_currency

    @property
    def currencies(self) -> frozenset[Currency]:
        return frozenset({self._default_currency})

    @property
    def starting_balance(self) -> Decimal:
        return truncate_amount(self.config.starting_balance)

    @property
    def money_cap_enabled(self) -> bool:
        return self.config.money_cap_enabled

    @property
    def money_cap(self) -> Decimal:
        return truncate_amount(self.config.money_cap)

    def exceeds_cap(self, amount: Decimal) -> bool:
        return self.money_cap_enabled and amount > self.money_cap

    def clamp_to_cap(self, amount: Decimal) -> Decimal:
        """啟用金額上限時, 將超過上限的金額截為上限."""
        return self.money_cap if self.exceeds_cap(amount) else amount

    def get_currency(self, name: str) -> Currency:
        """依名稱(單數或複數, 不分大小寫)取得貨幣.

        Raises:
            NotFoundError: 當貨幣不存在時
        """
        wanted = name.strip().lower()
        for currency in self.currencies:
            if wanted in (currency.name, currency.plural_display_name.lower()):
                return currency
        raise NotFoundError("currency", name)

    def load_account_config(self) -> None:
        """從檔案載入帳戶設定樹, 取代目前的內容."""
        self._account_config = self.loader.load()
        self._accounts.clear()
        logger.info(
            f"已載入帳戶設定: {self.loader.path} "
            f"({len(self._account_config.children())} 個帳戶)"
        )

    def save_account_config(self) -> None:
        """將整棵設定樹寫回檔案.

        Raises:
            DatabaseError: 當寫入失敗時
        """
        self.loader.save(self._account_config)

    # ------------------------------------------------------------------
    # 帳戶
    # ------------------------------------------------------------------

    def has_account(self, identifier: uuid.UUID | str) -> bool:
        return not self._account_config.get_node(str(identifier)).is_virtual()

    def _account_for(self, identifier: str) -> EconomyAccount:
        account = self._accounts.get(identifier)
        if account is None:
            try:
                unique_id = uuid.UUID(identifier)
            except ValueError:
                unique_id = None
            # 只有標準格式的 UUID 字串才視為玩家帳戶
            if unique_id is not None and str(unique_id) == identifier:
                account = UniqueAccount(unique_id, self, self.profile_service)
            else:
                account = VirtualAccount(identifier, self)
            self._accounts[identifier] = account
        return account

    async def _create(self, identifier: str) -> EconomyAccount:
        async with self.transaction_lock:
            if not self.has_account(identifier):
                node = self._account_config.get_node(
                    identifier, self._default_currency.balance_key
                )
                node.set_value(format(self.starting_balance, "f"))
                try:
                    self.save_account_config()
                except DatabaseError:
                    self._account_config.remove_child(identifier)
                    raise
                logger.info(
                    f"已建立帳戶: {identifier}, 初始餘額={self.starting_balance}"
                )
        return self._account_for(identifier)

    async def create_account(self, unique_id: uuid.UUID) -> UniqueAccount:
        """建立玩家帳戶並寫入預設貨幣的初始餘額.

        帳戶已存在時直接回傳, 不會覆寫餘額.

        Raises:
            DatabaseError: 當設定檔寫入失敗時(設定樹會還原)
        """
        # 標準格式的 UUID 字串一定對應到 UniqueAccount
        return cast(UniqueAccount, await self._create(str(unique_id)))

    async def get_or_create_account(self, unique_id: uuid.UUID) -> UniqueAccount:
        if self.has_account(unique_id):
            return cast(UniqueAccount, self._account_for(str(unique_id)))
        return await self.create_account(unique_id)

    async def get_or_create_virtual_account(self, identifier: str) -> EconomyAccount:
        """取得或建立虛擬帳戶.

        Raises:
            ValidationError: 當識別碼為空字串時
        """
        if not identifier or not identifier.strip():
            raise ValidationError(
                field="identifier",
                value=identifier,
                validation_rule="non-empty string",
                message="Virtual account identifier must not be empty",
            )
        if self.has_account(identifier):
            return self._account_for(identifier)
        return await self._create(identifier)

    def get_account(self, identifier: uuid.UUID | str) -> EconomyAccount:
        """取得已存在的帳戶.

        Raises:
            NotFoundError: 當帳戶不存在時
        """
        key = str(identifier)
        if not self.has_account(key):
            raise NotFoundError("account", key)
        return self._account_for(key)

    # ------------------------------------------------------------------
    # 事件
    # ------------------------------------------------------------------

    async def publish_result(
        self, result: TransactionResult, cause: dict[str, Any] | None = None
    ) -> bool:
        """將交易結果發布到事件總線.

        總線未啟動時事件只會留在歷史紀錄中.

        Returns:
            事件資料是否有效並已交給總線
        """
        try:
            event = create_transaction_event(result, cause)
        except jsonschema.ValidationError as e:
            logger.error(f"交易事件資料無效, 未發布: {e.message}")
            return False
        await self.event_bus.publish(event.to_bus_event())
        return True


__all__ = ["AccountManager"]
