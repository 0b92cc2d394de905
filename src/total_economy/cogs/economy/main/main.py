"""Total Economy Plugin.

此模組負責組裝經濟插件的所有元件:
設定 → 日誌 → 事件總線 → 玩家資料服務 → 帳戶管理器 → 帳戶設定檔
"""

from __future__ import annotations

import logging

from total_economy.cogs.core.event_bus import EventBus
from total_economy.core.config import AppConfig, get_config
from total_economy.core.errors import ServiceError

from ..service import AccountManager, MojangProfileService, ProfileService

logger = logging.getLogger(__name__)


class TotalEconomyPlugin:
    """經濟插件.

    插件擁有事件總線時(未由外部傳入), 會負責啟動與關閉它.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        event_bus: EventBus | None = None,
        profile_service: ProfileService | None = None,
    ):
        self.config = config or get_config()
        self._owns_event_bus = event_bus is None
        self.event_bus = event_bus or EventBus()
        self.profile_service = profile_service
        self._account_manager: AccountManager | None = None

    @property
    def is_initialized(self) -> bool:
        return self._account_manager is not None

    @property
    def account_manager(self) -> AccountManager:
        if self._account_manager is None:
            raise ServiceError(
                "total_economy",
                "account_manager",
                "Plugin has not been initialized",
            )
        return self._account_manager

    def _create_profile_service(self) -> ProfileService | None:
        if self.profile_service is not None:
            return self.profile_service
        economy = self.config.economy
        if not economy.profile_lookup_enabled:
            return None
        return MojangProfileService(
            economy.profile_lookup_url, timeout=economy.profile_lookup_timeout
        )

    async def initialize(self) -> None:
        """啟動事件總線並載入帳戶設定檔."""
        if self.is_initialized:
            return

        if self._owns_event_bus:
            await self.event_bus.initialize()

        manager = AccountManager(
            self.config.economy,
            self.event_bus,
            profile_service=self._create_profile_service(),
        )
        manager.load_account_config()
        self._account_manager = manager
        logger.info(f"Total Economy 插件已啟動 (v{self.config.version})")

    async def shutdown(self) -> None:
        """儲存帳戶設定並關閉自有的事件總線."""
        if self._account_manager is not None:
            self._account_manager.save_account_config()
            self._account_manager = None

        if self._owns_event_bus:
            await self.event_bus.shutdown()
        logger.info("Total Economy 插件已關閉")


__all__ = ["TotalEconomyPlugin"]
