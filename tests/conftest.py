"""
🧪 Total Economy 測試配置文件
- 提供帳戶管理器、事件總線與帳戶 fixtures
- 帳戶設定檔一律寫入 tmp_path
"""

import os
import uuid
from decimal import Decimal

import pytest
import pytest_asyncio

from total_economy.cogs.core.event_bus import Event, EventBus
from total_economy.cogs.economy.service import AccountManager, StaticProfileService
from total_economy.core.config import AppConfig, EconomyConfig, LoggingConfig, reset_config

ALICE_ID = uuid.UUID("069a79f4-44e9-4726-a5be-fca90e38aaf5")
BOB_ID = uuid.UUID("853c80ef-3c37-49fd-aa49-938b674adae6")


def published_events(bus: EventBus, event_type: str | None = None) -> list[Event]:
    """讀取事件總線的歷史紀錄(不需要啟動工作者)"""
    return bus.get_event_history(event_type=event_type, limit=1000)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """🌍 隔離全域設定與 TE_ 環境變數"""
    for name in list(os.environ):
        if name.startswith("TE_"):
            monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def accounts_file(tmp_path):
    return tmp_path / "data" / "accounts.yml"


@pytest.fixture
def economy_config(accounts_file) -> EconomyConfig:
    return EconomyConfig(
        starting_balance=Decimal("50.00"),
        accounts_file=str(accounts_file),
        profile_lookup_enabled=False,
    )


@pytest.fixture
def app_config(economy_config, tmp_path) -> AppConfig:
    return AppConfig(
        economy=economy_config,
        logging=LoggingConfig(
            file_handler_enabled=False,
            console_handler_enabled=False,
            log_directory=str(tmp_path / "logs"),
        ),
    )


@pytest.fixture
def event_bus() -> EventBus:
    """未啟動工作者的事件總線, 已發布事件保存在記憶體中"""
    return EventBus()


@pytest.fixture
def profile_service() -> StaticProfileService:
    return StaticProfileService({ALICE_ID: "Alice"})


@pytest.fixture
def account_manager(economy_config, event_bus, profile_service) -> AccountManager:
    manager = AccountManager(economy_config, event_bus, profile_service=profile_service)
    manager.load_account_config()
    return manager


@pytest.fixture
def currency(account_manager):
    return account_manager.default_currency


@pytest_asyncio.fixture
async def alice(account_manager):
    """初始餘額 50.00 的玩家帳戶"""
    return await account_manager.create_account(ALICE_ID)


@pytest_asyncio.fixture
async def bob(account_manager):
    """初始餘額 50.00 的玩家帳戶"""
    return await account_manager.create_account(BOB_ID)
