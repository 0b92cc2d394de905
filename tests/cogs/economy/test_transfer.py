"""
轉帳測試

測試覆蓋：
- 成功轉帳
- 轉入帳戶沒有餘額紀錄時不會遺失資金
- 餘額不足、自我轉帳、負數金額
- 轉入端超過金額上限時整筆拒絕
- 超出精度範圍的金額
- 儲存失敗時兩邊一起回滾
- 並發轉帳
"""

import asyncio
from decimal import Decimal
from unittest.mock import patch

from total_economy.cogs.core.event_bus import EventBus
from total_economy.cogs.economy.models import Currency, ResultType, TransactionType, TransferResult
from total_economy.cogs.economy.service import AccountManager
from total_economy.core.errors import DatabaseError

from tests.conftest import BOB_ID, published_events


class TestTransfer:
    """轉帳測試"""

    async def test_transfer_moves_funds(self, alice, bob, currency):
        result = await alice.transfer(bob, currency, Decimal("20.00"))

        assert isinstance(result, TransferResult)
        assert result.result is ResultType.SUCCESS
        assert result.type is TransactionType.TRANSFER
        assert result.account_to is bob
        assert alice.get_balance(currency) == Decimal("30.00")
        assert bob.get_balance(currency) == Decimal("70.00")

    async def test_transfer_is_persisted(self, alice, bob, currency, account_manager):
        await alice.transfer(bob, currency, Decimal("5.00"))

        reloaded = account_manager.loader.load()
        assert reloaded.get_node(alice.identifier, currency.balance_key).get_string() == "45.00"
        assert reloaded.get_node(bob.identifier, currency.balance_key).get_string() == "55.00"

    async def test_destination_without_entry_keeps_source_funds(self, alice, bob, account_manager):
        euro = Currency("Euro", "Euros", "€")
        account_manager.account_config.get_node(alice.identifier, euro.balance_key).set_value("50.00")

        result = await alice.transfer(bob, euro, Decimal("50.00"))

        assert result.result is ResultType.FAILED
        assert alice.get_balance(euro) == Decimal("50.00")
        assert bob.has_balance(euro) is False

    async def test_source_without_entry_fails(self, alice, bob):
        euro = Currency("Euro", "Euros", "€")

        result = await alice.transfer(bob, euro, Decimal("1.00"))

        assert result.result is ResultType.FAILED

    async def test_insufficient_funds(self, alice, bob, currency):
        result = await alice.transfer(bob, currency, Decimal("50.01"))

        assert result.result is ResultType.ACCOUNT_NO_FUNDS
        assert alice.get_balance(currency) == Decimal("50.00")
        assert bob.get_balance(currency) == Decimal("50.00")

    async def test_transfer_to_self_fails(self, alice, currency):
        result = await alice.transfer(alice, currency, Decimal("1.00"))

        assert result.result is ResultType.FAILED
        assert alice.get_balance(currency) == Decimal("50.00")

    async def test_negative_amount_fails(self, alice, bob, currency):
        result = await alice.transfer(bob, currency, Decimal("-5.00"))

        assert result.result is ResultType.FAILED
        assert alice.get_balance(currency) == Decimal("50.00")

    async def test_transfer_to_other_manager_fails(self, alice, currency, economy_config, tmp_path):
        other = AccountManager(economy_config, EventBus(), accounts_path=tmp_path / "other.yml")
        stranger = await other.create_account(BOB_ID)

        result = await alice.transfer(stranger, currency, Decimal("1.00"))

        assert result.result is ResultType.FAILED
        assert alice.get_balance(currency) == Decimal("50.00")

    async def test_transfer_over_destination_cap_moves_nothing(
        self, alice, bob, currency, economy_config, event_bus
    ):
        economy_config.money_cap_enabled = True
        economy_config.money_cap = Decimal("60.00")

        result = await alice.transfer(bob, currency, Decimal("20.00"))

        assert result.result is ResultType.FAILED
        assert alice.get_balance(currency) == Decimal("50.00")
        assert bob.get_balance(currency) == Decimal("50.00")
        transfers = published_events(event_bus, "economy.transfer")
        assert transfers[-1].data["result"] == "failed"

    async def test_transfer_up_to_destination_cap(self, alice, bob, currency, economy_config):
        economy_config.money_cap_enabled = True
        economy_config.money_cap = Decimal("60.00")

        result = await alice.transfer(bob, currency, Decimal("10.00"))

        assert result.is_success
        assert alice.get_balance(currency) + bob.get_balance(currency) == Decimal("100.00")
        assert bob.get_balance(currency) == Decimal("60.00")

    async def test_amount_beyond_decimal_precision_fails(self, alice, bob, currency):
        result = await alice.transfer(bob, currency, Decimal("1e27"))

        assert result.result is ResultType.FAILED
        assert alice.get_balance(currency) == Decimal("50.00")
        assert bob.get_balance(currency) == Decimal("50.00")

    async def test_transfer_amount_is_truncated(self, alice, bob, currency):
        await alice.transfer(bob, currency, Decimal("0.019"))

        assert alice.get_balance(currency) == Decimal("49.99")
        assert bob.get_balance(currency) == Decimal("50.01")

    async def test_failed_save_rolls_back_both_accounts(self, alice, bob, currency, account_manager):
        error = DatabaseError("save_account_config", "read-only file system")
        with patch.object(account_manager, "save_account_config", side_effect=error):
            result = await alice.transfer(bob, currency, Decimal("10.00"))

        assert result.result is ResultType.FAILED
        assert alice.get_balance(currency) == Decimal("50.00")
        assert bob.get_balance(currency) == Decimal("50.00")

    async def test_publishes_single_transfer_event(self, alice, bob, currency, event_bus):
        await alice.transfer(bob, currency, Decimal("3.00"), cause={"command": "pay"})

        transfers = published_events(event_bus, "economy.transfer")
        assert published_events(event_bus, "economy.transaction") == []
        assert len(transfers) == 1
        assert transfers[0].data["account"] == alice.identifier
        assert transfers[0].data["account_to"] == bob.identifier
        assert transfers[0].data["type"] == "transfer"
        assert transfers[0].data["cause"] == {"command": "pay"}

    async def test_failed_transfer_is_published(self, alice, bob, currency, event_bus):
        await alice.transfer(bob, currency, Decimal("500.00"))

        transfers = published_events(event_bus, "economy.transfer")
        assert transfers[-1].data["result"] == "account_no_funds"

    async def test_concurrent_transfers_conserve_money(self, alice, bob, currency):
        await asyncio.gather(
            *(alice.transfer(bob, currency, Decimal("7.00")) for _ in range(5)),
            *(bob.transfer(alice, currency, Decimal("3.00")) for _ in range(5)),
        )

        total = alice.get_balance(currency) + bob.get_balance(currency)
        assert total == Decimal("100.00")
        assert alice.get_balance(currency) >= 0
        assert bob.get_balance(currency) >= 0
