"""Economy service module.

提供帳戶操作、帳戶管理與玩家資料查詢服務.
"""

from .account import DISPLAY_NAME_PLACEHOLDER, EconomyAccount, UniqueAccount, VirtualAccount
from .account_manager import AccountManager
from .profile_service import MojangProfileService, ProfileService, StaticProfileService

__all__ = [
    "DISPLAY_NAME_PLACEHOLDER",
    "AccountManager",
    "EconomyAccount",
    "MojangProfileService",
    "ProfileService",
    "StaticProfileService",
    "UniqueAccount",
    "VirtualAccount",
]
