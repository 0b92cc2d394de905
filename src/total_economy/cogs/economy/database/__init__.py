"""Economy database module.

提供帳戶設定樹與其檔案持久化功能.
"""

from .config_node import ConfigurationNode
from .loader import AccountConfigLoader

__all__ = [
    "AccountConfigLoader",
    "ConfigurationNode",
]
