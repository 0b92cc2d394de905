"""Account Configuration Loader for Total Economy.

此模組負責帳戶設定樹與 YAML 檔案之間的讀寫:
- 檔案不存在時回傳空樹
- 以暫存檔 + fsync + 取代的方式原子寫入
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from total_economy.core.errors import ConfigurationError, DatabaseError

from .config_node import ConfigurationNode

logger = logging.getLogger(__name__)


class AccountConfigLoader:
    """帳戶設定檔讀寫器."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> ConfigurationNode:
        """讀取帳戶設定檔.

        Returns:
            設定樹根節點, 檔案不存在時為空樹

        Raises:
            ConfigurationError: 當檔案無法解析或頂層不是映射時
        """
        if not self.path.exists():
            logger.info(f"帳戶設定檔不存在, 使用空的設定樹: {self.path}")
            return ConfigurationNode()

        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                "accounts_file",
                f"Failed to parse account file {self.path}: {e}",
                cause=e,
            )
        except OSError as e:
            raise ConfigurationError(
                "accounts_file",
                f"Failed to read account file {self.path}: {e}",
                cause=e,
            )

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                "accounts_file",
                f"Account file {self.path} must contain a mapping at the top level",
            )

        root = ConfigurationNode.from_dict(data)
        logger.debug(f"已載入 {len(root.children())} 個帳戶: {self.path}")
        return root

    def save(self, root: ConfigurationNode) -> None:
        """將整棵設定樹寫回檔案.

        Raises:
            DatabaseError: 當寫入失敗時
        """
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                yaml.safe_dump(root.to_dict(), f, sort_keys=True, allow_unicode=True)
                f.flush()
                os.fsync(f.fileno())
            tmp.replace(self.path)
        except OSError as e:
            raise DatabaseError(
                "save_account_config",
                f"Failed to write account file {self.path}: {e}",
                path=str(self.path),
                cause=e,
            )


__all__ = ["AccountConfigLoader"]
