"""Configuration Node Tree for Total Economy.

此模組提供以路徑定址的樹狀設定儲存, 支援:
- 以路徑片段取得子節點 (不存在時回傳虛擬節點)
- 字串或原始值的讀寫
- 與巢狀字典互相轉換, 供 YAML 持久化使用
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any


class ConfigurationNode:
    """設定樹節點.

    節點可以是葉節點 (持有值) 或容器節點 (持有子節點).
    對不存在的路徑呼叫 ``get_node`` 會得到一個「虛擬」節點, 它在
    ``set_value`` 之前不會被掛到樹上, 因此讀取不會改變樹的內容.
    """

    def __init__(
        self,
        key: str | None = None,
        parent: ConfigurationNode | None = None,
        attached: bool = True,
    ):
        self.key = key
        self.parent = parent
        self._value: Any = None
        self._children: dict[str, ConfigurationNode] = {}
        self._attached = attached

    # ------------------------------------------------------------------
    # 導覽
    # ------------------------------------------------------------------

    @property
    def path(self) -> tuple[str, ...]:
        parts: list[str] = []
        node: ConfigurationNode | None = self
        while node is not None and node.key is not None:
            parts.append(node.key)
            node = node.parent
        return tuple(reversed(parts))

    def get_node(self, *path: Any) -> ConfigurationNode:
        """取得路徑上的節點; 路徑片段會轉為字串."""
        node = self
        for part in path:
            key = str(part)
            child = node._children.get(key)
            if child is None:
                child = ConfigurationNode(key, parent=node, attached=False)
            node = child
        return node

    def is_virtual(self) -> bool:
        """節點是否不存在於樹中(或沒有任何值)."""
        if not self._attached:
            return True
        return self._value is None and not self._children

    def children(self) -> dict[str, ConfigurationNode]:
        return dict(self._children)

    def __iter__(self) -> Iterator[ConfigurationNode]:
        return iter(list(self._children.values()))

    # ------------------------------------------------------------------
    # 讀寫
    # ------------------------------------------------------------------

    def get_value(self, default: Any = None) -> Any:
        if not self._attached:
            return default
        if self._children:
            return self.to_dict()
        return default if self._value is None else self._value

    def get_string(self, default: str | None = None) -> str | None:
        value = self.get_value()
        if value is None or isinstance(value, dict):
            return default
        return str(value)

    def set_value(self, value: Any) -> ConfigurationNode:
        """設定節點值; ``None`` 會把節點從樹中移除.

        字典值會展開為子節點.
        """
        if value is None:
            self._detach()
            return self

        self._attach()
        for key in list(self._children):
            self.remove_child(key)
        if isinstance(value, dict):
            self._value = None
            for key, child_value in value.items():
                self.get_node(key).set_value(child_value)
        else:
            self._value = value
        return self

    def remove_child(self, key: Any) -> bool:
        child = self._children.pop(str(key), None)
        if child is None:
            return False
        child._attached = False
        return True

    def _attach(self) -> None:
        if self._attached:
            return
        if self.parent is not None:
            self.parent._attach()
            existing = self.parent._children.get(self.key)
            if existing is not None and existing is not self:
                # 同一路徑的另一個節點已先掛上, 合併其內容後取而代之
                merged = dict(existing._children)
                merged.update(self._children)
                for child in merged.values():
                    child.parent = self
                self._children = merged
                if self._value is None and not merged:
                    self._value = existing._value
                existing._attached = False
            self.parent._value = None
            self.parent._children[self.key] = self
        self._attached = True

    def _detach(self) -> None:
        self._value = None
        self._children.clear()
        # 根節點只會被清空
        if self.parent is not None and self._attached:
            self.parent.remove_child(self.key)

    # ------------------------------------------------------------------
    # 轉換
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """轉換為巢狀字典, 只包含有值的節點."""
        data: dict[str, Any] = {}
        for key, child in self._children.items():
            if child._children:
                data[key] = child.to_dict()
            elif child._value is not None:
                data[key] = child._value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ConfigurationNode:
        root = cls()
        if data:
            root.set_value(data)
        return root

    def __repr__(self) -> str:
        path = ".".join(self.path) or "<root>"
        return f"ConfigurationNode({path!r}, virtual={self.is_virtual()})"


__all__ = ["ConfigurationNode"]
