"""
核心模塊初始化文件
- 統一導出事件總線
"""

from .event_bus import Event, EventBus, EventPriority

__all__ = ["Event", "EventBus", "EventPriority"]
