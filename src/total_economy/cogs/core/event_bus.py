"""
經濟事件總線

帳戶操作在寫入設定檔之後把交易結果發布到這裡:
- 發布時先記錄到有上限的歷史紀錄, 再依優先級排隊
- 背景工作者把事件送給相符的訂閱者, 失敗時依訂閱設定重試
- 總線未啟動時事件只留在歷史紀錄中, 不會排隊
"""

import asyncio
import itertools
import logging
import time
import uuid
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

logger = logging.getLogger(__name__)

EventHandler = Callable[["Event"], Awaitable[Any]]

# 訂閱全部事件類型
ALL_EVENTS = "*"


class EventPriority(IntEnum):
    """事件優先級, 數值越小越先處理"""

    CRITICAL = 0
    HIGH = 1
    NORMAL = 2
    LOW = 3


@dataclass
class Event:
    """總線上傳遞的事件"""

    event_type: str
    data: dict[str, Any] = field(default_factory=dict)
    source: str | None = None
    target: str | None = None
    priority: EventPriority = EventPriority.NORMAL
    timestamp: float = field(default_factory=time.time)
    event_id: str = ""

    def __post_init__(self):
        if not self.event_id:
            self.event_id = f"{self.event_type}_{uuid.uuid4().hex[:16]}"


@dataclass(frozen=True)
class Subscription:
    subscriber_id: str
    handler: EventHandler
    event_types: frozenset[str]
    max_retries: int = 3
    retry_delay: float = 1.0

    def wants(self, event: Event) -> bool:
        return ALL_EVENTS in self.event_types or event.event_type in self.event_types


class EventBus:
    """異步事件總線

    publish() 不等待訂閱者; 送達與重試都在背景工作者中完成.
    """

    def __init__(self, max_workers: int = 4, history_size: int = 10000):
        self.max_workers = max_workers
        self._subscriptions: dict[str, Subscription] = {}
        self._queue: asyncio.PriorityQueue[tuple[int, int, Event]] = asyncio.PriorityQueue()
        # 同優先級的事件依發布順序處理
        self._sequence = itertools.count()
        self._workers: set[asyncio.Task] = set()
        self._history: deque[Event] = deque(maxlen=history_size)

    @property
    def is_running(self) -> bool:
        return bool(self._workers)

    async def initialize(self) -> None:
        """啟動背景工作者"""
        if self.is_running:
            return

        for index in range(self.max_workers):
            self._workers.add(
                asyncio.create_task(self._worker(), name=f"event-bus-worker-{index}")
            )
        logger.info(f"【事件總線】已啟動 {self.max_workers} 個工作者")

    async def shutdown(self) -> None:
        """送完已排隊的事件後停止工作者"""
        if not self.is_running:
            return

        await self._queue.join()
        workers = list(self._workers)
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        self._workers.clear()
        logger.info("【事件總線】已關閉")

    def subscribe(
        self,
        event_types: list[str] | str,
        handler: EventHandler,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> str:
        """訂閱事件, 回傳取消訂閱用的識別碼"""
        if isinstance(event_types, str):
            event_types = [event_types]

        subscriber_id = f"sub_{uuid.uuid4().hex[:12]}"
        self._subscriptions[subscriber_id] = Subscription(
            subscriber_id=subscriber_id,
            handler=handler,
            event_types=frozenset(event_types),
            max_retries=max_retries,
            retry_delay=retry_delay,
        )
        logger.debug(f"【事件總線】新訂閱 {subscriber_id}: {sorted(event_types)}")
        return subscriber_id

    def unsubscribe(self, subscriber_id: str) -> bool:
        return self._subscriptions.pop(subscriber_id, None) is not None

    async def publish(self, event: Event) -> bool:
        """記錄事件並排隊給訂閱者

        Returns:
            事件是否已排隊; 總線未啟動時為 False
        """
        self._history.append(event)

        if not self.is_running:
            if any(s.wants(event) for s in self._subscriptions.values()):
                logger.warning(
                    f"【事件總線】總線尚未啟動, {event.event_type} 不會送達訂閱者"
                )
            return False

        await self._queue.put((event.priority, next(self._sequence), event))
        return True

    def get_event_history(self, event_type: str | None = None, limit: int = 100) -> list[Event]:
        """依發布順序回傳最近的事件"""
        matched = [
            event for event in self._history
            if event_type is None or event.event_type == event_type
        ]
        return matched[-limit:]

    async def _worker(self) -> None:
        while True:
            _priority, _sequence, event = await self._queue.get()
            try:
                subscriptions = [s for s in self._subscriptions.values() if s.wants(event)]
                await asyncio.gather(*(self._deliver(event, s) for s in subscriptions))
            except Exception as e:
                logger.error(f"【事件總線】處理 {event.event_id} 時發生錯誤: {e}")
            finally:
                self._queue.task_done()

    async def _deliver(self, event: Event, subscription: Subscription) -> None:
        for attempt in range(1, subscription.max_retries + 2):
            try:
                await subscription.handler(event)
                return
            except Exception as e:
                if attempt > subscription.max_retries:
                    logger.error(
                        f"【事件總線】{subscription.subscriber_id} 無法處理 "
                        f"{event.event_type}, 已放棄: {e}"
                    )
                    return
                logger.warning(
                    f"【事件總線】{subscription.subscriber_id} 處理 {event.event_type} "
                    f"失敗 ({attempt}/{subscription.max_retries}), 稍後重試: {e}"
                )
                await asyncio.sleep(subscription.retry_delay * attempt)


__all__ = [
    "ALL_EVENTS",
    "Event",
    "EventBus",
    "EventHandler",
    "EventPriority",
    "Subscription",
]
