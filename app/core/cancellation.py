# app/core/cancellation.py
import asyncio
import logging
from typing import Awaitable, Dict, TypeVar

from app.core.errors import OperationSuperseded

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationRegistry:
    """
    每個操作類別只保留最新的一個請求。
    以相同 key 開始新操作時，會先取消目前登記在該 key 下的 task。
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, asyncio.Task] = {}

    def cancel(self, key: str) -> bool:
        task = self._tasks.pop(key, None)
        if task is not None and not task.done():
            task.cancel()
            logger.debug(f"Cancelled in-flight operation '{key}'")
            return True
        return False

    def active(self, key: str) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    async def run_latest(self, key: str, operation: Awaitable[T]) -> T:
        self.cancel(key)
        task = asyncio.ensure_future(operation)
        self._tasks[key] = task
        try:
            return await task
        except asyncio.CancelledError:
            # 只有被新請求取代時才轉成 OperationSuperseded，呼叫端本身被取消則照常往外傳
            if task.cancelled() and self._tasks.get(key) is not task:
                raise OperationSuperseded(key)
            raise
        finally:
            if self._tasks.get(key) is task:
                del self._tasks[key]
