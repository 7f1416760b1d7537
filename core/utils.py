"""
Вспомогательные функции
"""
import asyncio
import time
from typing import Awaitable, Optional, TypeVar

from core.exceptions import OperationCancelled

T = TypeVar('T')


class CancellationToken:
    """
    Токен отмены, передаваемый от владельца операции к исполнителю.

    Владелец вызывает cancel(), исполнитель ожидает работу через
    run_cancellable() и получает OperationCancelled.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelled(f"Операция отменена: {self.reason}")

    async def wait(self) -> None:
        await self._event.wait()


async def run_cancellable(aw: Awaitable[T], token: Optional[CancellationToken]) -> T:
    """
    Выполнение awaitable с возможностью отмены через токен.
    При срабатывании токена задача прерывается, а вызывающий получает OperationCancelled.
    """
    if token is None:
        return await aw

    token.raise_if_cancelled()

    work = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()

    if work in done:
        return work.result()

    work.cancel()
    try:
        await work
    except asyncio.CancelledError:
        pass
    raise OperationCancelled(f"Операция отменена: {token.reason}")


def now_ms() -> int:
    """Текущее время в миллисекундах (для локальных идентификаторов)"""
    return int(time.time() * 1000)
