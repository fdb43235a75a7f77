import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Dict, List, Set, Tuple

logger = logging.getLogger(__name__)

COLLABORATORS_TABLE = "document_collaborators"
COMMENTS_TABLE = "document_comments"
PRESENCE_TABLE = "document_presence"


class ChangeEvent:
    """Событие изменения строки в таблице документа"""

    def __init__(self, table: str, document_id: uuid.UUID, event_type: str, row_id=None):
        self.table = table
        self.document_id = document_id
        self.event_type = event_type  # insert / update / delete
        self.row_id = row_id

    def __repr__(self) -> str:
        return f"ChangeEvent(table={self.table}, document_id={self.document_id}, type={self.event_type}, row_id={self.row_id})"


ChangeCallback = Callable[[ChangeEvent], Awaitable[None]]


class ChangeFeed:
    """Лента изменений строк, подписка по паре (таблица, документ).

    Репозитории публикуют события после commit. Каждый подписчик
    вызывается в отдельной задаче, издатель не ждет обработчиков.
    Порядок доставки между подписчиками не гарантируется.
    """

    def __init__(self):
        # {(table, document_id): [callback, ...]}
        self._subscribers: Dict[Tuple[str, uuid.UUID], List[ChangeCallback]] = {}
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, table: str, document_id: uuid.UUID, callback: ChangeCallback) -> Callable[[], None]:
        """Подписка на изменения, возвращает функцию отписки"""
        key = (table, document_id)
        self._subscribers.setdefault(key, []).append(callback)
        logger.debug(f"Subscribed to {table} changes of document {document_id}")

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(key)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)
                if not callbacks:
                    del self._subscribers[key]

        return unsubscribe

    def subscriber_count(self, table: str, document_id: uuid.UUID) -> int:
        return len(self._subscribers.get((table, document_id), []))

    def publish(self, event: ChangeEvent) -> None:
        """Рассылка события всем подписчикам"""
        for callback in list(self._subscribers.get((event.table, event.document_id), [])):
            task = asyncio.create_task(self._dispatch(callback, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Ожидание обработки всех разосланных событий"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _dispatch(self, callback: ChangeCallback, event: ChangeEvent) -> None:
        try:
            await callback(event)
        except Exception as e:
            logger.error(f"Change handler failed for {event}: {e}")


change_feed = ChangeFeed()
