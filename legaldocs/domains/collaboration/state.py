import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional, Tuple
import uuid

from legaldocs.core.clock import utcnow
from legaldocs.core.config import settings
from legaldocs.core.db import SessionLocal
from legaldocs.core.notifications import Notifier
from legaldocs.db.changes import ChangeEvent, ChangeFeed, change_feed, PRESENCE_TABLE
from legaldocs.domains.collaboration.entities import (
    Collaborator, CollaboratorRole, CollaborationState, Comment, PresenceRecord
)
from legaldocs.domains.collaboration.services import CollaborationService

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load collaboration data"


class DocumentCollaboration:
    """Живое состояние совместной работы для пары (документ, текущий пользователь).

    Держит три коллекции: соавторы, комментарии и активные пользователи.
    Каждая мутация сначала пишет в БД и только после успеха меняет
    локальную коллекцию. При ошибке коллекция не меняется, исключение
    пробрасывается вызывающему, а в канал уведомлений уходит сообщение.

    Каждое обращение к БД идет через отдельную сессию из `session_factory`,
    поэтому начальные чтения выполняются параллельно.
    """

    def __init__(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        session_factory=SessionLocal,
        feed: Optional[ChangeFeed] = None,
        notifier: Optional[Notifier] = None,
        on_change: Optional[Callable[[str], None]] = None,
        heartbeat_interval: Optional[float] = None,
        sweep_interval: Optional[float] = None,
        presence_window: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.document_id = document_id
        self.user_id = user_id
        self.collaborators: List[Collaborator] = []
        self.comments: List[Comment] = []
        self.active_users: List[PresenceRecord] = []
        self.state = CollaborationState.LOADING
        self.error: Optional[str] = None
        self.closed = False

        self.notifier = notifier or Notifier()
        self._session_factory = session_factory
        self._feed = feed or change_feed
        self._on_change = on_change
        self._heartbeat_interval = heartbeat_interval or settings.presence_heartbeat_seconds
        self._sweep_interval = sweep_interval or settings.presence_sweep_seconds
        self._presence_window = presence_window or timedelta(minutes=settings.presence_window_minutes)
        self._clock = clock
        self._heartbeat: Optional["PresenceHeartbeat"] = None

    # Загрузка

    async def load(self) -> bool:
        """Начальная загрузка трех коллекций.

        Любая ошибка переводит состояние в FAILED без частичного заполнения.
        Повторная загрузка не выполняется, для повтора создается новый экземпляр.
        """
        if self.state is not CollaborationState.LOADING:
            raise RuntimeError(f"Collaboration data is already {self.state.value}")

        try:
            results = await asyncio.gather(
                self._read(lambda service: service.list_collaborators(self.document_id)),
                self._read(lambda service: service.list_comments(self.document_id)),
                self._read(lambda service: service.active_presence(self.document_id)),
                return_exceptions=True,
            )
            # Ошибки всех трех чтений собираются, наружу уходит первая
            errors = [r for r in results if isinstance(r, BaseException)]
            if errors:
                raise errors[0]
            collaborators, comments, active_users = results
        except Exception as e:
            logger.error(f"Error loading collaboration data for document {self.document_id}: {e}")
            self.collaborators, self.comments, self.active_users = [], [], []
            self.state = CollaborationState.FAILED
            self.error = LOAD_ERROR_MESSAGE
            self.notifier.notify("error", LOAD_ERROR_MESSAGE)
            return False

        self.collaborators = collaborators
        self.comments = comments
        self.active_users = active_users
        self.state = CollaborationState.READY
        return True

    async def refresh_presence(self) -> None:
        """Полное перечитывание активных пользователей с заменой коллекции"""
        active_users = await self._read(lambda service: service.active_presence(self.document_id))
        if self.closed:
            return
        self.active_users = active_users
        self._changed("presence")

    async def refresh_comments(self) -> None:
        comments = await self._read(lambda service: service.list_comments(self.document_id))
        if self.closed:
            return
        self.comments = comments
        self._changed("comments")

    async def refresh_collaborators(self) -> None:
        collaborators = await self._read(lambda service: service.list_collaborators(self.document_id))
        if self.closed:
            return
        self.collaborators = collaborators
        self._changed("collaborators")

    # Соавторы

    async def add_collaborator(self, email: str, role: CollaboratorRole) -> Collaborator:
        collaborator = await self._mutate(
            "adding collaborator",
            "Failed to add collaborator",
            lambda service: service.add_collaborator(self.document_id, email, role, self.user_id),
        )
        self.collaborators = [*self.collaborators, collaborator]
        self.notifier.notify("success", "Collaborator added successfully")
        return collaborator

    async def remove_collaborator(self, collaborator_id: uuid.UUID) -> None:
        await self._mutate(
            "removing collaborator",
            "Failed to remove collaborator",
            lambda service: service.remove_collaborator(self.document_id, collaborator_id),
        )
        self.collaborators = [c for c in self.collaborators if c.id != collaborator_id]
        self.notifier.notify("success", "Collaborator removed successfully")

    # Комментарии

    async def add_comment(
        self,
        content: str,
        parent_id: Optional[uuid.UUID] = None,
        position: Optional[Tuple[int, int]] = None
    ) -> Comment:
        """Добавление комментария, возвращает созданную строку"""
        position_start, position_end = position if position else (None, None)
        comment = await self._mutate(
            "adding comment",
            "Failed to add comment",
            lambda service: service.add_comment(
                self.document_id,
                self.user_id,
                content,
                parent_id=parent_id,
                position_start=position_start,
                position_end=position_end,
            ),
        )
        self.comments = [*self.comments, comment]
        return comment

    async def update_comment(self, comment_id: uuid.UUID, content: str) -> Comment:
        comment = await self._mutate(
            "updating comment",
            "Failed to update comment",
            lambda service: service.update_comment(self.document_id, comment_id, content),
        )
        self.comments = self._replace(self.comments, comment)
        return comment

    async def resolve_comment(self, comment_id: uuid.UUID) -> Comment:
        comment = await self._mutate(
            "resolving comment",
            "Failed to resolve comment",
            lambda service: service.resolve_comment(self.document_id, comment_id, self.user_id),
        )
        self.comments = self._replace(self.comments, comment)
        return comment

    async def delete_comment(self, comment_id: uuid.UUID) -> None:
        await self._mutate(
            "deleting comment",
            "Failed to delete comment",
            lambda service: service.delete_comment(self.document_id, comment_id),
        )
        self.comments = [c for c in self.comments if c.id != comment_id]

    # Присутствие

    async def update_cursor_position(self, position: int) -> PresenceRecord:
        """Запись позиции курсора, активные пользователи обновятся через ленту изменений"""
        return await self._mutate(
            "updating cursor position",
            "Failed to update cursor position",
            lambda service: service.touch_presence(self.document_id, self.user_id, cursor_position=position),
        )

    async def activate(self) -> "PresenceHeartbeat":
        """Запуск heartbeat присутствия.

        Подписывается на изменения таблицы присутствия, сразу отмечает
        присутствие и запускает два цикла: heartbeat и очистку устаревших
        записей. Вызывающий обязан закрыть возвращенный объект.
        """
        if self._heartbeat is not None:
            raise RuntimeError("Presence heartbeat is already running")

        # Подписка до первой отметки: собственная запись должна попасть в active_users
        unsubscribe = self._feed.subscribe(PRESENCE_TABLE, self.document_id, self._on_presence_change)
        await self._touch_presence()

        tasks = [
            asyncio.create_task(
                self._run_every(self._heartbeat_interval, self._touch_presence),
                name=f"presence-heartbeat-{self.document_id}-{self.user_id}",
            ),
            asyncio.create_task(
                self._run_every(self._sweep_interval, self._sweep_stale_presence),
                name=f"presence-sweep-{self.document_id}-{self.user_id}",
            ),
        ]
        self._heartbeat = PresenceHeartbeat(self, tasks, unsubscribe)
        logger.info(f"User {self.user_id} joined document {self.document_id}")
        return self._heartbeat

    async def _on_presence_change(self, event: ChangeEvent) -> None:
        # Событие не применяется инкрементально: перечитываем весь набор.
        # Два перечитывания подряд могут завершиться в любом порядке.
        if self.closed:
            return
        await self.refresh_presence()

    async def _touch_presence(self) -> None:
        try:
            await self._read(lambda service: service.touch_presence(self.document_id, self.user_id))
        except Exception as e:
            logger.error(f"Error updating presence for user {self.user_id} on document {self.document_id}: {e}")

    async def _sweep_stale_presence(self) -> None:
        try:
            await self._read(lambda service: service.sweep_stale_presence(self.document_id))
        except Exception as e:
            logger.warning(f"Presence sweep failed for document {self.document_id}: {e}")

    async def _leave(self) -> None:
        try:
            await self._read(lambda service: service.leave(self.document_id, self.user_id))
        except Exception as e:
            logger.warning(f"Failed to remove presence of user {self.user_id} on document {self.document_id}: {e}")
        logger.info(f"User {self.user_id} left document {self.document_id}")

    @staticmethod
    async def _run_every(interval: float, action: Callable[[], Awaitable[None]]) -> None:
        while True:
            await asyncio.sleep(interval)
            await action()

    # Общее

    @asynccontextmanager
    async def _service(self):
        async with self._session_factory() as session:
            yield CollaborationService(
                session,
                feed=self._feed,
                clock=self._clock,
                presence_window=self._presence_window
            )

    async def _read(self, operation):
        async with self._service() as service:
            return await operation(service)

    async def _mutate(self, action: str, failure_message: str, operation):
        try:
            return await self._read(operation)
        except Exception as e:
            logger.error(f"Error {action} on document {self.document_id}: {e}")
            self.notifier.notify("error", failure_message)
            raise

    def _changed(self, collection: str) -> None:
        if self._on_change:
            self._on_change(collection)

    @staticmethod
    def _replace(items: list, updated) -> list:
        return [updated if item.id == updated.id else item for item in items]


class PresenceHeartbeat:
    """Объект управления heartbeat, закрывается при уходе из документа"""

    def __init__(
        self,
        collaboration: DocumentCollaboration,
        tasks: List[asyncio.Task],
        unsubscribe: Callable[[], None]
    ):
        self.collaboration = collaboration
        self.tasks = tasks
        self._unsubscribe = unsubscribe
        self.closed = False

    async def close(self) -> None:
        """Отписка, остановка циклов и удаление собственной записи присутствия"""
        if self.closed:
            return
        self.closed = True
        self.collaboration.closed = True

        self._unsubscribe()
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)

        await self.collaboration._leave()

    async def __aenter__(self) -> "PresenceHeartbeat":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
