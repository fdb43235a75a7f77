import hashlib
import logging
from typing import Callable, Optional
from datetime import datetime
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from legaldocs.core.clock import utcnow
from legaldocs.core.config import settings
from legaldocs.core.exceptions import GenerationError, InsufficientCreditsError
from legaldocs.db.repositories.credit_repository import CreditRepository
from legaldocs.db.repositories.memoization_repository import MemoizationRepository
from legaldocs.domains.ai.entities import ContentKind, GenerationResult, MemoizedContent
from legaldocs.domains.ai.providers import CompletionProvider

logger = logging.getLogger(__name__)


def compute_fingerprint(prompt: str, model: str) -> str:
    """SHA-256 от буквального текста промпта и идентификатора модели.

    Любое изменение промпта, включая пробелы, дает другой отпечаток.
    """
    return hashlib.sha256((prompt + model).encode("utf-8")).hexdigest()


class AIMemoizationService:
    """Кэш ответов LLM с ограниченным временем жизни.

    Ошибки хранилища никогда не блокируют генерацию: при чтении это
    промах, при записи ошибка логируется и игнорируется.
    """

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.repository = MemoizationRepository(session)
        self._clock = clock

    async def lookup(
        self,
        prompt: str,
        model: str,
        kind: ContentKind,
        document_id: uuid.UUID
    ) -> Optional[str]:
        """Закэшированный контент или None при промахе"""
        fingerprint = compute_fingerprint(prompt, model)

        try:
            entry = await self.repository.get(fingerprint, document_id, kind)
        except SQLAlchemyError as e:
            logger.warning(f"AI cache lookup failed for document {document_id}: {e}")
            await self.session.rollback()
            return None

        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            await self._delete_expired(fingerprint)
            return None

        return entry.content

    async def store(
        self,
        content: str,
        prompt: str,
        model: str,
        kind: ContentKind,
        document_id: uuid.UUID,
        ttl_hours: float = 24
    ) -> None:
        """Сохранение ответа, заменяет запись с тем же отпечатком"""
        entry = MemoizedContent.create_entry(
            fingerprint=compute_fingerprint(prompt, model),
            document_id=document_id,
            kind=kind,
            content=content,
            prompt=prompt,
            model=model,
            ttl_hours=ttl_hours,
            now=self._clock()
        )

        try:
            await self.repository.save(entry)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store AI cache entry for document {document_id}: {e}")
            await self.session.rollback()

    async def _delete_expired(self, fingerprint: str) -> None:
        try:
            await self.repository.delete(fingerprint)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to delete expired AI cache entry {fingerprint[:12]}: {e}")
            await self.session.rollback()


class GenerationService:
    """Генерация через LLM с кэшем и списанием кредитов"""

    def __init__(
        self,
        session: AsyncSession,
        provider: CompletionProvider,
        default_model: Optional[str] = None,
        ttl_hours: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.session = session
        self.provider = provider
        self.default_model = default_model or settings.openai_model
        self.ttl_hours = settings.ai_cache_ttl_hours if ttl_hours is None else ttl_hours
        self.memoization = AIMemoizationService(session, clock=clock)
        self.credit_repository = CreditRepository(session)

    async def generate(
        self,
        prompt: str,
        kind: ContentKind,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        model: Optional[str] = None
    ) -> GenerationResult:
        """Ответ из кэша или новая генерация.

        Попадание в кэш бесплатно. Промах требует хотя бы одного кредита,
        кредит списывается только после успешного ответа провайдера.
        Параллельные промахи по одному отпечатку могут оба вызвать
        провайдера, побеждает последняя запись в кэш.
        """
        model = model or self.default_model

        cached = await self.memoization.lookup(prompt, model, kind, document_id)
        if cached is not None:
            logger.info(f"AI cache hit for document {document_id} ({kind.value})")
            return GenerationResult(content=cached, model=model, cached=True)

        if await self.credit_repository.get_balance(user_id) < 1:
            raise InsufficientCreditsError()

        try:
            content = await self.provider.complete(prompt, model)
        except Exception as e:
            logger.error(f"Generation provider error for document {document_id}: {e}")
            raise GenerationError() from e

        if not await self.credit_repository.deduct(user_id, 1):
            # Баланс ушел в ноль параллельным запросом
            raise InsufficientCreditsError()

        await self.memoization.store(content, prompt, model, kind, document_id, ttl_hours=self.ttl_hours)
        logger.info(f"Generated {kind.value} for document {document_id} with {model}")

        return GenerationResult(content=content, model=model, cached=False)
