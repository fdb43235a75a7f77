"""Tests for the AI memoization cache."""
import uuid

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from legaldocs.db.models import AIMemoization
from legaldocs.db.repositories.memoization_repository import MemoizationRepository
from legaldocs.domains.ai.entities import ContentKind
from legaldocs.domains.ai.services import AIMemoizationService, compute_fingerprint

MODEL = "gpt-4-0125-preview"
PROMPT = "Summarize the confidentiality obligations."


async def count_entries(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(AIMemoization))
    return result.scalar_one()


# =============================================================================
# compute_fingerprint
# =============================================================================


def test__compute_fingerprint__deterministic_sha256_hex() -> None:
    fingerprint = compute_fingerprint(PROMPT, MODEL)

    assert fingerprint == compute_fingerprint(PROMPT, MODEL)
    assert len(fingerprint) == 64
    assert all(c in "0123456789abcdef" for c in fingerprint)


def test__compute_fingerprint__sensitive_to_whitespace_and_model() -> None:
    base = compute_fingerprint(PROMPT, MODEL)

    assert compute_fingerprint(PROMPT + " ", MODEL) != base
    assert compute_fingerprint(PROMPT, "gpt-4o") != base


# =============================================================================
# lookup / store
# =============================================================================


async def test__lookup__returns_stored_content_within_ttl(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    clock,
) -> None:
    """Stored content is returned until the TTL elapses."""
    service = AIMemoizationService(db_session, clock=clock)
    await service.store("Summary text", PROMPT, MODEL, ContentKind.SUMMARY, document_id, ttl_hours=24)

    clock.advance(hours=23, minutes=59)

    assert await service.lookup(PROMPT, MODEL, ContentKind.SUMMARY, document_id) == "Summary text"


async def test__lookup__expired_entry_is_miss_and_deleted(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    clock,
) -> None:
    service = AIMemoizationService(db_session, clock=clock)
    await service.store("Summary text", PROMPT, MODEL, ContentKind.SUMMARY, document_id, ttl_hours=24)

    clock.advance(hours=24)

    assert await service.lookup(PROMPT, MODEL, ContentKind.SUMMARY, document_id) is None
    assert await count_entries(db_session) == 0


async def test__lookup__scoped_by_document_and_kind(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    other_document_id: uuid.UUID,
    clock,
) -> None:
    """The same prompt misses under a different document or content kind."""
    service = AIMemoizationService(db_session, clock=clock)
    await service.store("Summary text", PROMPT, MODEL, ContentKind.SUMMARY, document_id)

    assert await service.lookup(PROMPT, MODEL, ContentKind.RISK_ANALYSIS, document_id) is None
    assert await service.lookup(PROMPT, MODEL, ContentKind.SUMMARY, other_document_id) is None


async def test__lookup__prompt_with_trailing_space_misses(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    clock,
) -> None:
    service = AIMemoizationService(db_session, clock=clock)
    await service.store("Summary text", PROMPT, MODEL, ContentKind.SUMMARY, document_id)

    assert await service.lookup(PROMPT + " ", MODEL, ContentKind.SUMMARY, document_id) is None


async def test__store__same_fingerprint_replaces_entry(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    clock,
) -> None:
    """Storing twice keeps one row with the latest content and a fresh TTL."""
    service = AIMemoizationService(db_session, clock=clock)
    await service.store("First", PROMPT, MODEL, ContentKind.SUMMARY, document_id, ttl_hours=1)

    clock.advance(minutes=30)
    await service.store("Second", PROMPT, MODEL, ContentKind.SUMMARY, document_id, ttl_hours=1)

    clock.advance(minutes=45)

    assert await service.lookup(PROMPT, MODEL, ContentKind.SUMMARY, document_id) == "Second"
    assert await count_entries(db_session) == 1


async def test__lookup__storage_error_counts_as_miss(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    clock,
    monkeypatch,
) -> None:
    service = AIMemoizationService(db_session, clock=clock)
    await service.store("Summary text", PROMPT, MODEL, ContentKind.SUMMARY, document_id)

    async def broken_get(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(MemoizationRepository, "get", broken_get)

    assert await service.lookup(PROMPT, MODEL, ContentKind.SUMMARY, document_id) is None


async def test__store__storage_error_is_swallowed(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    clock,
    monkeypatch,
) -> None:
    service = AIMemoizationService(db_session, clock=clock)

    async def broken_save(self, entry):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(MemoizationRepository, "save", broken_save)

    await service.store("Summary text", PROMPT, MODEL, ContentKind.SUMMARY, document_id)

    assert await count_entries(db_session) == 0


async def test__store__zero_ttl_is_immediately_expired(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    clock,
) -> None:
    service = AIMemoizationService(db_session, clock=clock)
    await service.store("Summary text", PROMPT, MODEL, ContentKind.SUMMARY, document_id, ttl_hours=0)

    assert await service.lookup(PROMPT, MODEL, ContentKind.SUMMARY, document_id) is None
    assert await count_entries(db_session) == 0
