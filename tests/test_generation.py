"""Tests for cached generation with credit accounting."""
import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from legaldocs.core.exceptions import GenerationError, InsufficientCreditsError
from legaldocs.db.repositories.credit_repository import CreditRepository
from legaldocs.domains.ai.entities import ContentKind
from legaldocs.domains.ai.services import GenerationService
from legaldocs.domains.identity.entities import User

from tests.conftest import FakeProvider, give_credits

MODEL = "gpt-4-0125-preview"
PROMPT = "Draft a mutual NDA between two software companies."


def make_service(session: AsyncSession, provider: FakeProvider, clock) -> GenerationService:
    return GenerationService(session, provider, default_model=MODEL, ttl_hours=24, clock=clock)


async def test__generate__miss_calls_provider_and_deducts_credit(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    alice: User,
    provider: FakeProvider,
    clock,
) -> None:
    await give_credits(db_session, alice, 3)
    service = make_service(db_session, provider, clock)

    result = await service.generate(PROMPT, ContentKind.DOCUMENT_GENERATION, document_id, alice.id)

    assert result.cached is False
    assert result.model == MODEL
    assert result.content == f"Generated #1: {PROMPT}"
    assert provider.calls == [(PROMPT, MODEL)]
    assert await CreditRepository(db_session).get_balance(alice.id) == 2


async def test__generate__hit_skips_provider_and_credits(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    alice: User,
    provider: FakeProvider,
    clock,
) -> None:
    """A repeated request inside the TTL is served from the cache for free."""
    await give_credits(db_session, alice, 1)
    service = make_service(db_session, provider, clock)

    first = await service.generate(PROMPT, ContentKind.DOCUMENT_GENERATION, document_id, alice.id)
    clock.advance(hours=1)
    second = await service.generate(PROMPT, ContentKind.DOCUMENT_GENERATION, document_id, alice.id)

    assert second.cached is True
    assert second.content == first.content
    assert len(provider.calls) == 1
    assert await CreditRepository(db_session).get_balance(alice.id) == 0


async def test__generate__expired_entry_regenerates(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    alice: User,
    provider: FakeProvider,
    clock,
) -> None:
    await give_credits(db_session, alice, 2)
    service = make_service(db_session, provider, clock)

    await service.generate(PROMPT, ContentKind.SUMMARY, document_id, alice.id)
    clock.advance(hours=25)
    result = await service.generate(PROMPT, ContentKind.SUMMARY, document_id, alice.id)

    assert result.cached is False
    assert result.content == f"Generated #2: {PROMPT}"
    assert await CreditRepository(db_session).get_balance(alice.id) == 0


async def test__generate__without_credits_raises(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    bob: User,
    provider: FakeProvider,
    clock,
) -> None:
    """A user with no credit row cannot trigger a provider call."""
    service = make_service(db_session, provider, clock)

    with pytest.raises(InsufficientCreditsError):
        await service.generate(PROMPT, ContentKind.SUMMARY, document_id, bob.id)

    assert provider.calls == []


async def test__generate__provider_error_raises_generation_error(
    db_session: AsyncSession,
    document_id: uuid.UUID,
    alice: User,
    clock,
) -> None:
    """Provider failures surface as GenerationError and cost nothing."""
    await give_credits(db_session, alice, 1)
    provider = FakeProvider(error=ConnectionError("upstream timeout"))
    service = make_service(db_session, provider, clock)

    with pytest.raises(GenerationError):
        await service.generate(PROMPT, ContentKind.SUMMARY, document_id, alice.id)

    assert await CreditRepository(db_session).get_balance(alice.id) == 1


async def test__deduct__never_goes_negative(db_session: AsyncSession, alice: User) -> None:
    await give_credits(db_session, alice, 1)
    repository = CreditRepository(db_session)

    assert await repository.deduct(alice.id) is True
    assert await repository.deduct(alice.id) is False
    assert await repository.get_balance(alice.id) == 0
