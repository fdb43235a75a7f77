from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from legaldocs.core.auth import get_current_user
from legaldocs.core.config import settings
from legaldocs.core.db import get_db
from legaldocs.core.exceptions import GenerationError, InsufficientCreditsError
from legaldocs.db.repositories.document_repository import DocumentRepository
from legaldocs.domains.ai.providers import CompletionProvider, OpenAICompletionProvider
from legaldocs.domains.ai.schemas import GenerateRequest, GenerateResponse
from legaldocs.domains.ai.services import GenerationService
from legaldocs.domains.identity.entities import User

router = APIRouter(prefix="/ai", tags=["ai"])


@lru_cache
def get_completion_provider() -> CompletionProvider:
    return OpenAICompletionProvider(api_key=settings.openai_api_key)


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    request: GenerateRequest,
    current_user: User = Depends(get_current_user),
    provider: CompletionProvider = Depends(get_completion_provider),
    db: AsyncSession = Depends(get_db)
):
    """Генерация контента с кэшированием по отпечатку промпта"""
    if not await DocumentRepository(db).exists(request.document_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found"
        )

    generation_service = GenerationService(db, provider)

    try:
        result = await generation_service.generate(
            prompt=request.prompt,
            kind=request.kind,
            document_id=request.document_id,
            user_id=current_user.id,
            model=request.model
        )
    except InsufficientCreditsError as e:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(e))
    except GenerationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return GenerateResponse.model_validate(result)
