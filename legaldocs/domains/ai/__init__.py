from legaldocs.domains.ai.entities import ContentKind, MemoizedContent, GenerationResult
from legaldocs.domains.ai.schemas import GenerateRequest, GenerateResponse

__all__ = [
    "ContentKind", "MemoizedContent", "GenerationResult",
    "GenerateRequest", "GenerateResponse"
]
