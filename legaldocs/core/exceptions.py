class NotFoundError(LookupError):
    """Пользователь, email или строка не существует"""


class DuplicateCollaboratorError(ValueError):
    """Пользователь уже является соавтором документа"""

    def __init__(self, message: str = "User is already a collaborator on this document"):
        super().__init__(message)


class InsufficientCreditsError(Exception):
    """Недостаточно кредитов для генерации"""

    def __init__(self, message: str = "Insufficient credits"):
        super().__init__(message)


class GenerationError(RuntimeError):
    """Ошибка LLM провайдера"""

    def __init__(self, message: str = "Failed to generate document. Please try again later."):
        super().__init__(message)
