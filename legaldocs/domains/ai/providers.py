from abc import ABC, abstractmethod

LEGAL_SYSTEM_PROMPT = (
    "You are a legal document assistant. Generate clear, professional, "
    "and legally sound documents based on the provided information."
)


class CompletionProvider(ABC):
    """Провайдер генерации текста"""

    @abstractmethod
    async def complete(self, prompt: str, model: str) -> str:
        """Один запрос к LLM, результат недетерминирован"""


class OpenAICompletionProvider(CompletionProvider):
    """Провайдер на официальном SDK openai"""

    def __init__(
        self,
        api_key: str,
        system_prompt: str = LEGAL_SYSTEM_PROMPT,
        temperature: float = 0.7,
        max_tokens: int = 4000
    ):
        import openai

        self._client = openai.AsyncOpenAI(api_key=api_key)
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def complete(self, prompt: str, model: str) -> str:
        response = await self._client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
