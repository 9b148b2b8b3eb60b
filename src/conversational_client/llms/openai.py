"""
OpenAI chat completions backend.

Works against api.openai.com or any OpenAI-compatible server (vLLM, Ollama's
'/v1' endpoint, ...) when 'base_url' is given.
"""

from loguru import logger
from openai import AsyncOpenAI

from conversational_client.llms.base import LLM, LLMMessage, Roles


class OpenAILLM(LLM):
    def __init__(
        self,
        model_name: str = "gpt-4o-mini",
        temperature: float = 0.3,
        seed: int | None = None,
        openai_api_key: str | None = None,
        base_url: str | None = None,
    ):
        self.model_name = model_name
        self.temperature = temperature
        self.seed = seed
        self.client = AsyncOpenAI(api_key=openai_api_key, base_url=base_url)

    async def generate(self, conversation: list[LLMMessage]) -> LLMMessage:
        completion = await self.client.chat.completions.create(
            model=self.model_name,
            messages=[{"role": message.role.value, "content": message.content} for message in conversation],  # type: ignore[misc]
            temperature=self.temperature,
            seed=self.seed,
        )
        if completion.usage is not None:
            logger.debug(
                f"{self.model_name}: {completion.usage.prompt_tokens} prompt tokens, "
                f"{completion.usage.completion_tokens} completion tokens"
            )
        return LLMMessage(content=completion.choices[0].message.content or "", role=Roles.ASSISTANT)
