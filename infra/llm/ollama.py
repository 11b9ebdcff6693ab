import logging
import time
from typing import AsyncIterator, Optional

from langchain_ollama import OllamaLLM as LangChainOllamaLLM

from agents.core.llm import LLM

logger = logging.getLogger(__name__)


class OllamaLLM(LLM):
    def __init__(
        self,
        model: str,
        temperature: float = 0.7,
        base_url: str = "http://localhost:11434",
        max_output_tokens: Optional[int] = None,
    ):
        self.model = model
        self._llm = LangChainOllamaLLM(
            model=model,
            temperature=temperature,
            base_url=base_url,
            num_predict=max_output_tokens,
        )

    @classmethod
    def from_settings(cls, settings) -> "OllamaLLM":
        return cls(
            model=settings.ollama_model,
            temperature=settings.llm_temperature,
            base_url=settings.ollama_base_url,
            max_output_tokens=settings.llm_max_output_tokens,
        )

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        # LangChain astream yields chunk objects or strings; normalize to plain text for SSE.
        start = time.perf_counter()
        count = 0
        async for chunk in self._llm.astream(prompt):
            text = getattr(chunk, "content", chunk)
            count += 1
            yield text if isinstance(text, str) else str(text)
        logger.debug(
            "ollama stream done model=%s chunks=%s duration_ms=%s",
            self.model,
            count,
            int((time.perf_counter() - start) * 1000),
        )
