from functools import lru_cache

from agents.core.llm import LLM
from api.config import get_settings
from infra.llm.ollama import OllamaLLM


@lru_cache
def _shared_llm() -> OllamaLLM:
    return OllamaLLM.from_settings(get_settings())


def get_llm() -> LLM:
    """FastAPI dependency for the gateway model; tests override it with a scripted fake."""
    return _shared_llm()
