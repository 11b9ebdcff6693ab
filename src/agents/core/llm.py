from abc import ABC, abstractmethod
from typing import AsyncIterator


class LLM(ABC):
    """Streaming text-completion model behind the mentor gateway."""

    model: str = "unknown"

    @abstractmethod
    def stream(self, prompt: str) -> AsyncIterator[str]:
        """Yield text fragments in the order the model produces them. Failures propagate."""
        raise NotImplementedError
