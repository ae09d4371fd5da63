"""
Generator interface — the only surface the pipeline core sees of a model.

Adapters translate SDK failures into ModelProviderError with a structured
`retryable` flag; the driver never inspects provider exception types.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class TextGenerator(ABC):
    """Prompt in, completion text out."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Generate a completion for a single-turn prompt.

        Raises:
            ModelProviderError: the provider rejected or failed the request.
        """
