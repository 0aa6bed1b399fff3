"""Text generator protocol.

The generative model boundary: a constructed prompt goes in, free-form text
comes out. Sanitizing that text into SQL is the query compiler's job.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TextGenerator(Protocol):
    """Protocol for text-completion models."""

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def generate(self, prompt: str) -> str:
        """Complete a prompt.

        Raises:
            ProviderUnavailable: If the model call fails
        """
        ...
