"""Guardian - Abstract AI Provider."""

from abc import ABC, abstractmethod
from typing import Optional


class AIProvider(ABC):
    """Abstract base for LLM campaign commentary.

    Providers consume the context built by ``build_analysis_context`` and
    return free-form text. Analysis never depends on a provider being set up.
    """

    @abstractmethod
    async def generate_analysis(
        self, context: dict, question: Optional[str] = None
    ) -> str:
        """Generate commentary from a prepared analysis context.

        Args:
            context: Output of ``build_analysis_context``.
            question: Optional specific question from the user.
                      If None, produce a general campaign assessment.

        Returns:
            The provider's text response.
        """
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is configured and ready."""
        ...
