"""
Abstract base class for AI services used in StackIdeator.
This provides a common interface for different AI models.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, List

from stackideator.models.blueprint import Blueprint
from stackideator.models.chat import ChatMessage
from stackideator.models.idea import Idea


class AIService(ABC):
    """Abstract base class for AI services."""

    @abstractmethod
    async def generate_ideas(self, niche: str) -> List[Idea]:
        """
        Generate a batch of application ideas for a niche.

        Args:
            niche: Topic to brainstorm for; must not be blank

        Returns:
            Ideas with freshly assigned identifiers

        Raises:
            GenerationFailure: backend error or malformed payload
        """
        pass

    @abstractmethod
    async def generate_blueprint(self, title: str, description: str) -> Blueprint:
        """
        Generate the technical blueprint for one idea.

        Args:
            title: Idea title
            description: Idea description

        Returns:
            Validated blueprint with every list populated

        Raises:
            GenerationFailure: backend error, empty or partial payload
        """
        pass

    @abstractmethod
    def stream_chat(
        self, message: str, history: List[ChatMessage], system_instruction: str
    ) -> AsyncIterator[str]:
        """
        Send one chat message and stream the reply.

        Args:
            message: The user's message
            history: Prior turns, oldest first
            system_instruction: Fixed project context for the session

        Returns:
            Async iterator over reply text fragments

        Raises:
            StreamFailure: while iterating, if the stream aborts
        """
        pass
