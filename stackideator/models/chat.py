"""
Chat message model.
"""

from enum import Enum

from pydantic import BaseModel, Field

from stackideator.utils.utils import now_ms


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """
    One message of a chat session.

    ``text`` of an assistant message is rewritten in place while its reply
    streams in; ``id`` and ``role`` never change.
    """

    id: str
    role: Role
    text: str = ""
    timestamp: int = Field(default_factory=now_ms)
    failed: bool = False
