"""
Shared data models for generated application ideas.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator


class Difficulty(str, Enum):
    """Ordered difficulty scale of an idea."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"

    @property
    def rank(self) -> int:
        return list(Difficulty).index(self)

    @classmethod
    def _coerce(cls, other):
        if isinstance(other, cls):
            return other
        if isinstance(other, str):
            return cls(other)
        return None

    # str ordering would be alphabetical
    def __lt__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self.rank >= other.rank


class IdeaDraft(BaseModel):
    """An idea as returned by the model, before an identifier is assigned."""

    title: str = Field(..., description="A catchy, descriptive name for the application")
    tagline: str = Field(..., description="One-sentence pitch")
    description: str = Field(..., description="What the application does and for whom")
    difficulty: Difficulty = Field(..., description="Beginner, Intermediate, Advanced, or Expert")
    coreFeatures: List[str] = Field(..., description="List exactly 10 distinct features")
    techStackHighlights: List[str] = Field(..., description="Notable libraries, services or techniques")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value.strip()


class Idea(IdeaDraft):
    """Model representing a generated idea held in the session."""

    id: str = Field(..., description="Client-assigned identifier, unique across batches")

    @classmethod
    def from_draft(cls, draft: IdeaDraft, idea_id: str) -> "Idea":
        return cls(id=idea_id, **draft.model_dump())
