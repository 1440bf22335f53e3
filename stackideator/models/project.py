"""
Saved project (blueprint record) model.
"""

from pydantic import BaseModel, Field

from stackideator.models.blueprint import Blueprint
from stackideator.models.idea import Idea


class SavedProject(BaseModel):
    """Timestamped snapshot of an idea and its blueprint."""

    id: str = Field(..., description="Unique, creation-order-sortable identifier")
    idea: Idea
    blueprint: Blueprint
    createdAt: int = Field(..., description="Creation time in epoch milliseconds")
