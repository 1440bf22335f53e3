"""
Session controller: the single source of truth for what is selected and
what is loading.

Idea generation and blueprint generation are each a Slot, a small state
machine (idle -> loading -> ready | failed) that allows one accepted
request at a time. Every request carries the slot's epoch at the moment it
was issued; a result that comes back after the epoch has moved on is
discarded, so a slow response can never overwrite a newer selection.
"""

import asyncio
from enum import Enum
from typing import List, Optional

from stackideator.constants import (
    BLUEPRINT_FAILED_MESSAGE,
    DELETE_FAILED_MESSAGE,
    IDEAS_FAILED_MESSAGE,
    LOAD_FAILED_MESSAGE,
    SAVE_FAILED_MESSAGE,
    TIMEOUT_MESSAGE,
)
from stackideator.exceptions import PersistenceFailure
from stackideator.models.blueprint import Blueprint
from stackideator.models.idea import Idea
from stackideator.models.project import SavedProject
from stackideator.services.ai_service import AIService
from stackideator.services.chat_service import ChatSession, TurnStream
from stackideator.services.project_store import ProjectStore
from stackideator.utils.config import config
from stackideator.utils.logger import logger

_DEFAULT = object()


class SlotStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class Slot:
    """State of one kind of generation plus its request token."""

    def __init__(self, name: str):
        self.name = name
        self.status = SlotStatus.IDLE
        self.error: Optional[str] = None
        self.epoch = 0

    def __repr__(self):
        return f"Slot({self.name!r}, status={self.status.value}, epoch={self.epoch})"

    @property
    def loading(self) -> bool:
        return self.status == SlotStatus.LOADING

    def begin(self) -> int:
        """Enter loading and return the token of the new request."""
        self.epoch += 1
        self.status = SlotStatus.LOADING
        self.error = None
        return self.epoch

    def is_current(self, token: int) -> bool:
        return token == self.epoch

    def succeed(self):
        self.status = SlotStatus.READY
        self.error = None

    def fail(self, message: str):
        self.status = SlotStatus.FAILED
        self.error = message

    def invalidate(self):
        """Orphan any in-flight request and go back to idle."""
        self.epoch += 1
        self.status = SlotStatus.IDLE
        self.error = None

    def force_ready(self):
        """Orphan any in-flight request and jump straight to ready."""
        self.epoch += 1
        self.succeed()


class SessionController:
    """Coordinates ideas, selection, blueprint, chat and saved projects."""

    def __init__(self, ai_service: AIService, store: ProjectStore, request_timeout=_DEFAULT):
        """
        Initialize the controller.

        Args:
            ai_service: AI service for generation and chat
            store: Saved projects store
            request_timeout: Seconds before a generation call is abandoned;
                None disables it. Defaults to the configured value.
        """
        self.ai_service = ai_service
        self.store = store
        self.request_timeout = config.request_timeout if request_timeout is _DEFAULT else request_timeout

        self.niche = ""
        self.ideas: List[Idea] = []
        self.selected_idea: Optional[Idea] = None
        self.blueprint: Optional[Blueprint] = None
        self.chat: Optional[ChatSession] = None
        self.error: Optional[str] = None

        self.ideas_slot = Slot("ideas")
        self.blueprint_slot = Slot("blueprint")

    @property
    def saved_projects(self) -> List[SavedProject]:
        return self.store.list_all()

    @property
    def suggested_niches(self) -> List[str]:
        return list(config.suggested_niches)

    def _set_selection(self, idea: Optional[Idea], blueprint: Optional[Blueprint]):
        """Replace the selection; a fresh chat session starts once both are known."""
        if self.chat is not None:
            self.chat.close()
        self.chat = None
        self.selected_idea = idea
        self.blueprint = blueprint
        if idea is not None and blueprint is not None:
            self.chat = ChatSession(self.ai_service, idea, blueprint)

    async def _run(self, slot: Slot, token: int, call, failure_message: str):
        """
        Await a backend call on behalf of a slot.

        Returns:
            (accepted, result); accepted is False when the call failed or
            the slot has moved on since the call was issued
        """
        try:
            if self.request_timeout is None:
                result = await call
            else:
                result = await asyncio.wait_for(call, timeout=self.request_timeout)
        except asyncio.CancelledError:
            if slot.is_current(token):
                slot.invalidate()
            raise
        except asyncio.TimeoutError:
            logger.error(f"{slot.name} generation timed out after {self.request_timeout}s")
            self._fail(slot, token, TIMEOUT_MESSAGE)
            return False, None
        except Exception as e:
            logger.error(f"{slot.name} generation failed: {e}")
            self._fail(slot, token, failure_message)
            return False, None

        if not slot.is_current(token):
            logger.info(f"Discarding stale {slot.name} result")
            return False, None
        return True, result

    def _fail(self, slot: Slot, token: int, message: str):
        if slot.is_current(token):
            slot.fail(message)
            self.error = message
        else:
            logger.info(f"Ignoring failure of stale {slot.name} request")

    async def generate_ideas(self, niche: str) -> bool:
        """
        Generate a new batch of ideas, clearing the current selection.

        Args:
            niche: Topic to brainstorm for; blank input is ignored

        Returns:
            True if the new ideas were accepted
        """
        niche = (niche or "").strip()
        if not niche:
            logger.warning("Ignoring blank niche")
            return False

        self.niche = niche
        self.error = None
        token = self.ideas_slot.begin()
        self.ideas = []
        self.blueprint_slot.invalidate()
        self._set_selection(None, None)

        accepted, ideas = await self._run(
            self.ideas_slot, token, self.ai_service.generate_ideas(niche), IDEAS_FAILED_MESSAGE
        )
        if not accepted:
            return False
        self.ideas = ideas
        self.ideas_slot.succeed()
        return True

    async def select_idea(self, idea: Idea) -> bool:
        """
        Select one of the generated ideas and generate its blueprint.

        Raises:
            ValueError: the idea is not among the ready ideas
        """
        if self.ideas_slot.status != SlotStatus.READY or not any(i.id == idea.id for i in self.ideas):
            raise ValueError(f"idea {idea.id} is not one of the generated ideas")
        return await self._generate_blueprint_for(idea)

    async def regenerate_blueprint(self) -> bool:
        """Generate a fresh blueprint for the selected idea."""
        if self.selected_idea is None:
            raise ValueError("no idea selected")
        return await self._generate_blueprint_for(self.selected_idea)

    async def _generate_blueprint_for(self, idea: Idea) -> bool:
        if self.selected_idea is None or self.selected_idea.id != idea.id:
            self._set_selection(idea, None)
        self.error = None
        token = self.blueprint_slot.begin()

        accepted, blueprint = await self._run(
            self.blueprint_slot,
            token,
            self.ai_service.generate_blueprint(idea.title, idea.description),
            BLUEPRINT_FAILED_MESSAGE,
        )
        if not accepted:
            return False
        self._set_selection(idea, blueprint)
        self.blueprint_slot.succeed()
        return True

    def send_message(self, text: str) -> TurnStream:
        """
        Send a chat turn about the loaded blueprint.

        Raises:
            RuntimeError: no blueprint is loaded
            TurnInFlightError: a reply is still streaming
        """
        if self.chat is None:
            raise RuntimeError("no blueprint loaded")
        return self.chat.send_turn(text)

    def save_project(self) -> Optional[SavedProject]:
        """Save the selected idea and its blueprint; None if nothing was saved."""
        if self.selected_idea is None or self.blueprint is None:
            logger.warning("Nothing to save")
            return None
        try:
            return self.store.save(self.selected_idea, self.blueprint)
        except PersistenceFailure:
            self.error = SAVE_FAILED_MESSAGE
            return None

    def delete_project(self, project_id: str) -> bool:
        try:
            self.store.delete(project_id)
        except PersistenceFailure:
            self.error = DELETE_FAILED_MESSAGE
            return False
        return True

    def load_project(self, project_id: str) -> bool:
        """Restore a saved idea and blueprint, bypassing generation."""
        try:
            idea, blueprint = self.store.load(project_id)
        except KeyError:
            logger.warning(f"No saved project with id {project_id}")
            self.error = LOAD_FAILED_MESSAGE
            return False
        self.ideas_slot.force_ready()
        self.blueprint_slot.force_ready()
        self._set_selection(idea, blueprint)
        self.error = None
        logger.info(f"Loaded project {project_id}: {idea.title}")
        return True

    def close(self):
        """Cancel any streaming chat turn and release the saved-projects storage."""
        self._set_selection(None, None)
        self.store.close()
