"""
Project Store for saved blueprints.

The whole collection lives under one storage key as a JSON list, most
recent first. Every write replaces the full blob.
"""

from typing import List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from stackideator.constants import STORAGE_KEY
from stackideator.exceptions import PersistenceFailure
from stackideator.models.blueprint import Blueprint
from stackideator.models.idea import Idea
from stackideator.models.project import SavedProject
from stackideator.utils.logger import logger
from stackideator.utils.utils import now_ms, timestamp_id

_projects_adapter = TypeAdapter(List[SavedProject])


class ProjectStore:
    """Ordered, durable collection of saved projects."""

    def __init__(self, storage, key: str = STORAGE_KEY):
        """
        Initialize the store and load the saved collection.

        Args:
            storage: Object with get(key)/set(key, value) semantics
            key: Storage key holding the serialized collection
        """
        self.storage = storage
        self.key = key
        self._projects: List[SavedProject] = self._load()

    def _load(self) -> List[SavedProject]:
        """Read the collection; an unreadable blob yields an empty collection."""
        try:
            raw = self.storage.get(self.key)
        except Exception as e:
            logger.error(f"Failed to read saved projects: {e}")
            return []
        if not raw:
            return []
        try:
            projects = _projects_adapter.validate_json(raw)
        except ValidationError as e:
            logger.error(f"Failed to parse saved projects, starting empty: {e}")
            return []
        logger.info(f"Loaded {len(projects)} saved projects")
        return projects

    def _persist(self, projects: List[SavedProject]):
        """Write the full collection, then commit it in memory."""
        try:
            blob = _projects_adapter.dump_json(projects).decode("utf-8")
            self.storage.set(self.key, blob)
        except Exception as e:
            logger.error(f"Failed to persist saved projects: {e}")
            raise PersistenceFailure(f"could not persist saved projects: {e}") from e
        self._projects = projects

    def __len__(self):
        return len(self._projects)

    def list_all(self) -> List[SavedProject]:
        """Saved projects, most recent first."""
        return list(self._projects)

    def get(self, project_id: str) -> Optional[SavedProject]:
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    def save(self, idea: Idea, blueprint: Blueprint) -> SavedProject:
        """
        Save a snapshot of an idea and its blueprint.

        Args:
            idea: The selected idea
            blueprint: Its blueprint

        Returns:
            The new record, now first in list_all()

        Raises:
            PersistenceFailure: the collection could not be written; the
                in-memory collection is left unchanged
        """
        record = SavedProject(
            id=timestamp_id(),
            idea=idea.model_copy(deep=True),
            blueprint=blueprint.model_copy(deep=True),
            createdAt=now_ms(),
        )
        self._persist([record] + self._projects)
        logger.info(f"Saved project {record.id}: {idea.title}")
        return record

    def delete(self, project_id: str):
        """Remove a saved project; deleting an unknown id is a no-op."""
        remaining = [p for p in self._projects if p.id != project_id]
        if len(remaining) == len(self._projects):
            logger.debug(f"No saved project with id {project_id}")
            return
        self._persist(remaining)
        logger.info(f"Deleted project {project_id}")

    def load(self, project_id: str) -> Tuple[Idea, Blueprint]:
        """
        Return copies of the idea and blueprint stored in a record.

        Raises:
            KeyError: no record with that id
        """
        project = self.get(project_id)
        if project is None:
            raise KeyError(project_id)
        return project.idea.model_copy(deep=True), project.blueprint.model_copy(deep=True)

    def clear(self):
        """Delete every saved project."""
        self._persist([])
        logger.info("Cleared saved projects")

    def close(self):
        """Release the underlying storage, if it holds a connection."""
        close = getattr(self.storage, "close", None)
        if close is not None:
            close()
