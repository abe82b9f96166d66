"""Form session: the project the user is currently collecting data for."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fieldlog.application.storage_adapter import StorageAdapter
from fieldlog.schemas.records import Project

logger = logging.getLogger(__name__)


@dataclass
class FormSession:
    """Explicit current-project context passed to form handlers.

    Holds only the project id; the project itself is looked up through
    the adapter so a deleted project is noticed.
    """

    current_project_id: str | None = None

    def select_project(self, project_id: str | None) -> None:
        self.current_project_id = project_id or None

    def clear(self) -> None:
        self.current_project_id = None

    async def resolve_project(self, adapter: StorageAdapter) -> Project | None:
        """The selected project, or None when unset or no longer present."""
        if not self.current_project_id:
            return None
        projects = (await adapter.get_projects()).value
        for project in projects:
            if project.id == self.current_project_id:
                return project
        logger.info("Selected project %s no longer exists", self.current_project_id)
        return None
