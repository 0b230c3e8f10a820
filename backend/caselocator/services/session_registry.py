"""
CaseLocator Backend — Location Session Registry
================================================

What:  In-memory registry of open form sessions, one cascade controller each.
How:   Dict keyed by a random session id, insertion-ordered. When the
       registry is full the oldest session is closed to make room.
Who:   /api/location-sessions routes; closed wholesale on app shutdown.

Sessions are process-local and lost on restart. The persisted case (the
source of truth) lives in the external case API.
"""

import logging
import uuid
from typing import Dict, Optional

from caselocator.config import settings
from caselocator.exceptions import NotFoundError
from caselocator.services.cascade_controller import LocationCascadeController
from caselocator.services.directory import LocationDirectory, location_directory

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, directory: LocationDirectory, max_sessions: Optional[int] = None):
        self.directory = directory
        self.max_sessions = max_sessions or settings.max_sessions
        self._sessions: Dict[str, LocationCascadeController] = {}

    async def create(self, case_record: Optional[dict] = None) -> LocationCascadeController:
        """
        Open a session for a new case (no record) or an existing one.

        A new case loads the country list; an existing case is hydrated so
        its stored country/state/city come back with their lists loaded.
        The session is registered only once that first load has finished.
        """
        while len(self._sessions) >= self.max_sessions:
            oldest_id = next(iter(self._sessions))
            logger.warning("Session registry full (%d); closing oldest session %s",
                           self.max_sessions, oldest_id)
            await self.close(oldest_id)

        session_id = uuid.uuid4().hex
        if case_record:
            controller = LocationCascadeController.for_existing_case(
                self.directory, case_record, session_id=session_id
            )
        else:
            controller = LocationCascadeController.for_new_case(
                self.directory, session_id=session_id
            )
        try:
            if controller.hydrating:
                await controller.hydrate()
            else:
                await controller.load_countries()
        except Exception:
            await controller.aclose()
            raise
        self._sessions[session_id] = controller

        logger.info(
            "Opened location session %s (%s)",
            session_id,
            "edit" if case_record else "new",
        )
        return controller

    def get(self, session_id: str) -> LocationCascadeController:
        controller = self._sessions.get(session_id)
        if controller is None:
            raise NotFoundError(resource="location session", resource_id=session_id)
        return controller

    async def close(self, session_id: str) -> None:
        controller = self._sessions.pop(session_id, None)
        if controller is None:
            raise NotFoundError(resource="location session", resource_id=session_id)
        await controller.aclose()
        logger.info("Closed location session %s", session_id)

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)

    def __len__(self) -> int:
        return len(self._sessions)


session_registry = SessionRegistry(location_directory)


def get_session_registry() -> SessionRegistry:
    return session_registry
