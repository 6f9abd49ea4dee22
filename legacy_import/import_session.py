"""
Import Session Management
Tracks the state of one import run: current phase, per-family statistics and cancellation
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ImportPhase(Enum):
    """Import phases in order"""
    INITIALIZATION = "initialization"
    SCHOOLS = "schools"
    CLASS_GROUPS = "class_groups"
    ACTIVITIES = "activities"
    STUDENTS = "students"
    COMPLETION = "completion"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ImportSession:
    """
    State of one import run.
    Cancellation is cooperative: the service checks is_cancelled() between families and records.
    """

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id or f"import_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        self.current_phase = ImportPhase.INITIALIZATION
        self.start_time = datetime.now()
        self._cancel_event = asyncio.Event()

        # Statistics
        self.stats = {
            family: {"parsed": 0, "mapped": 0, "warnings": 0, "errors": 0}
            for family in ("schools", "class_groups", "activities", "students")
        }

    async def start_phase(self, phase: ImportPhase):
        """Start a new import phase"""
        logger.info(f"Starting import phase: {phase.value}")
        self.current_phase = phase

    def record_mapping(self, family: str, parsed: int, mapped: int, warnings: int, errors: int):
        self.stats[family].update(parsed=parsed, mapped=mapped, warnings=warnings, errors=errors)

    def cancel(self):
        """Request cancellation of the run"""
        logger.warning(f"Cancellation requested for {self.session_id}")
        self._cancel_event.set()

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def get_session_summary(self) -> Dict[str, Any]:
        """Get session summary"""
        duration = datetime.now() - self.start_time

        return {
            "session_id": self.session_id,
            "current_phase": self.current_phase.value,
            "duration_seconds": duration.total_seconds(),
            "start_time": self.start_time.isoformat(),
            "cancelled": self.is_cancelled(),
            "statistics": self.stats,
        }


# Global session instance
import_session: Optional[ImportSession] = None


def get_import_session() -> Optional[ImportSession]:
    """Get the current import session"""
    return import_session


def create_import_session(session_id: Optional[str] = None) -> ImportSession:
    """Create a new import session"""
    global import_session
    import_session = ImportSession(session_id)
    return import_session


def clear_import_session():
    """Clear the current import session"""
    global import_session
    import_session = None
