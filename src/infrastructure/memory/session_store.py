"""In-memory wizard session store."""

import time
from typing import Callable, Dict, Optional, Tuple
from uuid import uuid4

from src.config import settings
from src.domain.interfaces import IIntakeService, IWizardSessionStore
from src.intake_engine.runner import WizardRunner
from src.utils.logger import get_logger

logger = get_logger(__name__)


class InMemoryWizardSessionStore(IWizardSessionStore):
    """Keeps one wizard runner per session.

    Sessions untouched for longer than the idle TTL are evicted the next
    time a session is created.
    """

    def __init__(
        self,
        service_factory: Callable[[], IIntakeService],
        idle_ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._service_factory = service_factory
        self._idle_ttl = settings.wizard_session_idle_ttl_seconds if idle_ttl_seconds is None else idle_ttl_seconds
        self._clock = clock
        self._runners: Dict[str, WizardRunner] = {}
        self._last_seen: Dict[str, float] = {}

    def create(self) -> Tuple[str, WizardRunner]:
        """Start a new run and return its session id with the runner."""
        self._evict_idle()
        session_id = uuid4().hex
        runner = WizardRunner(self._service_factory())
        self._runners[session_id] = runner
        self._last_seen[session_id] = self._clock()
        return session_id, runner

    def get(self, session_id: str) -> Optional[WizardRunner]:
        runner = self._runners.get(session_id)
        if runner is not None:
            self._last_seen[session_id] = self._clock()
        return runner

    def delete(self, session_id: str) -> bool:
        """Drop a session, cancelling anything still in flight."""
        runner = self._runners.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        if runner is None:
            return False
        runner.close()
        return True

    def _evict_idle(self) -> None:
        cutoff = self._clock() - self._idle_ttl
        expired = [session_id for session_id, seen in self._last_seen.items() if seen < cutoff]
        for session_id in expired:
            self.delete(session_id)
        if expired:
            logger.info("wizard.sessions_evicted", count=len(expired), live=len(self._runners))
