"""Async driver for the wizard state machine.

The runner owns one run's state and executes the effects emitted by
``transition`` as background tasks. Every task ends by feeding exactly one
result event back into the machine, which drops it if it is stale.
"""

import asyncio
from typing import Dict, Optional

from src.config import settings
from src.domain.errors import GatewayError, IntakeValidationError
from src.domain.interfaces import IIntakeService
from src.domain.schema import MockupImage
from src.intake_engine.copy import FOLLOW_UP_FALLBACK_NOTICE
from src.intake_engine.events import (
    ConceptReady,
    EvaluateSection,
    EvaluationFailed,
    EvaluationSucceeded,
    FollowUpsReady,
    GenerateConcept,
    GenerateFollowUps,
    GenerateMockup,
    GenerateSummary,
    GenerationFailed,
    MockupReady,
    SummaryReady,
)
from src.intake_engine.state import WizardRunState
from src.intake_engine.wizard import GENERIC_ERROR, initial_state, transition
from src.utils.logger import get_logger
from src.utils.tracing import get_tracer

logger = get_logger(__name__)
tracer = get_tracer(__name__)


def client_timeout_for(effect) -> Optional[float]:
    """Client-side bound on one effect. The mockup is bounded by the gateway only."""
    if isinstance(effect, EvaluateSection):
        return settings.client_evaluation_timeout_seconds
    if isinstance(effect, GenerateFollowUps):
        return settings.client_follow_up_timeout_seconds
    if isinstance(effect, GenerateSummary):
        return settings.client_summary_timeout_seconds
    if isinstance(effect, GenerateConcept):
        return settings.client_concept_timeout_seconds
    return None


def failure_event(effect, error: str = "", timed_out: bool = False):
    """Result event reporting that an effect did not produce a value."""
    if isinstance(effect, EvaluateSection):
        return EvaluationFailed(request_id=effect.request_id, error=error, timed_out=timed_out)
    if isinstance(effect, GenerateFollowUps):
        # Default prompts stay in place whatever went wrong
        return GenerationFailed(
            artifact="follow_ups", request_id=effect.request_id, error=FOLLOW_UP_FALLBACK_NOTICE
        )
    if isinstance(effect, GenerateSummary):
        artifact = "summary"
    elif isinstance(effect, GenerateConcept):
        artifact = "concept"
    else:
        artifact = "mockup"
    return GenerationFailed(artifact=artifact, request_id=effect.request_id, error=error, timed_out=timed_out)


class WizardRunner:
    """Holds one wizard run and executes its side effects."""

    def __init__(self, service: IIntakeService, state: Optional[WizardRunState] = None):
        self.service = service
        self._state = state or initial_state()
        # Keyed by request id
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def state(self) -> WizardRunState:
        return self._state

    async def dispatch(self, event) -> WizardRunState:
        """Apply a user event and start the effects it produced.

        Work the event superseded (a reset, or leaving a step mid-request)
        is cancelled and has settled by the time this returns.

        Raises:
            InvalidTransitionError: If the event is not allowed in the current step.
        """
        state = self._apply(event)
        await self._cancel_superseded()
        return state

    def _apply(self, event) -> WizardRunState:
        self._state, effects = transition(self._state, event)
        for effect in effects:
            logger.info(
                "wizard.effect_issued",
                effect=type(effect).__name__,
                request_id=effect.request_id,
                step=self._state.step.value,
            )
            task = asyncio.create_task(self._run_effect(effect))
            self._tasks[effect.request_id] = task
            task.add_done_callback(lambda _, request_id=effect.request_id: self._tasks.pop(request_id, None))
        return self._state

    async def _cancel_superseded(self) -> None:
        live = self._state.live_request_ids()
        stale = [request_id for request_id in self._tasks if request_id not in live]
        if not stale:
            return
        tasks = [self._tasks.pop(request_id) for request_id in stale]
        for task in tasks:
            task.cancel()
        logger.info("wizard.effects_cancelled", request_ids=stale)
        await asyncio.gather(*tasks, return_exceptions=True)

    def close(self) -> None:
        """Abandon the run. Outstanding effects are cancelled."""
        for task in self._tasks.values():
            task.cancel()
        self._tasks.clear()

    async def wait_idle(self) -> WizardRunState:
        """Wait until no effect is outstanding, including ones issued meanwhile."""
        while True:
            pending = [task for task in self._tasks.values() if not task.done()]
            if not pending:
                return self._state
            await asyncio.gather(*pending, return_exceptions=True)

    async def _run_effect(self, effect) -> None:
        timeout = client_timeout_for(effect)
        try:
            with tracer.start_as_current_span(f"wizard.{type(effect).__name__}") as span:
                span.set_attribute("wizard.request_id", effect.request_id)
                result = await asyncio.wait_for(self._execute(effect), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("wizard.effect_timeout", effect=type(effect).__name__, timeout_seconds=timeout)
            result = failure_event(effect, timed_out=True)
        except (GatewayError, IntakeValidationError) as e:
            logger.info("wizard.effect_failed", effect=type(effect).__name__, error=e.message)
            result = failure_event(effect, error=e.message)
        except Exception as e:
            logger.exception("wizard.effect_error", effect=type(effect).__name__, error=str(e))
            result = failure_event(effect, error=GENERIC_ERROR)
        self._apply(result)

    async def _execute(self, effect):
        if isinstance(effect, EvaluateSection):
            feedback = await self.service.evaluate_section(effect.section.value, effect.text)
            return EvaluationSucceeded(request_id=effect.request_id, feedback=feedback)

        if isinstance(effect, GenerateFollowUps):
            questions = await self.service.generate_follow_up_questions(effect.opening, effect.objectives)
            return FollowUpsReady(request_id=effect.request_id, value=questions)

        if isinstance(effect, GenerateSummary):
            summary, error = await self.service.generate_summary(
                effect.opening, effect.problem_framing, effect.objectives, effect.constraints
            )
            return SummaryReady(request_id=effect.request_id, value=summary, diagnostic=error)

        if isinstance(effect, GenerateConcept):
            concept, error = await self.service.generate_visual_concept(effect.summary)
            return ConceptReady(request_id=effect.request_id, value=concept, diagnostic=error)

        if isinstance(effect, GenerateMockup):
            result = await self.service.generate_mockup(effect.intent_summary, effect.objectives)
            if result.error or not (result.image or result.image_url):
                return failure_event(effect, error=result.error or GENERIC_ERROR)
            image = MockupImage(image_base64=result.image, image_url=result.image_url)
            return MockupReady(request_id=effect.request_id, value=image)

        raise TypeError(f"Unknown effect: {type(effect).__name__}")
