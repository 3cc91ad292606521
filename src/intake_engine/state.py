"""Wizard run state: a single immutable value per wizard run."""

from enum import Enum
from typing import Dict, Generic, Optional, Set, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from src.domain.schema import (
    DesignRequestSummary,
    FollowUpQuestions,
    IntakeSummary,
    MockupImage,
    RecommendedAction,
    ReferenceConcept,
    Section,
    SectionFeedback,
    WizardStep,
)
from src.intake_engine.risk import RiskState, recommended_action

T = TypeVar("T")


class RequestStatus(str, Enum):
    """Lifecycle of one generated artifact."""

    NOT_STARTED = "not_started"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Lifecycle(BaseModel, Generic[T]):
    """Request lifecycle tag for an artifact generated at most once per run."""

    model_config = ConfigDict(frozen=True)

    status: RequestStatus = RequestStatus.NOT_STARTED
    request_id: Optional[str] = None
    value: Optional[T] = None
    error: Optional[str] = None
    # Upstream error behind a placeholder value
    diagnostic: Optional[str] = None

    def start(self, request_id: str) -> "Lifecycle[T]":
        return self.model_copy(
            update={"status": RequestStatus.IN_FLIGHT, "request_id": request_id, "error": None}
        )

    def succeed(self, value: T, diagnostic: Optional[str] = None) -> "Lifecycle[T]":
        return self.model_copy(
            update={"status": RequestStatus.SUCCEEDED, "value": value, "diagnostic": diagnostic}
        )

    def fail(self, error: str) -> "Lifecycle[T]":
        return self.model_copy(update={"status": RequestStatus.FAILED, "error": error})

    def accepts(self, request_id: str) -> bool:
        """True when a result for request_id is the one currently awaited."""
        return self.status == RequestStatus.IN_FLIGHT and self.request_id == request_id

    @property
    def in_flight(self) -> bool:
        return self.status == RequestStatus.IN_FLIGHT


class PendingEvaluation(BaseModel):
    """The single evaluation call outstanding for the current step."""

    model_config = ConfigDict(frozen=True)

    section: Section
    request_id: str


class WizardRunState(BaseModel):
    """Everything one wizard run owns. Replaced, never mutated."""

    model_config = ConfigDict(frozen=True)

    generation: int = 0
    request_seq: int = 0
    step: WizardStep = WizardStep.OPENING
    answers: Dict[Section, str] = Field(default_factory=dict)
    feedback: Dict[Section, SectionFeedback] = Field(default_factory=dict)
    pending_evaluation: Optional[PendingEvaluation] = None
    step_error: Optional[str] = None
    risk: RiskState = Field(default_factory=RiskState)
    follow_ups: Lifecycle[FollowUpQuestions] = Field(default_factory=Lifecycle[FollowUpQuestions])
    summary: Lifecycle[DesignRequestSummary] = Field(default_factory=Lifecycle[DesignRequestSummary])
    wants_visual_concept: Optional[bool] = None
    concept: Lifecycle[ReferenceConcept] = Field(default_factory=Lifecycle[ReferenceConcept])
    mockup: Lifecycle[MockupImage] = Field(default_factory=Lifecycle[MockupImage])
    show_diagnostics: bool = False

    def answer(self, section: Section) -> str:
        return self.answers.get(section, "")

    @property
    def loading(self) -> bool:
        return self.pending_evaluation is not None

    def live_request_ids(self) -> Set[str]:
        """Request ids whose results this state still awaits."""
        live = {lifecycle.request_id for lifecycle in self.lifecycles() if lifecycle.in_flight}
        if self.pending_evaluation is not None:
            live.add(self.pending_evaluation.request_id)
        return live

    def lifecycles(self) -> Tuple[Lifecycle, ...]:
        return (self.follow_ups, self.summary, self.concept, self.mockup)

    @property
    def recommended_action(self) -> RecommendedAction:
        return recommended_action(self.risk.score, self.risk.flags)


def build_intake_summary(state: WizardRunState) -> IntakeSummary:
    """Assemble the final read-only record of a run."""
    return IntakeSummary(
        problem_statement=state.answer(Section.OPENING).strip(),
        desired_outcome=state.answer(Section.OBJECTIVES_AND_OUTCOMES),
        risk_score=state.risk.score,
        flags=list(state.risk.flags),
        recommended_action=state.recommended_action,
        design_request_summary=state.summary.value,
        reference_concept=state.concept.value,
    )
