"""Events consumed and effects emitted by the wizard state machine."""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from src.domain.schema import (
    DesignRequestSummary,
    FollowUpQuestions,
    MockupImage,
    ReferenceConcept,
    Section,
    SectionFeedback,
)

Artifact = Literal["follow_ups", "summary", "concept", "mockup"]


class _Message(BaseModel):
    model_config = ConfigDict(frozen=True)


# User events


class UpdateAnswer(_Message):
    """Edit the answer of the current section."""

    kind: Literal["update_answer"] = "update_answer"
    section: Section
    text: str


class Next(_Message):
    """Forward action: evaluate the current answer or advance."""

    kind: Literal["next"] = "next"


class ChooseVisual(_Message):
    """Answer the offer of a visual concept."""

    kind: Literal["choose_visual"] = "choose_visual"
    wants: bool


class Back(_Message):
    """Return to the previous step."""

    kind: Literal["back"] = "back"


class Reset(_Message):
    """Discard the run and start over."""

    kind: Literal["reset"] = "reset"


class ToggleDiagnostics(_Message):
    """Show or hide the internal diagnostic view on the final step."""

    kind: Literal["toggle_diagnostics"] = "toggle_diagnostics"


class RetryGeneration(_Message):
    """Re-issue a failed generation on explicit user request."""

    kind: Literal["retry_generation"] = "retry_generation"
    artifact: Literal["summary", "concept", "mockup"]


UserEvent = Annotated[
    Union[UpdateAnswer, Next, ChooseVisual, Back, Reset, ToggleDiagnostics, RetryGeneration],
    Field(discriminator="kind"),
]


# Result events, fed back by the runner


class EvaluationSucceeded(_Message):
    request_id: str
    feedback: SectionFeedback


class EvaluationFailed(_Message):
    request_id: str
    error: str = ""
    timed_out: bool = False


class FollowUpsReady(_Message):
    request_id: str
    value: FollowUpQuestions


class SummaryReady(_Message):
    request_id: str
    value: DesignRequestSummary
    diagnostic: Optional[str] = None


class ConceptReady(_Message):
    request_id: str
    value: ReferenceConcept
    diagnostic: Optional[str] = None


class MockupReady(_Message):
    request_id: str
    value: MockupImage


class GenerationFailed(_Message):
    artifact: Artifact
    request_id: str
    error: str = ""
    timed_out: bool = False


# Effects, executed by the runner


class EvaluateSection(_Message):
    request_id: str
    section: Section
    text: str


class GenerateFollowUps(_Message):
    request_id: str
    opening: str
    objectives: str


class GenerateSummary(_Message):
    request_id: str
    opening: str
    problem_framing: str
    objectives: str
    constraints: str


class GenerateConcept(_Message):
    request_id: str
    summary: DesignRequestSummary


class GenerateMockup(_Message):
    request_id: str
    intent_summary: str
    objectives: Optional[str] = None


Effect = Union[EvaluateSection, GenerateFollowUps, GenerateSummary, GenerateConcept, GenerateMockup]
