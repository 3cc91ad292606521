"""Canonical data models for the design intake wizard."""

import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PLACEHOLDER_VALUE = "—"


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def _name_key(value: str) -> str:
    return re.sub(r"[^a-z]", "", value.lower())


class Section(str, Enum):
    """Named blocks of the intake wizard that require a free-text answer."""

    OPENING = "Opening"
    OBJECTIVES_AND_OUTCOMES = "Objectives and Outcomes"
    CONSTRAINTS_AND_CONSIDERATIONS = "Constraints and Considerations"

    @classmethod
    def parse(cls, value: Any) -> Optional["Section"]:
        """Resolve a section from its display name or identifier form.

        "Objectives and Outcomes", "ObjectivesAndOutcomes" and
        "objectives_and_outcomes" all resolve to the same member.
        """
        if not isinstance(value, str) or not value.strip():
            return None
        key = _name_key(value)
        for member in cls:
            if _name_key(member.value) == key:
                return member
        return None


class WizardStep(str, Enum):
    """Position in the fixed linear wizard sequence."""

    OPENING = "opening"
    OBJECTIVES_AND_OUTCOMES = "objectives_and_outcomes"
    CONSTRAINTS_AND_CONSIDERATIONS = "constraints_and_considerations"
    SUMMARY_GENERATION = "summary_generation"
    OFFER_VISUAL = "offer_visual"
    VISUAL_CONCEPT = "visual_concept"
    FINAL = "final"


STEP_SECTIONS = {
    WizardStep.OPENING: Section.OPENING,
    WizardStep.OBJECTIVES_AND_OUTCOMES: Section.OBJECTIVES_AND_OUTCOMES,
    WizardStep.CONSTRAINTS_AND_CONSIDERATIONS: Section.CONSTRAINTS_AND_CONSIDERATIONS,
}


class RiskFlag(str, Enum):
    """Qualitative risk indicators attached to evaluations."""

    INCOMPLETE_ANSWER = "Incomplete Answer"
    SOLUTION_BIAS = "Solution Bias"
    MISSING_METRICS = "Missing Metrics"
    STRATEGIC_MISALIGNMENT = "Strategic Misalignment"
    MISSING_STAKEHOLDERS = "Missing Stakeholders/Dependencies"


_FLAG_ALIASES = {_name_key(flag.value): flag for flag in RiskFlag}
_FLAG_ALIASES[_name_key("Missing Stakeholders Or Dependencies")] = RiskFlag.MISSING_STAKEHOLDERS
_FLAG_ALIASES[_name_key("Dependency Risk")] = RiskFlag.MISSING_STAKEHOLDERS


def canonical_flag(flag: str) -> str:
    """Map known flag spellings onto their canonical name.

    Unknown flags (the model may invent its own) are returned trimmed.
    """
    known = _FLAG_ALIASES.get(_name_key(flag))
    return known.value if known else flag.strip()


class RecommendedAction(str, Enum):
    """Next action derived from the cumulative risk state."""

    BACKLOG_READY = "Backlog Ready"
    CLARIFICATION_CALL_RECOMMENDED = "Clarification Call Recommended"
    STRATEGIC_REVIEW_REQUIRED = "Strategic Review Required"


class FeedbackSource(str, Enum):
    """Provenance of a section evaluation."""

    EXTERNAL_MODEL = "external-model"
    FALLBACK_HEURISTIC = "fallback-heuristic"


class SectionFeedback(CamelModel):
    """Result of evaluating one section answer."""

    section: Section
    feedback: str = Field(description="Coaching message shown to the user")
    suggested_improvements: List[str] = Field(default_factory=list)
    risk_delta: int = Field(ge=-10, le=25, description="Contribution to the cumulative risk score")
    flags: List[str] = Field(default_factory=list)
    source: FeedbackSource
    fallback_reason: Optional[str] = Field(None, description="Upstream error when the heuristic was used")


def text_or_placeholder(value: Any) -> str:
    """Return value if it is a string, otherwise the placeholder dash."""
    return value if isinstance(value, str) else PLACEHOLDER_VALUE


class DesignRequestSummary(CamelModel):
    """Structured summary produced once all sections are answered."""

    problem: str
    desired_outcome: str
    users_impacted: str
    business_value: str
    constraints: str

    @classmethod
    def from_llm_response(cls, data: Dict[str, Any]) -> "DesignRequestSummary":
        """Build from a model reply, replacing missing or non-string fields."""
        return cls(
            problem=text_or_placeholder(data.get("problem")),
            desired_outcome=text_or_placeholder(data.get("desiredOutcome")),
            users_impacted=text_or_placeholder(data.get("usersImpacted")),
            business_value=text_or_placeholder(data.get("businessValue")),
            constraints=text_or_placeholder(data.get("constraints")),
        )


class ReferenceConcept(CamelModel):
    """Low-fidelity textual UX direction. Not a final design."""

    experience_goal: str
    suggested_layout: str
    key_elements: str
    interaction_model: str
    design_considerations: str

    @classmethod
    def from_llm_response(cls, data: Dict[str, Any]) -> "ReferenceConcept":
        """Build from a model reply, replacing missing or non-string fields."""
        return cls(
            experience_goal=text_or_placeholder(data.get("experienceGoal")),
            suggested_layout=text_or_placeholder(data.get("suggestedLayout")),
            key_elements=text_or_placeholder(data.get("keyElements")),
            interaction_model=text_or_placeholder(data.get("interactionModel")),
            design_considerations=text_or_placeholder(data.get("designConsiderations")),
        )


class FollowUpQuestions(CamelModel):
    """Tailored prompts for the Constraints step."""

    intro: str
    questions: List[str]


class MockupImage(CamelModel):
    """Generated mockup, either inline base64 bytes or a remote URL."""

    image_base64: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def src(self) -> str:
        if self.image_base64:
            return f"data:image/png;base64,{self.image_base64}"
        return self.image_url or ""


class MockupResult(CamelModel):
    """Wire result of the mockup operation."""

    image: Optional[str] = None
    image_url: Optional[str] = None
    error: Optional[str] = None


class DiagnosticResult(CamelModel):
    """Read-only health probe of the model credential and connectivity."""

    key_set: bool
    reachable: Optional[bool] = None
    message: str
    error: Optional[str] = None


class IntakeSummary(CamelModel):
    """Final read-only record of one wizard run."""

    problem_statement: str
    desired_outcome: str
    risk_score: int
    flags: List[str]
    recommended_action: RecommendedAction
    design_request_summary: Optional[DesignRequestSummary] = None
    reference_concept: Optional[ReferenceConcept] = None


# Request bodies


class EvaluateSectionRequest(CamelModel):
    """Body of the evaluate-section operation. Validated by the use case."""

    section: Any = None
    input: Any = None


class GenerateSummaryRequest(CamelModel):
    """Accumulated answers used to build the design request summary."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    opening: str = ""
    problem_framing: str = ""
    objectives: str = ""
    constraints: str = ""


class FollowUpQuestionsRequest(CamelModel):
    """Answers used to tailor the Constraints step prompts."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    opening: str = ""
    objectives: str = ""


class GenerateMockupRequest(CamelModel):
    """Inputs of the mockup image prompt."""

    intent_summary: Any = None
    objectives: Any = None
