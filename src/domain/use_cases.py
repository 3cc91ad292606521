"""Use cases for the intake assistant's server-boundary operations."""

from typing import Any, Optional, Tuple

from src.config import get_api_key, settings
from src.domain.errors import (
    CredentialMissingError,
    GatewayError,
    GatewayTimeoutError,
    IntakeValidationError,
    UpstreamError,
)
from src.domain.interfaces import IIntakeService, ILLMGateway
from src.domain.schema import (
    PLACEHOLDER_VALUE,
    DesignRequestSummary,
    DiagnosticResult,
    FollowUpQuestions,
    MockupResult,
    ReferenceConcept,
    Section,
    SectionFeedback,
    text_or_placeholder,
)
from src.intake_engine.agents import (
    ConceptAgent,
    FollowUpQuestionsAgent,
    MockupAgent,
    SectionEvaluatorAgent,
    SummaryAgent,
)
from src.intake_engine.heuristics import PlaceholderEvaluator
from src.utils.logger import get_logger

logger = get_logger(__name__)


def placeholder_summary(opening: str, problem_framing: str, objectives: str, constraints: str) -> DesignRequestSummary:
    """Summary assembled from the raw answers when the model is unavailable."""
    return DesignRequestSummary(
        problem=problem_framing.strip() or opening.strip() or PLACEHOLDER_VALUE,
        desired_outcome=objectives.strip() or PLACEHOLDER_VALUE,
        users_impacted=PLACEHOLDER_VALUE,
        business_value=PLACEHOLDER_VALUE,
        constraints=constraints.strip() or PLACEHOLDER_VALUE,
    )


def placeholder_concept(summary: DesignRequestSummary) -> ReferenceConcept:
    """Concept carried over from the summary when the model is unavailable."""
    return ReferenceConcept(
        experience_goal=summary.desired_outcome or PLACEHOLDER_VALUE,
        suggested_layout=PLACEHOLDER_VALUE,
        key_elements=PLACEHOLDER_VALUE,
        interaction_model=PLACEHOLDER_VALUE,
        design_considerations=summary.constraints or PLACEHOLDER_VALUE,
    )


class IntakeUseCases(IIntakeService):
    """Evaluate, summarise and visualise a design request.

    Every operation that has a placeholder degrades to it silently and
    reports the upstream error out of band. Follow-up questions are the
    one operation without a placeholder.
    """

    def __init__(self, gateway: ILLMGateway, placeholder: Optional[PlaceholderEvaluator] = None):
        """Initialize use cases with their collaborators.

        Args:
            gateway: LLM gateway shared by all agents.
            placeholder: Heuristic evaluator used on fallback.
        """
        self.gateway = gateway
        self.placeholder = placeholder or PlaceholderEvaluator()
        self.evaluator = SectionEvaluatorAgent(gateway)
        self.summary_agent = SummaryAgent(gateway)
        self.follow_up_agent = FollowUpQuestionsAgent(gateway)
        self.concept_agent = ConceptAgent(gateway)
        self.mockup_agent = MockupAgent(gateway)

    async def evaluate_section(self, section: Any, input: Any) -> SectionFeedback:
        """Evaluate one section answer.

        Raises:
            IntakeValidationError: If section is missing/unknown or input is not a string.
        """
        if not isinstance(section, str) or not section or not isinstance(input, str):
            raise IntakeValidationError("Missing or invalid section or input")
        parsed = Section.parse(section)
        if parsed is None:
            raise IntakeValidationError("Invalid section name")

        try:
            return await self.evaluator.evaluate(parsed, input)
        except GatewayError as e:
            logger.info(
                "evaluate_section.fallback",
                section=parsed.value,
                error_type=type(e).__name__,
                error=e.message,
            )
            return self.placeholder.evaluate(parsed, input, fallback_reason=e.message)

    async def generate_summary(
        self,
        opening: str = "",
        problem_framing: str = "",
        objectives: str = "",
        constraints: str = "",
    ) -> Tuple[DesignRequestSummary, Optional[str]]:
        """Generate the Design Request Summary.

        Returns:
            (summary, error). error is None when the model produced the
            summary, otherwise the upstream message behind the placeholder.
        """
        try:
            summary = await self.summary_agent.summarize(opening, problem_framing, objectives, constraints)
            return summary, None
        except GatewayError as e:
            logger.info("generate_summary.fallback", error_type=type(e).__name__, error=e.message)
            return placeholder_summary(opening, problem_framing, objectives, constraints), e.message

    async def generate_follow_up_questions(self, opening: str = "", objectives: str = "") -> FollowUpQuestions:
        """Generate tailored prompts for the Constraints step.

        Raises:
            IntakeValidationError: If both inputs are empty. No upstream call is made.
            GatewayError: If generation fails. There is no placeholder.
        """
        opening = (opening or "").strip()
        objectives = (objectives or "").strip()
        if not opening and not objectives:
            raise IntakeValidationError("At least one of opening or objectives is required.")
        return await self.follow_up_agent.generate(opening, objectives)

    async def generate_visual_concept(self, summary: Any) -> Tuple[ReferenceConcept, Optional[str]]:
        """Generate the Reference Concept for a summary.

        Args:
            summary: DesignRequestSummary or its camelCase JSON object.

        Raises:
            IntakeValidationError: If summary.problem is not a string.
        """
        parsed = self._parse_summary(summary)
        try:
            return await self.concept_agent.generate(parsed), None
        except GatewayError as e:
            logger.info("generate_visual_concept.fallback", error_type=type(e).__name__, error=e.message)
            return placeholder_concept(parsed), e.message

    @staticmethod
    def _parse_summary(summary: Any) -> DesignRequestSummary:
        if isinstance(summary, DesignRequestSummary):
            return summary
        if not isinstance(summary, dict) or not isinstance(summary.get("problem"), str):
            raise IntakeValidationError("Missing or invalid Design Request Summary")
        return DesignRequestSummary(
            problem=summary["problem"],
            desired_outcome=text_or_placeholder(summary.get("desiredOutcome")),
            users_impacted=text_or_placeholder(summary.get("usersImpacted")),
            business_value=text_or_placeholder(summary.get("businessValue")),
            constraints=text_or_placeholder(summary.get("constraints")),
        )

    async def generate_mockup(self, intent_summary: Any, objectives: Any = None) -> MockupResult:
        """Generate the mockup image.

        Raises:
            IntakeValidationError: If the intent summary is missing.
        """
        if not intent_summary:
            raise IntakeValidationError("Missing intent summary")
        try:
            image = await self.mockup_agent.generate(
                str(intent_summary),
                str(objectives) if objectives is not None else None,
            )
        except GatewayError as e:
            logger.warning("generate_mockup.failed", error_type=type(e).__name__, error=e.message)
            return MockupResult(error=e.message)
        if image.image_base64:
            return MockupResult(image=image.image_base64)
        return MockupResult(image_url=image.image_url)

    async def diagnostic_check(self) -> DiagnosticResult:
        """Probe the credential and connectivity. No side effects."""
        if not get_api_key():
            return DiagnosticResult(
                key_set=False,
                message="OPENAI_API_KEY is not set in .env.local. Add it and restart the server.",
            )
        try:
            await self.gateway.ping(settings.diagnostic_timeout_seconds)
        except UpstreamError as e:
            if e.status == 401:
                message = "Invalid API key. Create a new key with your provider and update .env.local."
            elif e.status == 429:
                message = "Rate limited. Try again in a moment."
            elif e.status is None:
                message = (
                    "Cannot reach the model provider (network error). Try a different network, "
                    "turn off VPN, or ask IT to allow the API host."
                )
            else:
                message = f"The model provider returned an error: {e.message}"
            return DiagnosticResult(key_set=True, reachable=False, error=e.message, message=message)
        except GatewayTimeoutError as e:
            return DiagnosticResult(
                key_set=True,
                reachable=False,
                error=e.message,
                message="Cannot reach the model provider (request timed out). Check your network.",
            )
        except CredentialMissingError as e:
            return DiagnosticResult(key_set=False, error=e.message, message=e.message)
        except GatewayError as e:
            return DiagnosticResult(key_set=True, reachable=False, error=e.message, message=f"Request failed: {e.message}")

        return DiagnosticResult(
            key_set=True,
            reachable=True,
            message="The model provider is working. Feedback in the form will use AI.",
        )
