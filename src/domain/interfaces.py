"""Port interfaces using Python Protocol for structural subtyping."""

from typing import Any, Dict, Optional, Protocol, Tuple

from src.domain.schema import (
    DesignRequestSummary,
    DiagnosticResult,
    FollowUpQuestions,
    MockupImage,
    MockupResult,
    ReferenceConcept,
    SectionFeedback,
)


class ILLMGateway(Protocol):
    """Port for external model calls."""

    async def call_json(
        self,
        system_prompt: str,
        user_content: str,
        timeout_seconds: float,
        max_output_tokens: int,
        temperature: float = 0.3,
        operation: str = "chat_json",
    ) -> Dict[str, Any]:
        """Run a chat completion and return the JSON object in its reply.

        Raises:
            GatewayError: When no usable JSON object could be obtained.
        """
        ...

    async def generate_image(self, prompt: str, timeout_seconds: float) -> MockupImage:
        """Generate one image. Raises GatewayError on failure."""
        ...

    async def ping(self, timeout_seconds: float) -> None:
        """Prove credential and connectivity. Raises GatewayError on failure."""
        ...


class IIntakeService(Protocol):
    """Server-boundary operations consumed by the wizard runner."""

    async def evaluate_section(self, section: Any, input: Any) -> SectionFeedback:
        """Evaluate one answer, falling back to the heuristic."""
        ...

    async def generate_summary(
        self,
        opening: str,
        problem_framing: str,
        objectives: str,
        constraints: str,
    ) -> Tuple[DesignRequestSummary, Optional[str]]:
        """Return the summary and the upstream error when it is a placeholder."""
        ...

    async def generate_follow_up_questions(self, opening: str, objectives: str) -> FollowUpQuestions:
        """Generate tailored Constraints prompts. Raises GatewayError on failure."""
        ...

    async def generate_visual_concept(self, summary: Any) -> Tuple[ReferenceConcept, Optional[str]]:
        """Return the concept and the upstream error when it is a placeholder."""
        ...

    async def generate_mockup(self, intent_summary: Any, objectives: Any = None) -> MockupResult:
        """Generate a mockup image or describe why it failed."""
        ...

    async def diagnostic_check(self) -> DiagnosticResult:
        """Probe credential and connectivity without side effects."""
        ...


class IWizardSessionStore(Protocol):
    """Port for holding wizard runs for the lifetime of a user session."""

    def create(self) -> Tuple[str, Any]:
        """Create a run. Returns (session_id, runner)."""
        ...

    def get(self, session_id: str) -> Optional[Any]:
        """Get the runner of a session, or None."""
        ...

    def delete(self, session_id: str) -> bool:
        """Drop a session. Returns True if it existed."""
        ...
