"""Concept Agent - derives a low-fidelity Reference Concept from the summary."""

from src.config import settings
from src.domain.interfaces import ILLMGateway
from src.domain.schema import DesignRequestSummary, ReferenceConcept


class ConceptAgent:
    """Agent producing the textual Reference Concept."""

    DEFAULT_SYSTEM_PROMPT = """You are an AI Design Intake Assistant. Given a structured Design Request Summary, create a low-fidelity UX concept (Reference Concept) to support the request. This is not a final design; it is a thinking aid to accelerate alignment.

Output a JSON object only (no markdown, no code fences) with exactly these keys:
- experienceGoal: What the design should help achieve (1-2 sentences)
- suggestedLayout: High-level structure: panels, flows, hierarchy (short paragraph or bullet summary)
- keyElements: Core features or modules (bullet or short list)
- interactionModel: How the user moves through the experience (short paragraph)
- designConsiderations: Behavior, edge cases, scalability, permissions, accessibility (short paragraph or bullets)

Keep each value concise and actionable."""

    def __init__(self, gateway: ILLMGateway):
        self.gateway = gateway

    async def generate(self, summary: DesignRequestSummary) -> ReferenceConcept:
        """Generate the concept. Raises GatewayError on failure."""
        user_content = (
            "Design Request Summary:\n"
            f"Problem: {summary.problem}\n"
            f"Desired Outcome: {summary.desired_outcome}\n"
            f"Users Impacted: {summary.users_impacted}\n"
            f"Business Value: {summary.business_value}\n"
            f"Constraints: {summary.constraints}"
        )
        data = await self.gateway.call_json(
            system_prompt=self.DEFAULT_SYSTEM_PROMPT,
            user_content=user_content,
            timeout_seconds=settings.concept_timeout_seconds,
            max_output_tokens=settings.concept_max_tokens,
            temperature=0.4,
            operation="generate_visual_concept",
        )
        return ReferenceConcept.from_llm_response(data)
