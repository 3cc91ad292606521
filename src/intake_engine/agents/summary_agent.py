"""Summary Agent - turns the collected answers into a Design Request Summary."""

from src.config import settings
from src.domain.interfaces import ILLMGateway
from src.domain.schema import DesignRequestSummary
from src.utils.logger import get_logger

logger = get_logger(__name__)


class SummaryAgent:
    """Agent producing the structured Design Request Summary."""

    DEFAULT_SYSTEM_PROMPT = """You are an AI Design Intake Assistant. Given the user's conversational input across four areas, produce a structured Design Request Summary.

Output a JSON object only (no markdown, no code fences) with exactly these keys:
- problem: What is happening today? Who is impacted? What friction or inefficiency exists? What is not working? (concise paragraph)
- desiredOutcome: What success looks like and what improvement or outcome is desired (concise paragraph)
- usersImpacted: Who is affected: roles, teams, or user segments (concise)
- businessValue: Why this matters to the business or users (concise)
- constraints: Technical limitations, operational realities, licensing, scale, workflow dependencies (concise)

Keep each value clear and concise. Use the user's own words where possible."""

    def __init__(self, gateway: ILLMGateway):
        self.gateway = gateway

    @staticmethod
    def build_user_content(opening: str, problem_framing: str, objectives: str, constraints: str) -> str:
        return (
            f"Opening / how can I help: {opening}\n\n"
            f"Problem Framing: {problem_framing}\n\n"
            f"Objectives & Business Impact: {objectives}\n\n"
            f"Constraints & Considerations: {constraints}"
        )

    async def summarize(
        self,
        opening: str,
        problem_framing: str,
        objectives: str,
        constraints: str,
    ) -> DesignRequestSummary:
        """Generate the summary.

        Raises:
            GatewayError: If the model call fails.
        """
        data = await self.gateway.call_json(
            system_prompt=self.DEFAULT_SYSTEM_PROMPT,
            user_content=self.build_user_content(opening, problem_framing, objectives, constraints),
            timeout_seconds=settings.summary_timeout_seconds,
            max_output_tokens=settings.summary_max_tokens,
            temperature=0.3,
            operation="generate_summary",
        )
        logger.info("summary_agent.summarize.complete", keys=sorted(data.keys()))
        return DesignRequestSummary.from_llm_response(data)
