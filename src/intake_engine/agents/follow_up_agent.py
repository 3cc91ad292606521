"""Follow-up Questions Agent - tailors the Constraints step to what was shared."""

from typing import Any, Dict

from src.config import settings
from src.domain.errors import MalformedResponseError
from src.domain.interfaces import ILLMGateway
from src.domain.schema import FollowUpQuestions
from src.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_INTRO = "Could you share a bit more about:"
DEFAULT_QUESTION = "What constraints or considerations should we know about?"


class FollowUpQuestionsAgent:
    """Agent generating an intro line and 2-5 follow-up questions."""

    DEFAULT_SYSTEM_PROMPT = """You are an AI Design Intake Assistant. Based on what the user has shared (project basics and objectives/outcomes), generate a short intro line and 2-5 follow-up questions for the next step: Constraints & Considerations.

Critical: Every question must reflect and build upon their previous response. Use the exact names and terms they used (e.g. project name like "Fleetloader", initiatives like "SFP integration", outcomes they mentioned). Do not use generic placeholders like "[project name]" in the final output; use the actual name or term they gave.

Style for questions:
- Reference their specific experience or product by name: "What problem the current [their project/product name] experience has?"
- Tie to their stated goals: "What specifically needs to change to enable [initiative they mentioned, e.g. SFP integration]?"
- Include scope/type when relevant: "Whether this is a UX overhaul, workflow redesign, data integration layer, or all of the above?"
- Other angles: technical constraints, operational realities, scale, or dependencies, still phrased using their context and terms.

Intro: One sentence that references something they said (e.g. "You mentioned the redesign is to integrate with SFP." or "You're focused on Fleetloader and reducing claim time."). Then the questions list follows.

Output a JSON object only (no markdown, no code fences):
{"intro":"...","questions":["...","...","..."]}

Keep intro to 1-2 sentences. Each question must be one clear sentence and must incorporate specifics from their opening and objectives (product name, initiative, or outcome)."""

    def __init__(self, gateway: ILLMGateway):
        self.gateway = gateway

    async def generate(self, opening: str, objectives: str) -> FollowUpQuestions:
        """Generate follow-up questions.

        Raises:
            GatewayError: If the call fails or the reply holds neither an
                intro nor any question.
        """
        data = await self.gateway.call_json(
            system_prompt=self.DEFAULT_SYSTEM_PROMPT,
            user_content=(
                "What they shared so far:\n\n"
                f"Basics / project: {opening}\n\n"
                f"Objectives and outcomes: {objectives}"
            ),
            timeout_seconds=settings.follow_up_timeout_seconds,
            max_output_tokens=settings.follow_up_max_tokens,
            temperature=0.4,
            operation="generate_follow_up_questions",
        )
        return self.coerce(data)

    @staticmethod
    def coerce(data: Dict[str, Any]) -> FollowUpQuestions:
        intro = data.get("intro")
        intro = intro.strip() if isinstance(intro, str) else ""
        raw_questions = data.get("questions")
        questions = [
            question
            for question in (raw_questions if isinstance(raw_questions, list) else [])
            if isinstance(question, str) and question.strip()
        ]
        if not intro and not questions:
            logger.warning("follow_up_agent.empty_reply")
            raise MalformedResponseError("The model did not return intro or questions.")
        return FollowUpQuestions(
            intro=intro or DEFAULT_INTRO,
            questions=questions or [DEFAULT_QUESTION],
        )
