"""Mockup Agent - builds an image prompt and asks the gateway for a wireframe."""

from typing import Optional

from src.config import settings
from src.domain.interfaces import ILLMGateway
from src.domain.schema import MockupImage
from src.utils.logger import get_logger

logger = get_logger(__name__)

INTENT_BUDGET = 500
OBJECTIVES_BUDGET = 200
PROMPT_BUDGET = 1000
ELLIPSIS = "…"

PROMPT_TEMPLATE = """Create a clean SaaS product UI mockup.

Screen Purpose:
A UX Design Request Intake Assistant

User Goal:
{intent}

Business Objectives:
{objectives}

Layout Should Include:
- AI assistant welcome panel
- User response area
- Request summary card
- Suggested solution preview
- Progress indicator

Style:
- Modern enterprise SaaS
- Wireframe fidelity
- Neutral tones
- Desktop layout
- Product management tooling feel

Goal:
Help teams visualize a structured design request flow before submission"""


def truncate(text: str, budget: int) -> str:
    """Cut text to budget characters, marking the cut with an ellipsis."""
    return text[:budget] + ELLIPSIS if len(text) > budget else text


def build_mockup_prompt(intent_summary: str, objectives: Optional[str] = None) -> str:
    """Fill the image prompt within its character budgets."""
    prompt = PROMPT_TEMPLATE.format(
        intent=truncate(intent_summary, INTENT_BUDGET),
        objectives=truncate(objectives or "", OBJECTIVES_BUDGET) or "Not specified",
    ).strip()
    if len(prompt) > PROMPT_BUDGET:
        prompt = prompt[: PROMPT_BUDGET - 3] + ELLIPSIS
    return prompt


class MockupAgent:
    """Agent generating the optional mockup image. Never retries."""

    def __init__(self, gateway: ILLMGateway):
        self.gateway = gateway

    async def generate(self, intent_summary: str, objectives: Optional[str] = None) -> MockupImage:
        """Generate the image. Raises GatewayError on failure."""
        prompt = build_mockup_prompt(intent_summary, objectives)
        logger.info("mockup_agent.generate.start", prompt_chars=len(prompt))
        return await self.gateway.generate_image(prompt, timeout_seconds=settings.mockup_timeout_seconds)
