"""Section Evaluator Agent - the intake coach.

Asks the model to coach the user on one section answer and score it. The
heuristic fallback lives in the use case; this agent only ever returns
model output or raises.
"""

import math
from typing import Any, Dict, List

from src.config import settings
from src.domain.interfaces import ILLMGateway
from src.domain.schema import FeedbackSource, Section, SectionFeedback, canonical_flag
from src.intake_engine.heuristics import DEFAULT_SUGGESTION
from src.utils.logger import get_logger

logger = get_logger(__name__)

MIN_MODEL_DELTA = -10
MAX_MODEL_DELTA = 25
DEFAULT_MODEL_DELTA = 10


class SectionEvaluatorAgent:
    """Agent that turns one section answer into coaching feedback and a risk delta."""

    DEFAULT_SYSTEM_PROMPT = """You are a UX intake coach. Evaluate the user's response for the given section of a product/UX intake form.

Your role:
- Do NOT block or reject submissions. Always allow the user to proceed.
- Identify areas to strengthen and provide brief, actionable suggested improvements.
- Assign a risk_delta (number -10 to +25) that will contribute to a cumulative risk score: negative = lower risk, positive = higher risk.
- Optionally add flags when you detect: "Solution Bias" (solution described before problem), "Missing Metrics" (no success criteria), "Strategic Misalignment" (conflicts with roadmap/strategy), "Missing Stakeholders/Dependencies" (unclear or high dependencies).
- Tone: Inject a bit of light, friendly humor in your feedback when it fits, warm and gently witty, so the experience feels human and approachable. Keep it professional and never at the user's expense.

Respond with a JSON object only, no markdown, no code fences, no extra text:
{"feedback":"...","suggestedImprovements":["...","..."],"riskDelta":number,"flags":["FlagName"]}"""

    OPENING_EXTRA = """This section is the opening: the user was asked "What's the project name, and is this a new initiative or part of an existing product?"
Acknowledge what they shared and confirm you have the project name and whether it's new or existing. If something is missing or unclear, ask briefly for that (e.g. "Could you confirm whether this is a new initiative or part of an existing product?"). Keep feedback to 1-2 sentences."""

    OBJECTIVES_EXTRA = """This section is "Objectives and Outcomes". Focus on whether the user has stated clear objectives and desired outcomes. If the response is vague, short, or incomplete, your feedback must ask them to be more specific: what exactly do they want to achieve? What does success look like? Include concrete suggested improvements so they can add the missing detail."""

    def __init__(self, gateway: ILLMGateway):
        """Initialize agent with the LLM gateway.

        Args:
            gateway: Gateway used for the evaluation call.
        """
        self.gateway = gateway

    def system_prompt_for(self, section: Section) -> str:
        """Base prompt plus the section-specific augmentation."""
        if section == Section.OPENING:
            return f"{self.DEFAULT_SYSTEM_PROMPT}\n\n{self.OPENING_EXTRA}"
        if section == Section.OBJECTIVES_AND_OUTCOMES:
            return f"{self.DEFAULT_SYSTEM_PROMPT}\n\n{self.OBJECTIVES_EXTRA}"
        return self.DEFAULT_SYSTEM_PROMPT

    async def evaluate(self, section: Section, text: str) -> SectionFeedback:
        """Evaluate an answer with the external model.

        Args:
            section: Section being answered.
            text: The user's answer.

        Returns:
            SectionFeedback with source external-model.

        Raises:
            GatewayError: If the model call fails in any way.
        """
        logger.info("section_evaluator.evaluate.start", section=section.value)
        data = await self.gateway.call_json(
            system_prompt=self.system_prompt_for(section),
            user_content=f"Section: {section.value}\n\nUser response:\n{text}",
            timeout_seconds=settings.evaluation_timeout_seconds,
            max_output_tokens=settings.evaluation_max_tokens,
            temperature=0.3,
            operation="evaluate_section",
        )
        feedback = self.coerce_feedback(section, data)
        logger.info(
            "section_evaluator.evaluate.complete",
            section=section.value,
            risk_delta=feedback.risk_delta,
            flags=feedback.flags,
        )
        return feedback

    @staticmethod
    def coerce_feedback(section: Section, data: Dict[str, Any]) -> SectionFeedback:
        """Map a loosely-typed model reply onto SectionFeedback."""
        feedback = data.get("feedback")
        suggestions = _strings(data.get("suggestedImprovements"))
        flags: List[str] = []
        for flag in _strings(data.get("flags")):
            name = canonical_flag(flag)
            if name and name not in flags:
                flags.append(name)

        return SectionFeedback(
            section=section,
            feedback=feedback if isinstance(feedback, str) else "Thanks for sharing.",
            suggested_improvements=suggestions or [DEFAULT_SUGGESTION],
            risk_delta=_risk_delta(data),
            flags=flags,
            source=FeedbackSource.EXTERNAL_MODEL,
        )


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _risk_delta(data: Dict[str, Any]) -> int:
    raw = data.get("riskDelta")
    if not _number(raw):
        raw = data.get("risk_delta")
    if not _number(raw):
        raw = DEFAULT_MODEL_DELTA
    return max(MIN_MODEL_DELTA, min(MAX_MODEL_DELTA, round(raw)))
