"""Keyword heuristics used when the external model is unavailable."""

import re
from typing import List, Optional

from src.domain.schema import FeedbackSource, RiskFlag, Section, SectionFeedback

DEFAULT_SUGGESTION = "Review section guidelines and add specifics."


class PlaceholderEvaluator:
    """Deterministic keyword/length scorer for section answers."""

    # Opening: project type must be discernible
    INITIATIVE_PATTERN = re.compile(r"new|existing|current|initiative|product|redesign|part of", re.IGNORECASE)
    # UI words hint at a solution described before the problem
    SOLUTION_PATTERN = re.compile(r"dashboard|page|screen", re.IGNORECASE)
    METRICS_PATTERN = re.compile(r"metric|percent|time", re.IGNORECASE)
    STAKEHOLDER_PATTERN = re.compile(r"team|stakeholder|dependency", re.IGNORECASE)

    MIN_OPENING_LENGTH = 3
    MIN_SECTION_LENGTH = 10
    DETAILED_OBJECTIVES_LENGTH = 50
    MAX_DELTA = 20

    def evaluate(self, section: Section, text: Optional[str], fallback_reason: Optional[str] = None) -> SectionFeedback:
        """Score an answer without calling the model.

        Args:
            section: Section being evaluated.
            text: Raw user answer.
            fallback_reason: Upstream error that forced the fallback, if any.

        Returns:
            SectionFeedback tagged as heuristic output.
        """
        answer = (text or "").strip()
        if section == Section.OPENING:
            feedback, suggestions, delta, flags = self._evaluate_opening(answer)
        else:
            feedback, suggestions, delta, flags = self._evaluate_section(section, answer)

        return SectionFeedback(
            section=section,
            feedback=feedback,
            suggested_improvements=suggestions,
            risk_delta=delta,
            flags=flags,
            source=FeedbackSource.FALLBACK_HEURISTIC,
            fallback_reason=fallback_reason,
        )

    def _evaluate_opening(self, answer: str):
        if len(answer) < self.MIN_OPENING_LENGTH:
            return (
                "Please share the project name and whether it's a new initiative or part of an existing product.",
                ["Add the project name and indicate new vs existing initiative."],
                5,
                [RiskFlag.INCOMPLETE_ANSWER.value],
            )
        if self.INITIATIVE_PATTERN.search(answer):
            return "Thanks, that helps. We'll use this as we go through the next questions.", [], 0, []
        return (
            "Thanks for the project name. Could you confirm whether this is a new initiative "
            "or part of an existing product?",
            ["Clarify if this is a new initiative or part of an existing product."],
            3,
            [],
        )

    def _evaluate_section(self, section: Section, answer: str):
        messages: List[str] = []
        suggestions: List[str] = []
        flags: List[str] = []
        delta = 0
        is_objectives = section == Section.OBJECTIVES_AND_OUTCOMES
        incomplete = len(answer) < self.MIN_SECTION_LENGTH

        if incomplete:
            if is_objectives:
                messages.append(
                    "Please be more specific. What objectives do you want to achieve? What does success look "
                    "like for this project? Adding concrete outcomes will help the design team plan effectively."
                )
                suggestions.append("State clear objectives and desired outcomes (what success looks like).")
            else:
                messages.append("Your answer is quite short. Consider adding more detail to fully describe this section.")
                suggestions.append("Add more detail to fully describe this section.")
            delta += 5
            flags.append(RiskFlag.INCOMPLETE_ANSWER.value)

        if is_objectives and not incomplete and len(answer) < self.DETAILED_OBJECTIVES_LENGTH:
            messages.append(
                "Can you add more detail? For example: what improvement are you expecting, "
                "and why does this matter to the business or users?"
            )
            suggestions.append("Add expected improvement and business or user impact.")

        if self.SOLUTION_PATTERN.search(answer):
            messages.append(
                "This sounds solution-focused. Try describing the underlying problem or outcome instead of the UI."
            )
            suggestions.append("Describe the underlying problem or outcome instead of the UI.")
            delta += 5
            flags.append(RiskFlag.SOLUTION_BIAS.value)

        # Absence checks need an answer long enough to judge
        if not incomplete:
            if self.METRICS_PATTERN.search(answer):
                messages.append("Good, you included measurable outcomes.")
            else:
                messages.append("Consider adding a measurable outcome to strengthen this request.")
                suggestions.append("Add a measurable outcome to strengthen this request.")
                delta += 3
                flags.append(RiskFlag.MISSING_METRICS.value)

            if self.STAKEHOLDER_PATTERN.search(answer):
                messages.append("Nice, you mentioned stakeholders or dependencies.")
            else:
                messages.append("Include relevant teams, stakeholders, or dependencies.")
                suggestions.append("Include relevant teams, stakeholders, or dependencies.")
                delta += 2
                flags.append(RiskFlag.MISSING_STAKEHOLDERS.value)

        feedback = " ".join(messages).strip()
        if not feedback:
            feedback = "Thanks for sharing. Consider adding more detail to strengthen this section."
        return feedback, suggestions or [DEFAULT_SUGGESTION], min(delta, self.MAX_DELTA), flags


def evaluate_with_placeholder(
    section: Section,
    text: Optional[str],
    fallback_reason: Optional[str] = None,
) -> SectionFeedback:
    """Module-level shortcut for PlaceholderEvaluator().evaluate()."""
    return PlaceholderEvaluator().evaluate(section, text, fallback_reason)
