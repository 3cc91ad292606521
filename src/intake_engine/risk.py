"""Cumulative risk score and flag accumulation."""

from typing import Iterable, Tuple

from pydantic import BaseModel, ConfigDict

from src.domain.schema import RecommendedAction, RiskFlag, canonical_flag

MIN_SCORE = 0
MAX_SCORE = 100

STRATEGIC_REVIEW_THRESHOLD = 70
CLARIFICATION_THRESHOLD = 45


class RiskState(BaseModel):
    """Bounded score plus the distinct flags raised so far in a run."""

    model_config = ConfigDict(frozen=True)

    score: int = 0
    flags: Tuple[str, ...] = ()


def clamp(value: int, low: int = MIN_SCORE, high: int = MAX_SCORE) -> int:
    return max(low, min(high, value))


def apply_delta(state: RiskState, delta: int) -> RiskState:
    """Add a risk delta, keeping the score within [0, 100]."""
    return state.model_copy(update={"score": clamp(state.score + delta)})


def merge_flags(state: RiskState, flags: Iterable[str]) -> RiskState:
    """Union new flags into the state, preserving first-seen order."""
    merged = list(state.flags)
    for flag in flags:
        name = canonical_flag(flag)
        if name and name not in merged:
            merged.append(name)
    return state.model_copy(update={"flags": tuple(merged)})


def recommended_action(score: int, flags: Iterable[str]) -> RecommendedAction:
    """Derive the recommended next action from score and flags.

    Strategic Misalignment short-circuits the score thresholds.
    """
    names = [name for name in (canonical_flag(flag) for flag in flags) if name]
    if RiskFlag.STRATEGIC_MISALIGNMENT.value in names or score >= STRATEGIC_REVIEW_THRESHOLD:
        return RecommendedAction.STRATEGIC_REVIEW_REQUIRED
    if names or score >= CLARIFICATION_THRESHOLD:
        return RecommendedAction.CLARIFICATION_CALL_RECOMMENDED
    return RecommendedAction.BACKLOG_READY
