"""Agent implementations, one per LLM gateway call site."""

from src.intake_engine.agents.concept_agent import ConceptAgent
from src.intake_engine.agents.follow_up_agent import FollowUpQuestionsAgent
from src.intake_engine.agents.mockup_agent import MockupAgent
from src.intake_engine.agents.section_evaluator_agent import SectionEvaluatorAgent
from src.intake_engine.agents.summary_agent import SummaryAgent

__all__ = [
    "ConceptAgent",
    "FollowUpQuestionsAgent",
    "MockupAgent",
    "SectionEvaluatorAgent",
    "SummaryAgent",
]
