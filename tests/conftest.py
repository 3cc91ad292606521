"""Shared pytest fixtures and configuration."""

import pytest
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.domain.schema import (
    DesignRequestSummary,
    FeedbackSource,
    FollowUpQuestions,
    MockupImage,
    MockupResult,
    ReferenceConcept,
    Section,
    SectionFeedback,
)


@pytest.fixture
def sample_summary() -> DesignRequestSummary:
    """Create a sample design request summary."""
    return DesignRequestSummary(
        problem="Field reps lose time re-keying incident reports.",
        desired_outcome="Reduce report completion time by 30 percent.",
        users_impacted="Field reps and claims adjusters",
        business_value="Faster claims turnaround",
        constraints="Must integrate with the existing claims API.",
    )


@pytest.fixture
def sample_concept() -> ReferenceConcept:
    """Create a sample reference concept."""
    return ReferenceConcept(
        experience_goal="Report an incident in under five minutes.",
        suggested_layout="Single-column stepped form.",
        key_elements="Progress bar, photo capture, summary card.",
        interaction_model="Guided steps with inline validation.",
        design_considerations="Offline support for poor coverage.",
    )


@pytest.fixture
def model_reply() -> dict:
    """Evaluation reply as the model would send it."""
    return {
        "feedback": "Nice start, but a number would help.",
        "suggestedImprovements": ["Add a target metric."],
        "riskDelta": 4,
        "flags": ["Missing Metrics"],
    }


@pytest.fixture
def mock_gateway(model_reply) -> MagicMock:
    """Create a mock LLM gateway."""
    gateway = MagicMock()
    gateway.call_json = AsyncMock(return_value=model_reply)
    gateway.generate_image = AsyncMock(return_value=MockupImage(image_base64="aGVsbG8="))
    gateway.ping = AsyncMock(return_value=None)
    return gateway


@pytest.fixture
def mock_service(sample_summary, sample_concept) -> MagicMock:
    """Create a mock intake service for driving the wizard runner."""
    service = MagicMock()

    async def evaluate_section(section, text):
        return SectionFeedback(
            section=Section.parse(section),
            feedback="Looks good.",
            suggested_improvements=[],
            risk_delta=3,
            flags=["Missing Metrics"],
            source=FeedbackSource.EXTERNAL_MODEL,
        )

    service.evaluate_section = AsyncMock(side_effect=evaluate_section)
    service.generate_follow_up_questions = AsyncMock(
        return_value=FollowUpQuestions(intro="You mentioned Nova.", questions=["What limits Nova today?"])
    )
    service.generate_summary = AsyncMock(return_value=(sample_summary, None))
    service.generate_visual_concept = AsyncMock(return_value=(sample_concept, None))
    service.generate_mockup = AsyncMock(return_value=MockupResult(image="aGVsbG8="))
    return service
