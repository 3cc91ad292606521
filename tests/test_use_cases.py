"""Tests for the placeholder heuristic and the intake use cases."""

import pytest

from src.config import settings
from src.domain.errors import (
    CredentialMissingError,
    GatewayTimeoutError,
    IntakeValidationError,
    UpstreamError,
)
from src.domain.schema import PLACEHOLDER_VALUE, FeedbackSource, RiskFlag, Section
from src.domain.use_cases import IntakeUseCases
from src.intake_engine.heuristics import PlaceholderEvaluator, evaluate_with_placeholder


@pytest.fixture
def evaluator():
    return PlaceholderEvaluator()


@pytest.fixture
def use_cases(mock_gateway):
    return IntakeUseCases(mock_gateway)


class TestPlaceholderEvaluator:
    """Tests for the keyword heuristic."""

    def test_opening_with_initiative_keyword(self, evaluator):
        feedback = evaluator.evaluate(Section.OPENING, "Project Nova — new initiative")
        assert feedback.risk_delta == 0
        assert feedback.flags == []
        assert feedback.source == FeedbackSource.FALLBACK_HEURISTIC

    def test_opening_without_project_type(self, evaluator):
        feedback = evaluator.evaluate(Section.OPENING, "Nova")
        assert feedback.risk_delta == 3
        assert feedback.flags == []

    def test_opening_too_short(self, evaluator):
        feedback = evaluator.evaluate(Section.OPENING, "ab")
        assert feedback.risk_delta == 5
        assert feedback.flags == [RiskFlag.INCOMPLETE_ANSWER.value]

    def test_short_constraints_answer(self, evaluator):
        feedback = evaluator.evaluate(Section.CONSTRAINTS_AND_CONSIDERATIONS, "tbd")
        assert feedback.risk_delta == 5
        assert RiskFlag.INCOMPLETE_ANSWER.value in feedback.flags

    def test_solution_focused_objectives(self, evaluator):
        """Test the three triggers add up and the extra clause fires."""
        feedback = evaluator.evaluate(Section.OBJECTIVES_AND_OUTCOMES, "We need a new dashboard")
        assert feedback.risk_delta == 10
        assert feedback.flags == [
            RiskFlag.SOLUTION_BIAS.value,
            RiskFlag.MISSING_METRICS.value,
            RiskFlag.MISSING_STAKEHOLDERS.value,
        ]
        assert "Can you add more detail?" in feedback.feedback

    def test_messages_follow_check_order(self, evaluator):
        feedback = evaluator.evaluate(Section.CONSTRAINTS_AND_CONSIDERATIONS, "A new screen for the support team")
        assert feedback.feedback.index("solution-focused") < feedback.feedback.index("measurable outcome")
        assert feedback.feedback.index("measurable outcome") < feedback.feedback.index("stakeholders")

    def test_well_formed_answer(self, evaluator):
        feedback = evaluator.evaluate(
            Section.CONSTRAINTS_AND_CONSIDERATIONS,
            "Rollout time is one quarter and the platform team owns the API dependency.",
        )
        assert feedback.risk_delta == 0
        assert feedback.flags == []
        assert feedback.suggested_improvements

    @pytest.mark.parametrize("section", list(Section))
    @pytest.mark.parametrize("text", ["ab", "We need a new dashboard", "Rollout time is one quarter for the team."])
    def test_same_input_gives_same_feedback(self, evaluator, section, text):
        first = evaluator.evaluate(section, text)
        assert evaluator.evaluate(section, text) == first
        assert PlaceholderEvaluator().evaluate(section, text) == first

    def test_module_level_shortcut(self):
        feedback = evaluate_with_placeholder(Section.OPENING, "ab", fallback_reason="offline")
        assert feedback.fallback_reason == "offline"


class TestEvaluateSection:
    """Tests for IntakeUseCases.evaluate_section."""

    @pytest.mark.asyncio
    async def test_model_path(self, use_cases):
        feedback = await use_cases.evaluate_section("Objectives and Outcomes", "Cut claim time")
        assert feedback.source == FeedbackSource.EXTERNAL_MODEL
        assert feedback.section == Section.OBJECTIVES_AND_OUTCOMES

    @pytest.mark.asyncio
    async def test_identifier_form_is_accepted(self, use_cases):
        feedback = await use_cases.evaluate_section("ObjectivesAndOutcomes", "Cut claim time")
        assert feedback.section == Section.OBJECTIVES_AND_OUTCOMES

    @pytest.mark.asyncio
    async def test_falls_back_without_credential(self, use_cases, mock_gateway):
        mock_gateway.call_json.side_effect = CredentialMissingError()
        feedback = await use_cases.evaluate_section("Opening", "Project Nova — new initiative")

        assert feedback.source == FeedbackSource.FALLBACK_HEURISTIC
        assert feedback.risk_delta == 0
        assert "OPENAI_API_KEY" in feedback.fallback_reason

    @pytest.mark.asyncio
    @pytest.mark.parametrize("section,text", [(None, "x"), ("", "x"), ("Opening", None), ("Opening", 42)])
    async def test_invalid_input(self, use_cases, mock_gateway, section, text):
        with pytest.raises(IntakeValidationError) as exc_info:
            await use_cases.evaluate_section(section, text)
        assert exc_info.value.message == "Missing or invalid section or input"
        mock_gateway.call_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_section(self, use_cases):
        with pytest.raises(IntakeValidationError) as exc_info:
            await use_cases.evaluate_section("Budget", "lots")
        assert exc_info.value.message == "Invalid section name"


class TestGenerationUseCases:
    """Tests for summary, follow-ups, concept and mockup."""

    @pytest.mark.asyncio
    async def test_summary_placeholder(self, use_cases, mock_gateway):
        mock_gateway.call_json.side_effect = GatewayTimeoutError(25)
        summary, error = await use_cases.generate_summary("Nova", "", "Faster claims", "")

        assert summary.problem == "Nova"
        assert summary.desired_outcome == "Faster claims"
        assert summary.constraints == PLACEHOLDER_VALUE
        assert summary.users_impacted == PLACEHOLDER_VALUE
        assert "timed out" in error

    @pytest.mark.asyncio
    async def test_summary_problem_framing_wins(self, use_cases, mock_gateway):
        mock_gateway.call_json.side_effect = UpstreamError(500, "server error")
        summary, _ = await use_cases.generate_summary("Nova", "Claims are slow", "", "")
        assert summary.problem == "Claims are slow"

    @pytest.mark.asyncio
    async def test_follow_ups_require_some_input(self, use_cases, mock_gateway):
        with pytest.raises(IntakeValidationError):
            await use_cases.generate_follow_up_questions("  ", "")
        mock_gateway.call_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_follow_ups_errors_propagate(self, use_cases, mock_gateway):
        mock_gateway.call_json.side_effect = UpstreamError(None, "Network error")
        with pytest.raises(UpstreamError):
            await use_cases.generate_follow_up_questions("Nova", "")

    @pytest.mark.asyncio
    async def test_concept_placeholder(self, use_cases, mock_gateway, sample_summary):
        mock_gateway.call_json.side_effect = UpstreamError(429, "Rate limit exceeded (429).")
        concept, error = await use_cases.generate_visual_concept(sample_summary.model_dump(by_alias=True))

        assert concept.experience_goal == sample_summary.desired_outcome
        assert concept.design_considerations == sample_summary.constraints
        assert concept.key_elements == PLACEHOLDER_VALUE
        assert error == "Rate limit exceeded (429)."

    @pytest.mark.asyncio
    async def test_concept_requires_problem(self, use_cases):
        with pytest.raises(IntakeValidationError):
            await use_cases.generate_visual_concept({"problem": 7})

    @pytest.mark.asyncio
    async def test_mockup_inline_image(self, use_cases):
        result = await use_cases.generate_mockup("Report incidents faster", None)
        assert result.image == "aGVsbG8="
        assert result.error is None

    @pytest.mark.asyncio
    async def test_mockup_failure_is_described(self, use_cases, mock_gateway):
        mock_gateway.generate_image.side_effect = UpstreamError(400, "Model provider error: bad prompt")
        result = await use_cases.generate_mockup("Report incidents faster", None)
        assert result.error == "Model provider error: bad prompt"

    @pytest.mark.asyncio
    async def test_mockup_requires_intent(self, use_cases):
        with pytest.raises(IntakeValidationError):
            await use_cases.generate_mockup("", None)


class TestDiagnosticCheck:
    """Tests for the credential and connectivity probe."""

    @pytest.fixture(autouse=True)
    def api_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    @pytest.mark.asyncio
    async def test_reachable(self, use_cases):
        result = await use_cases.diagnostic_check()
        assert result.key_set and result.reachable

    @pytest.mark.asyncio
    async def test_missing_key(self, use_cases, mock_gateway, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY")
        monkeypatch.setattr(settings, "openai_api_key", "")
        result = await use_cases.diagnostic_check()

        assert result.key_set is False
        assert "OPENAI_API_KEY" in result.message
        mock_gateway.ping.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,expected",
        [
            (UpstreamError(401, "bad key"), "Invalid API key"),
            (UpstreamError(429, "slow down"), "Rate limited"),
            (UpstreamError(None, "offline"), "network error"),
            (GatewayTimeoutError(10), "timed out"),
        ],
    )
    async def test_unreachable(self, use_cases, mock_gateway, error, expected):
        mock_gateway.ping.side_effect = error
        result = await use_cases.diagnostic_check()

        assert result.key_set is True
        assert result.reachable is False
        assert expected in result.message
