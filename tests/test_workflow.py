"""Tests for the wizard state machine, risk model and runner."""

import asyncio

import pytest

from src.config import settings
from src.domain.errors import InvalidTransitionError, UpstreamError
from src.domain.schema import (
    FeedbackSource,
    FollowUpQuestions,
    MockupImage,
    MockupResult,
    RecommendedAction,
    RiskFlag,
    Section,
    SectionFeedback,
    WizardStep,
)
from src.infrastructure.memory.session_store import InMemoryWizardSessionStore
from src.intake_engine.copy import FOLLOW_UP_FALLBACK_NOTICE
from src.intake_engine.events import (
    Back,
    ChooseVisual,
    ConceptReady,
    EvaluateSection,
    EvaluationFailed,
    EvaluationSucceeded,
    FollowUpsReady,
    GenerateConcept,
    GenerateFollowUps,
    GenerateMockup,
    GenerateSummary,
    GenerationFailed,
    MockupReady,
    Next,
    Reset,
    RetryGeneration,
    SummaryReady,
    ToggleDiagnostics,
    UpdateAnswer,
)
from src.intake_engine.risk import RiskState, apply_delta, merge_flags, recommended_action
from src.intake_engine.runner import WizardRunner
from src.intake_engine.state import RequestStatus, build_intake_summary
from src.intake_engine.wizard import (
    EMPTY_OPENING_ERROR,
    EMPTY_SECTION_ERROR,
    TIMEOUT_ERROR,
    initial_state,
    schedule,
    transition,
)

OPENING_TEXT = "Project Nova — new initiative"
OBJECTIVES_TEXT = "Reduce claim time by 30 percent for the field team"
CONSTRAINTS_TEXT = "Must use the existing claims API"


def _feedback(section, delta=0, flags=()):
    return SectionFeedback(
        section=section,
        feedback="Thanks.",
        suggested_improvements=[],
        risk_delta=delta,
        flags=list(flags),
        source=FeedbackSource.EXTERNAL_MODEL,
    )


def _complete_section(state, section, text, delta=0, flags=()):
    """Answer, evaluate and advance one section step."""
    state, _ = transition(state, UpdateAnswer(section=section, text=text))
    state, effects = transition(state, Next())
    evaluate = effects[0]
    state, _ = transition(
        state, EvaluationSucceeded(request_id=evaluate.request_id, feedback=_feedback(section, delta, flags))
    )
    return transition(state, Next())


def _at_constraints():
    state = initial_state()
    state, _ = _complete_section(state, Section.OPENING, OPENING_TEXT)
    return _complete_section(state, Section.OBJECTIVES_AND_OUTCOMES, OBJECTIVES_TEXT, delta=4)


def _at_summary():
    state, _ = _at_constraints()
    return _complete_section(state, Section.CONSTRAINTS_AND_CONSIDERATIONS, CONSTRAINTS_TEXT)


def _at_offer(sample_summary):
    state, effects = _at_summary()
    state, _ = transition(state, SummaryReady(request_id=effects[0].request_id, value=sample_summary))
    state, _ = transition(state, Next())
    return state


class TestRiskModel:
    """Tests for score accumulation and the recommended action."""

    def test_score_is_bounded(self):
        state = apply_delta(RiskState(score=95), 25)
        assert state.score == 100
        state = apply_delta(RiskState(score=3), -10)
        assert state.score == 0

    def test_flags_are_distinct_and_ordered(self):
        state = merge_flags(RiskState(), ["Solution Bias", "Missing Metrics"])
        state = merge_flags(state, ["Missing Metrics", "Dependency Risk"])
        assert state.flags == ("Solution Bias", "Missing Metrics", RiskFlag.MISSING_STAKEHOLDERS.value)

    @pytest.mark.parametrize(
        "score,flags,expected",
        [
            (0, [], RecommendedAction.BACKLOG_READY),
            (44, [], RecommendedAction.BACKLOG_READY),
            (45, [], RecommendedAction.CLARIFICATION_CALL_RECOMMENDED),
            (10, ["Solution Bias"], RecommendedAction.CLARIFICATION_CALL_RECOMMENDED),
            (70, [], RecommendedAction.STRATEGIC_REVIEW_REQUIRED),
            (0, ["Strategic Misalignment"], RecommendedAction.STRATEGIC_REVIEW_REQUIRED),
        ],
    )
    def test_recommended_action(self, score, flags, expected):
        assert recommended_action(score, flags) == expected


class TestSectionSteps:
    """Tests for answering and evaluating section steps."""

    def test_first_forward_action_evaluates(self):
        state, _ = transition(initial_state(), UpdateAnswer(section=Section.OPENING, text=f"  {OPENING_TEXT} "))
        state, effects = transition(state, Next())

        assert effects == [EvaluateSection(request_id="g0-r1", section=Section.OPENING, text=OPENING_TEXT)]
        assert state.loading
        assert state.step == WizardStep.OPENING

    def test_second_forward_action_advances(self):
        state, effects = _complete_section(initial_state(), Section.OPENING, OPENING_TEXT, delta=3)
        assert state.step == WizardStep.OBJECTIVES_AND_OUTCOMES
        assert state.risk.score == 3
        assert effects == []

    def test_empty_opening_sets_step_error(self):
        state, effects = transition(initial_state(), Next())
        assert state.step_error == EMPTY_OPENING_ERROR
        assert effects == []
        assert not state.loading

    def test_blank_section_answer_sets_step_error(self):
        state, _ = _complete_section(initial_state(), Section.OPENING, OPENING_TEXT)
        state, _ = transition(state, UpdateAnswer(section=Section.OBJECTIVES_AND_OUTCOMES, text="   "))
        state, effects = transition(state, Next())
        assert state.step_error == EMPTY_SECTION_ERROR
        assert effects == []

    def test_forward_action_while_evaluating_is_ignored(self):
        state, _ = transition(initial_state(), UpdateAnswer(section=Section.OPENING, text=OPENING_TEXT))
        state, _ = transition(state, Next())
        again, effects = transition(state, Next())
        assert again == state
        assert effects == []

    def test_evaluated_answer_is_read_only(self):
        state, _ = transition(initial_state(), UpdateAnswer(section=Section.OPENING, text=OPENING_TEXT))
        state, effects = transition(state, Next())
        state, _ = transition(
            state, EvaluationSucceeded(request_id=effects[0].request_id, feedback=_feedback(Section.OPENING))
        )
        with pytest.raises(InvalidTransitionError):
            transition(state, UpdateAnswer(section=Section.OPENING, text="Something else"))

    def test_answer_for_another_section_is_rejected(self):
        with pytest.raises(InvalidTransitionError):
            transition(initial_state(), UpdateAnswer(section=Section.OBJECTIVES_AND_OUTCOMES, text="Goals"))

    def test_evaluation_failure_allows_retry(self):
        state, _ = transition(initial_state(), UpdateAnswer(section=Section.OPENING, text=OPENING_TEXT))
        state, effects = transition(state, Next())
        state, _ = transition(state, EvaluationFailed(request_id=effects[0].request_id, timed_out=True))

        assert state.step_error == TIMEOUT_ERROR
        assert not state.loading
        state, effects = transition(state, Next())
        assert isinstance(effects[0], EvaluateSection)
        assert effects[0].request_id == "g0-r2"

    def test_stale_evaluation_is_ignored(self):
        state, _ = transition(initial_state(), UpdateAnswer(section=Section.OPENING, text=OPENING_TEXT))
        state, _ = transition(state, Next())
        after, _ = transition(
            state, EvaluationSucceeded(request_id="g0-r99", feedback=_feedback(Section.OPENING, delta=25))
        )
        assert after == state

    def test_back_drops_pending_evaluation(self):
        state, _ = _complete_section(initial_state(), Section.OPENING, OPENING_TEXT)
        state, _ = transition(state, UpdateAnswer(section=Section.OBJECTIVES_AND_OUTCOMES, text=OBJECTIVES_TEXT))
        state, effects = transition(state, Next())
        assert state.live_request_ids() == {effects[0].request_id}

        state, _ = transition(state, Back())
        assert state.step == WizardStep.OPENING
        assert not state.loading
        assert state.live_request_ids() == set()

    def test_flags_accumulate_across_steps(self):
        state, _ = _complete_section(initial_state(), Section.OPENING, OPENING_TEXT, delta=5, flags=["Solution Bias"])
        state, _ = _complete_section(
            state, Section.OBJECTIVES_AND_OUTCOMES, OBJECTIVES_TEXT, delta=3, flags=["Solution Bias", "Missing Metrics"]
        )
        assert state.risk.score == 8
        assert state.risk.flags == ("Solution Bias", "Missing Metrics")
        assert state.recommended_action == RecommendedAction.CLARIFICATION_CALL_RECOMMENDED


class TestGenerationScheduling:
    """Tests for follow-up, summary, concept and mockup scheduling."""

    def test_follow_ups_issued_on_entering_constraints(self):
        state, effects = _at_constraints()
        assert state.step == WizardStep.CONSTRAINTS_AND_CONSIDERATIONS
        assert effects == [
            GenerateFollowUps(request_id=state.follow_ups.request_id, opening=OPENING_TEXT, objectives=OBJECTIVES_TEXT)
        ]
        assert state.follow_ups.status == RequestStatus.IN_FLIGHT

    def test_follow_ups_result_is_recorded(self):
        state, effects = _at_constraints()
        questions = FollowUpQuestions(intro="You mentioned Nova.", questions=["What limits Nova?"])
        state, _ = transition(state, FollowUpsReady(request_id=effects[0].request_id, value=questions))
        assert state.follow_ups.value == questions

    def test_back_from_constraints_drops_in_flight_follow_ups(self):
        state, effects = _at_constraints()
        stale_id = effects[0].request_id
        state, _ = transition(state, Back())

        assert state.step == WizardStep.OBJECTIVES_AND_OUTCOMES
        assert state.follow_ups.status == RequestStatus.NOT_STARTED

        state, effects = transition(state, Next())
        assert state.step == WizardStep.CONSTRAINTS_AND_CONSIDERATIONS
        assert isinstance(effects[0], GenerateFollowUps)
        assert effects[0].request_id != stale_id

    def test_back_at_opening_is_invalid(self):
        with pytest.raises(InvalidTransitionError):
            transition(initial_state(), Back())

    def test_summary_issued_once(self):
        state, effects = _at_summary()
        assert state.step == WizardStep.SUMMARY_GENERATION
        assert effects == [
            GenerateSummary(
                request_id=state.summary.request_id,
                opening=OPENING_TEXT,
                problem_framing="",
                objectives=OBJECTIVES_TEXT,
                constraints=CONSTRAINTS_TEXT,
            )
        ]
        again, effects = schedule(state)
        assert again == state
        assert effects == []

    def test_summary_failure_needs_explicit_retry(self):
        state, effects = _at_summary()
        state, more = transition(
            state, GenerationFailed(artifact="summary", request_id=effects[0].request_id, error="boom")
        )
        assert state.summary.status == RequestStatus.FAILED
        assert state.summary.error == "boom"
        assert more == []

        state, effects = transition(state, RetryGeneration(artifact="summary"))
        assert isinstance(effects[0], GenerateSummary)
        assert state.summary.in_flight

    def test_retry_requires_a_failure(self):
        state, _ = _at_summary()
        with pytest.raises(InvalidTransitionError):
            transition(state, RetryGeneration(artifact="summary"))

    def test_summary_retry_only_from_summary_step(self):
        state, effects = _at_summary()
        state, _ = transition(
            state, GenerationFailed(artifact="summary", request_id=effects[0].request_id, timed_out=True)
        )
        state, _ = transition(state, Next())
        assert state.step == WizardStep.OFFER_VISUAL

        with pytest.raises(InvalidTransitionError):
            transition(state, RetryGeneration(artifact="summary"))
        assert state.summary.status == RequestStatus.FAILED
        assert state.summary.error == TIMEOUT_ERROR

        state, _ = transition(state, Back())
        state, effects = transition(state, RetryGeneration(artifact="summary"))
        assert [type(effect) for effect in effects] == [GenerateSummary]
        assert state.summary.in_flight

    def test_concept_retry_follows_visual_choice(self, sample_summary):
        state = _at_offer(sample_summary)
        state, effects = transition(state, ChooseVisual(wants=True))
        state, _ = transition(
            state, GenerationFailed(artifact="concept", request_id=effects[0].request_id, error="boom")
        )
        state, _ = transition(state, Next())
        assert state.step == WizardStep.FINAL

        with pytest.raises(InvalidTransitionError):
            transition(state, RetryGeneration(artifact="concept"))

        state, _ = transition(state, Back())
        state, _ = transition(state, ChooseVisual(wants=True))
        state, effects = transition(state, RetryGeneration(artifact="concept"))
        assert [type(effect) for effect in effects] == [GenerateConcept]
        assert state.concept.in_flight

    def test_opt_in_issues_concept_and_mockup(self, sample_summary):
        state = _at_offer(sample_summary)
        assert state.step == WizardStep.OFFER_VISUAL

        state, effects = transition(state, ChooseVisual(wants=True))
        assert state.step == WizardStep.VISUAL_CONCEPT
        assert [type(effect) for effect in effects] == [GenerateConcept, GenerateMockup]
        mockup = effects[1]
        assert mockup.intent_summary == " ".join(
            [sample_summary.problem, sample_summary.desired_outcome, sample_summary.constraints]
        )
        assert mockup.objectives == OBJECTIVES_TEXT

        # Concept is single-slot: reaching Final does not issue it again
        state, effects = transition(state, Next())
        assert state.step == WizardStep.FINAL
        assert effects == []

    def test_opt_out_issues_concept_only(self, sample_summary):
        state = _at_offer(sample_summary)
        state, effects = transition(state, ChooseVisual(wants=False))
        assert state.step == WizardStep.FINAL
        assert [type(effect) for effect in effects] == [GenerateConcept]
        assert state.mockup.status == RequestStatus.NOT_STARTED

    def test_late_summary_triggers_concept(self, sample_summary):
        state, effects = _at_summary()
        summary_id = effects[0].request_id
        state, _ = transition(state, Next())
        state, effects = transition(state, ChooseVisual(wants=False))
        assert effects == []

        state, effects = transition(state, SummaryReady(request_id=summary_id, value=sample_summary))
        assert [type(effect) for effect in effects] == [GenerateConcept]

    def test_concept_result_and_intake_summary(self, sample_summary, sample_concept):
        state = _at_offer(sample_summary)
        state, effects = transition(state, ChooseVisual(wants=False))
        state, _ = transition(state, ConceptReady(request_id=effects[0].request_id, value=sample_concept))

        record = build_intake_summary(state)
        assert record.problem_statement == OPENING_TEXT
        assert record.desired_outcome == OBJECTIVES_TEXT
        assert record.risk_score == 4
        assert record.design_request_summary == sample_summary
        assert record.reference_concept == sample_concept

    def test_toggle_diagnostics_only_on_final(self, sample_summary):
        with pytest.raises(InvalidTransitionError):
            transition(initial_state(), ToggleDiagnostics())
        state = _at_offer(sample_summary)
        state, _ = transition(state, ChooseVisual(wants=False))
        state, _ = transition(state, ToggleDiagnostics())
        assert state.show_diagnostics

    def test_choose_visual_outside_offer_is_invalid(self):
        with pytest.raises(InvalidTransitionError):
            transition(initial_state(), ChooseVisual(wants=True))


class TestReset:
    """Tests for discarding a run."""

    def test_reset_invalidates_in_flight_work(self):
        state, _ = transition(initial_state(), UpdateAnswer(section=Section.OPENING, text=OPENING_TEXT))
        state, effects = transition(state, Next())
        state, _ = transition(state, Reset())

        assert state.generation == 1
        assert state.step == WizardStep.OPENING
        assert state.answers == {}

        state, _ = transition(
            state, EvaluationSucceeded(request_id=effects[0].request_id, feedback=_feedback(Section.OPENING, 10))
        )
        assert state.feedback == {}
        assert state.risk.score == 0

    def test_reset_from_final_restores_a_fresh_run(self, sample_summary, sample_concept):
        state, _ = _at_constraints()
        state, effects = _complete_section(
            state, Section.CONSTRAINTS_AND_CONSIDERATIONS, CONSTRAINTS_TEXT, delta=6, flags=["Missing Metrics"]
        )
        state, _ = transition(state, SummaryReady(request_id=effects[0].request_id, value=sample_summary))
        state, _ = transition(state, Next())
        state, effects = transition(state, ChooseVisual(wants=True))
        concept_id, mockup_id = effects[0].request_id, effects[1].request_id
        state, _ = transition(state, ConceptReady(request_id=concept_id, value=sample_concept))
        state, _ = transition(state, MockupReady(request_id=mockup_id, value=MockupImage(image_base64="aGVsbG8=")))
        state, _ = transition(state, Next())
        state, _ = transition(state, ToggleDiagnostics())
        assert state.step == WizardStep.FINAL
        assert state.risk.score == 10
        assert state.risk.flags == ("Missing Metrics",)

        state, effects = transition(state, Reset())

        assert effects == []
        assert state.step == WizardStep.OPENING
        assert state.risk.score == 0
        assert state.risk.flags == ()
        assert state.answers == {}
        assert state.feedback == {}
        assert state.summary.status == RequestStatus.NOT_STARTED and state.summary.value is None
        assert state.concept.status == RequestStatus.NOT_STARTED and state.concept.value is None
        assert state.mockup.status == RequestStatus.NOT_STARTED and state.mockup.value is None
        assert state.wants_visual_concept is None
        assert not state.show_diagnostics
        assert state == initial_state(generation=1)

    def test_request_ids_do_not_collide_across_generations(self):
        state, _ = transition(initial_state(), Reset())
        state, _ = transition(state, UpdateAnswer(section=Section.OPENING, text=OPENING_TEXT))
        state, effects = transition(state, Next())
        assert effects[0].request_id == "g1-r1"


class TestWizardRunner:
    """Tests for WizardRunner against a mocked intake service."""

    async def _answer(self, runner, section, text):
        await runner.dispatch(UpdateAnswer(section=section, text=text))
        await runner.dispatch(Next())
        return await runner.wait_idle()

    @pytest.mark.asyncio
    async def test_evaluation_round_trip(self, mock_service):
        runner = WizardRunner(mock_service)
        state = await self._answer(runner, Section.OPENING, OPENING_TEXT)

        assert state.feedback[Section.OPENING].risk_delta == 3
        assert state.risk.flags == (RiskFlag.MISSING_METRICS.value,)
        mock_service.evaluate_section.assert_awaited_once_with("Opening", OPENING_TEXT)

    @pytest.mark.asyncio
    async def test_full_run_with_visual(self, mock_service, sample_summary):
        runner = WizardRunner(mock_service)
        await self._answer(runner, Section.OPENING, OPENING_TEXT)
        await runner.dispatch(Next())
        await self._answer(runner, Section.OBJECTIVES_AND_OUTCOMES, OBJECTIVES_TEXT)
        await runner.dispatch(Next())
        state = await self._answer(runner, Section.CONSTRAINTS_AND_CONSIDERATIONS, CONSTRAINTS_TEXT)
        assert state.follow_ups.status == RequestStatus.SUCCEEDED

        await runner.dispatch(Next())
        state = await runner.wait_idle()
        assert state.summary.value == sample_summary

        await runner.dispatch(Next())
        await runner.dispatch(ChooseVisual(wants=True))
        state = await runner.wait_idle()
        assert state.concept.status == RequestStatus.SUCCEEDED
        assert state.mockup.value.image_base64 == "aGVsbG8="

        state = await runner.dispatch(Next())
        assert state.step == WizardStep.FINAL
        mock_service.generate_visual_concept.assert_awaited_once()
        mock_service.generate_mockup.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_follow_up_failure_keeps_default_prompts(self, mock_service):
        mock_service.generate_follow_up_questions.side_effect = UpstreamError(None, "Network error")
        runner = WizardRunner(mock_service)
        await self._answer(runner, Section.OPENING, OPENING_TEXT)
        await runner.dispatch(Next())
        await self._answer(runner, Section.OBJECTIVES_AND_OUTCOMES, OBJECTIVES_TEXT)
        await runner.dispatch(Next())
        state = await runner.wait_idle()

        assert state.follow_ups.status == RequestStatus.FAILED
        assert state.follow_ups.error == FOLLOW_UP_FALLBACK_NOTICE

    @pytest.mark.asyncio
    async def test_client_timeout_sets_step_error(self, mock_service, monkeypatch):
        async def slow(section, text):
            await asyncio.sleep(1)

        mock_service.evaluate_section.side_effect = slow
        monkeypatch.setattr(settings, "client_evaluation_timeout_seconds", 0.01)
        runner = WizardRunner(mock_service)
        state = await self._answer(runner, Section.OPENING, OPENING_TEXT)

        assert state.step_error == TIMEOUT_ERROR
        assert not state.loading
        assert state.feedback == {}

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported(self, mock_service):
        mock_service.evaluate_section.side_effect = RuntimeError("kaboom")
        runner = WizardRunner(mock_service)
        state = await self._answer(runner, Section.OPENING, OPENING_TEXT)
        assert state.step_error == "Something went wrong"

    @pytest.mark.asyncio
    async def test_mockup_error_fails_only_the_mockup(self, mock_service):
        mock_service.generate_mockup.return_value = MockupResult(error="Image generation failed")
        runner = WizardRunner(mock_service)
        await self._answer(runner, Section.OPENING, OPENING_TEXT)
        await runner.dispatch(Next())
        await self._answer(runner, Section.OBJECTIVES_AND_OUTCOMES, OBJECTIVES_TEXT)
        await runner.dispatch(Next())
        await self._answer(runner, Section.CONSTRAINTS_AND_CONSIDERATIONS, CONSTRAINTS_TEXT)
        await runner.dispatch(Next())
        await runner.wait_idle()
        await runner.dispatch(Next())
        await runner.dispatch(ChooseVisual(wants=True))
        state = await runner.wait_idle()

        assert state.mockup.status == RequestStatus.FAILED
        assert state.mockup.error == "Image generation failed"
        assert state.concept.status == RequestStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_reset_cancels_outstanding_work(self, mock_service):
        started = asyncio.Event()

        async def hang(section, text):
            started.set()
            await asyncio.sleep(10)

        mock_service.evaluate_section.side_effect = hang
        runner = WizardRunner(mock_service)
        await runner.dispatch(UpdateAnswer(section=Section.OPENING, text=OPENING_TEXT))
        await runner.dispatch(Next())
        await started.wait()

        state = await runner.dispatch(Reset())
        state = await runner.wait_idle()
        assert state.generation == 1
        assert not state.loading
        assert state.feedback == {}

    @pytest.mark.asyncio
    async def test_back_cancels_pending_evaluation(self, mock_service):
        active = {"now": 0, "max": 0}
        started = asyncio.Event()
        release = asyncio.Event()
        evaluate = mock_service.evaluate_section.side_effect

        async def gated(section, text):
            if section == Section.OBJECTIVES_AND_OUTCOMES.value:
                active["now"] += 1
                active["max"] = max(active["max"], active["now"])
                started.set()
                try:
                    await release.wait()
                finally:
                    active["now"] -= 1
            return await evaluate(section, text)

        mock_service.evaluate_section.side_effect = gated
        runner = WizardRunner(mock_service)
        await self._answer(runner, Section.OPENING, OPENING_TEXT)
        await runner.dispatch(Next())
        await runner.dispatch(UpdateAnswer(section=Section.OBJECTIVES_AND_OUTCOMES, text=OBJECTIVES_TEXT))
        await runner.dispatch(Next())
        await started.wait()

        state = await runner.dispatch(Back())
        assert state.step == WizardStep.OPENING
        assert active["now"] == 0

        started.clear()
        await runner.dispatch(Next())
        state = await runner.dispatch(Next())
        assert state.loading
        await started.wait()
        release.set()
        state = await runner.wait_idle()

        assert active["max"] == 1
        assert state.feedback[Section.OBJECTIVES_AND_OUTCOMES].risk_delta == 3
        assert state.risk.score == 6


class TestSessionStore:
    """Tests for the in-memory wizard session store."""

    def test_idle_sessions_are_evicted_on_create(self, mock_service):
        clock = [0.0]
        store = InMemoryWizardSessionStore(lambda: mock_service, idle_ttl_seconds=60, clock=lambda: clock[0])
        idle_id, _ = store.create()
        clock[0] = 30.0
        busy_id, _ = store.create()
        clock[0] = 70.0
        assert store.get(busy_id) is not None

        clock[0] = 100.0
        fresh_id, _ = store.create()

        assert store.get(idle_id) is None
        assert store.get(busy_id) is not None
        assert store.get(fresh_id) is not None

    def test_delete(self, mock_service):
        store = InMemoryWizardSessionStore(lambda: mock_service)
        session_id, runner = store.create()
        assert store.get(session_id) is runner
        assert store.delete(session_id)
        assert not store.delete(session_id)
        assert store.get(session_id) is None
