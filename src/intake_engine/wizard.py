"""Wizard state machine: a pure ``(state, event) -> (state, effects)`` function.

The machine walks Opening -> Objectives -> Constraints -> Summary ->
OfferVisual -> (VisualConcept) -> Final. A section step only advances once
its answer has been evaluated; the first forward action evaluates, the next
one advances. Generation work is issued by ``schedule`` after every
transition, at most once per lifecycle, and every effect carries a request
id so results for a superseded request are dropped.
"""

from typing import Callable, Dict, List, Tuple

from src.domain.errors import InvalidTransitionError
from src.domain.schema import STEP_SECTIONS, Section, WizardStep
from src.intake_engine.events import (
    Back,
    ChooseVisual,
    ConceptReady,
    Effect,
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
from src.intake_engine.risk import apply_delta, merge_flags
from src.intake_engine.state import Lifecycle, PendingEvaluation, RequestStatus, WizardRunState

EMPTY_OPENING_ERROR = "Please share the project name and whether it's a new initiative or part of an existing product."
EMPTY_SECTION_ERROR = "Please provide a response before continuing."
TIMEOUT_ERROR = "Request timed out. Please try again."
GENERIC_ERROR = "Something went wrong"

NEXT_STEP = {
    WizardStep.OPENING: WizardStep.OBJECTIVES_AND_OUTCOMES,
    WizardStep.OBJECTIVES_AND_OUTCOMES: WizardStep.CONSTRAINTS_AND_CONSIDERATIONS,
    WizardStep.CONSTRAINTS_AND_CONSIDERATIONS: WizardStep.SUMMARY_GENERATION,
    WizardStep.SUMMARY_GENERATION: WizardStep.OFFER_VISUAL,
    WizardStep.VISUAL_CONCEPT: WizardStep.FINAL,
}

PREVIOUS_STEP = {
    WizardStep.OBJECTIVES_AND_OUTCOMES: WizardStep.OPENING,
    WizardStep.CONSTRAINTS_AND_CONSIDERATIONS: WizardStep.OBJECTIVES_AND_OUTCOMES,
    WizardStep.SUMMARY_GENERATION: WizardStep.CONSTRAINTS_AND_CONSIDERATIONS,
    WizardStep.OFFER_VISUAL: WizardStep.SUMMARY_GENERATION,
    WizardStep.VISUAL_CONCEPT: WizardStep.OFFER_VISUAL,
    WizardStep.FINAL: WizardStep.OFFER_VISUAL,
}

Transition = Tuple[WizardRunState, List[Effect]]


def initial_state(generation: int = 0) -> WizardRunState:
    """Fresh run at the Opening step."""
    return WizardRunState(generation=generation)


def _issue_request_id(state: WizardRunState) -> Tuple[WizardRunState, str]:
    seq = state.request_seq + 1
    return state.model_copy(update={"request_seq": seq}), f"g{state.generation}-r{seq}"


def _failure_message(error: str, timed_out: bool) -> str:
    if timed_out:
        return TIMEOUT_ERROR
    return error or GENERIC_ERROR


# User events


def _on_update_answer(state: WizardRunState, event: UpdateAnswer) -> Transition:
    section = STEP_SECTIONS.get(state.step)
    if section is None or section != event.section:
        raise InvalidTransitionError(f"'{event.section.value}' is not the current section")
    if section in state.feedback or state.loading:
        raise InvalidTransitionError(f"'{section.value}' is read-only once submitted")
    answers = {**state.answers, section: event.text}
    return state.model_copy(update={"answers": answers}), []


def _on_next(state: WizardRunState, event: Next) -> Transition:
    section = STEP_SECTIONS.get(state.step)
    if section is not None:
        return _submit_section(state, section)
    if state.step in (WizardStep.SUMMARY_GENERATION, WizardStep.VISUAL_CONCEPT):
        return state.model_copy(update={"step": NEXT_STEP[state.step], "step_error": None}), []
    raise InvalidTransitionError(f"No forward action from step '{state.step.value}'")


def _submit_section(state: WizardRunState, section: Section) -> Transition:
    if section in state.feedback:
        return state.model_copy(update={"step": NEXT_STEP[state.step], "step_error": None}), []
    if state.loading:
        return state, []

    text = state.answer(section).strip()
    if not text:
        error = EMPTY_OPENING_ERROR if section == Section.OPENING else EMPTY_SECTION_ERROR
        return state.model_copy(update={"step_error": error}), []

    state, request_id = _issue_request_id(state)
    state = state.model_copy(
        update={
            "pending_evaluation": PendingEvaluation(section=section, request_id=request_id),
            "step_error": None,
        }
    )
    return state, [EvaluateSection(request_id=request_id, section=section, text=text)]


def _on_choose_visual(state: WizardRunState, event: ChooseVisual) -> Transition:
    if state.step != WizardStep.OFFER_VISUAL:
        raise InvalidTransitionError("The visual concept offer is not open")
    step = WizardStep.VISUAL_CONCEPT if event.wants else WizardStep.FINAL
    return state.model_copy(update={"wants_visual_concept": event.wants, "step": step}), []


def _on_back(state: WizardRunState, event: Back) -> Transition:
    previous = PREVIOUS_STEP.get(state.step)
    if previous is None:
        raise InvalidTransitionError("Already at the first step")
    update = {"step": previous, "pending_evaluation": None, "step_error": None}
    # Follow-ups belong to the Constraints step; leaving it makes them stale
    if state.step == WizardStep.CONSTRAINTS_AND_CONSIDERATIONS and state.follow_ups.in_flight:
        update["follow_ups"] = Lifecycle()
    return state.model_copy(update=update), []


def _on_reset(state: WizardRunState, event: Reset) -> Transition:
    return initial_state(generation=state.generation + 1), []


def _on_toggle_diagnostics(state: WizardRunState, event: ToggleDiagnostics) -> Transition:
    if state.step != WizardStep.FINAL:
        raise InvalidTransitionError("Diagnostics are only available on the final step")
    return state.model_copy(update={"show_diagnostics": not state.show_diagnostics}), []


def _retry_steps(state: WizardRunState, artifact: str) -> Tuple[WizardStep, ...]:
    """Steps from which ``schedule`` re-issues a reset artifact."""
    if artifact == "follow_ups":
        return (WizardStep.CONSTRAINTS_AND_CONSIDERATIONS,)
    if artifact == "summary":
        return (WizardStep.SUMMARY_GENERATION,)
    if artifact == "concept":
        if state.wants_visual_concept is True:
            return (WizardStep.VISUAL_CONCEPT,)
        if state.wants_visual_concept is False:
            return (WizardStep.FINAL,)
        return ()
    if state.wants_visual_concept is True:
        return (WizardStep.VISUAL_CONCEPT,)
    return ()


def _on_retry(state: WizardRunState, event: RetryGeneration) -> Transition:
    lifecycle = getattr(state, event.artifact)
    if lifecycle.status != RequestStatus.FAILED:
        raise InvalidTransitionError(f"'{event.artifact}' has not failed")
    if state.step not in _retry_steps(state, event.artifact):
        raise InvalidTransitionError(f"'{event.artifact}' cannot be retried from step '{state.step.value}'")
    return state.model_copy(update={event.artifact: Lifecycle()}), []


# Result events


def _on_evaluation_succeeded(state: WizardRunState, event: EvaluationSucceeded) -> Transition:
    pending = state.pending_evaluation
    if pending is None or pending.request_id != event.request_id:
        return state, []
    feedback = event.feedback
    risk = merge_flags(apply_delta(state.risk, feedback.risk_delta), feedback.flags)
    return state.model_copy(
        update={
            "feedback": {**state.feedback, pending.section: feedback},
            "risk": risk,
            "pending_evaluation": None,
            "step_error": None,
        }
    ), []


def _on_evaluation_failed(state: WizardRunState, event: EvaluationFailed) -> Transition:
    pending = state.pending_evaluation
    if pending is None or pending.request_id != event.request_id:
        return state, []
    return state.model_copy(
        update={
            "pending_evaluation": None,
            "step_error": _failure_message(event.error, event.timed_out),
        }
    ), []


def _on_follow_ups_ready(state: WizardRunState, event: FollowUpsReady) -> Transition:
    if not state.follow_ups.accepts(event.request_id):
        return state, []
    return state.model_copy(update={"follow_ups": state.follow_ups.succeed(event.value)}), []


def _on_summary_ready(state: WizardRunState, event: SummaryReady) -> Transition:
    if not state.summary.accepts(event.request_id):
        return state, []
    return state.model_copy(update={"summary": state.summary.succeed(event.value, event.diagnostic)}), []


def _on_concept_ready(state: WizardRunState, event: ConceptReady) -> Transition:
    if not state.concept.accepts(event.request_id):
        return state, []
    return state.model_copy(update={"concept": state.concept.succeed(event.value, event.diagnostic)}), []


def _on_mockup_ready(state: WizardRunState, event: MockupReady) -> Transition:
    if not state.mockup.accepts(event.request_id):
        return state, []
    return state.model_copy(update={"mockup": state.mockup.succeed(event.value)}), []


def _on_generation_failed(state: WizardRunState, event: GenerationFailed) -> Transition:
    lifecycle = getattr(state, event.artifact)
    if not lifecycle.accepts(event.request_id):
        return state, []
    error = _failure_message(event.error, event.timed_out)
    return state.model_copy(update={event.artifact: lifecycle.fail(error)}), []


_HANDLERS: Dict[type, Callable] = {
    UpdateAnswer: _on_update_answer,
    Next: _on_next,
    ChooseVisual: _on_choose_visual,
    Back: _on_back,
    Reset: _on_reset,
    ToggleDiagnostics: _on_toggle_diagnostics,
    RetryGeneration: _on_retry,
    EvaluationSucceeded: _on_evaluation_succeeded,
    EvaluationFailed: _on_evaluation_failed,
    FollowUpsReady: _on_follow_ups_ready,
    SummaryReady: _on_summary_ready,
    ConceptReady: _on_concept_ready,
    MockupReady: _on_mockup_ready,
    GenerationFailed: _on_generation_failed,
}


def schedule(state: WizardRunState) -> Transition:
    """Issue the generation effects whose preconditions now hold.

    Only lifecycles still in NOT_STARTED are issued, so re-running this on
    an unchanged state never duplicates a request, and failures are never
    retried automatically.
    """
    effects: List[Effect] = []
    opening = state.answer(Section.OPENING).strip()
    objectives = state.answer(Section.OBJECTIVES_AND_OUTCOMES).strip()

    if (
        state.step == WizardStep.CONSTRAINTS_AND_CONSIDERATIONS
        and state.follow_ups.status == RequestStatus.NOT_STARTED
        and (opening or objectives)
    ):
        state, request_id = _issue_request_id(state)
        state = state.model_copy(update={"follow_ups": state.follow_ups.start(request_id)})
        effects.append(GenerateFollowUps(request_id=request_id, opening=opening, objectives=objectives))

    if state.step == WizardStep.SUMMARY_GENERATION and state.summary.status == RequestStatus.NOT_STARTED:
        state, request_id = _issue_request_id(state)
        state = state.model_copy(update={"summary": state.summary.start(request_id)})
        effects.append(
            GenerateSummary(
                request_id=request_id,
                opening=opening,
                problem_framing="",
                objectives=objectives,
                constraints=state.answer(Section.CONSTRAINTS_AND_CONSIDERATIONS).strip(),
            )
        )

    summary = state.summary.value if state.summary.status == RequestStatus.SUCCEEDED else None
    if summary is None:
        return state, effects

    opted_in = state.step == WizardStep.VISUAL_CONCEPT and state.wants_visual_concept is True
    opted_out = state.step == WizardStep.FINAL and state.wants_visual_concept is False

    if (opted_in or opted_out) and state.concept.status == RequestStatus.NOT_STARTED:
        state, request_id = _issue_request_id(state)
        state = state.model_copy(update={"concept": state.concept.start(request_id)})
        effects.append(GenerateConcept(request_id=request_id, summary=summary))

    if opted_in and state.mockup.status == RequestStatus.NOT_STARTED:
        state, request_id = _issue_request_id(state)
        state = state.model_copy(update={"mockup": state.mockup.start(request_id)})
        intent = " ".join(part for part in (summary.problem, summary.desired_outcome, summary.constraints) if part)
        effects.append(
            GenerateMockup(request_id=request_id, intent_summary=intent, objectives=objectives or None)
        )

    return state, effects


def transition(state: WizardRunState, event) -> Transition:
    """Apply one event and return the new state plus effects to execute.

    Raises:
        InvalidTransitionError: If a user event is not allowed in the current step.
    """
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise InvalidTransitionError(f"Unknown event: {type(event).__name__}")
    state, effects = handler(state, event)
    state, scheduled = schedule(state)
    return state, effects + scheduled
