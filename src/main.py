"""Application Entry Point (FastAPI/CLI)."""

import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

import click
from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import TypeAdapter, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.config import settings
from src.domain.errors import GatewayError, IntakeValidationError, InvalidTransitionError
from src.domain.schema import (
    STEP_SECTIONS,
    CamelModel,
    EvaluateSectionRequest,
    FollowUpQuestionsRequest,
    GenerateMockupRequest,
    GenerateSummaryRequest,
    IntakeSummary,
    RecommendedAction,
    Section,
    SectionFeedback,
    WizardStep,
)
from src.infrastructure.di import get_container
from src.intake_engine.copy import FINAL_THANK_YOU, OPENING_PROMPT, OPENING_WELCOME, SECTION_INTROS
from src.intake_engine.events import (
    Back,
    ChooseVisual,
    Next,
    Reset,
    RetryGeneration,
    UpdateAnswer,
    UserEvent,
)
from src.intake_engine.runner import WizardRunner
from src.intake_engine.state import Lifecycle, RequestStatus, WizardRunState, build_intake_summary
from src.utils.logger import get_logger, setup_logging
from src.utils.tracing import get_trace_id, setup_tracing

# Setup logging and tracing
setup_logging()
setup_tracing()

logger = get_logger(__name__)

LLM_ERROR_HEADER = "X-LLM-Error"

# FastAPI app
app = FastAPI(title="Design Intake Assistant", version="0.1.0")
default_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
cors_origins = [
    origin.strip()
    for origin in settings.cors_origins.split(",")
    if origin.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins or default_cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[LLM_ERROR_HEADER],
)


@app.on_event("startup")
async def startup_event():
    """Log startup configuration for monitoring."""
    logger.info(
        "api_startup",
        model=settings.litellm_model,
        image_model=settings.image_model,
        tracing=settings.enable_tracing,
    )


# ============================================
# Error rendering
# ============================================


@app.exception_handler(IntakeValidationError)
async def validation_error_handler(request: Request, exc: IntakeValidationError):
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return JSONResponse(status_code=409, content={"error": str(exc)})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(
        "unexpected_error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        trace_id=get_trace_id(),
    )
    return JSONResponse(status_code=500, content={"error": "Something went wrong"})


def _header_value(message: str) -> str:
    """Make an upstream message safe to carry in a response header."""
    flat = " ".join(message.split())
    return flat.encode("latin-1", "replace").decode("latin-1")[:500]


def _camel(model: CamelModel) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# ============================================
# Intake Operations
# ============================================


@app.post("/api/evaluate-section")
async def evaluate_section(request: EvaluateSectionRequest):
    """Evaluate one section answer, falling back to the heuristic."""
    service = get_container().get_intake_use_cases()
    feedback = await service.evaluate_section(request.section, request.input)
    logger.info(
        "evaluate_section.completed",
        section=feedback.section.value,
        source=feedback.source.value,
        risk_delta=feedback.risk_delta,
    )
    return _camel(feedback)


@app.post("/api/generate-summary")
async def generate_summary(request: GenerateSummaryRequest):
    """Generate the Design Request Summary. Never fails on upstream errors."""
    service = get_container().get_intake_use_cases()
    summary, error = await service.generate_summary(
        request.opening, request.problem_framing, request.objectives, request.constraints
    )
    headers = {LLM_ERROR_HEADER: _header_value(error)} if error else None
    return JSONResponse(content=_camel(summary), headers=headers)


@app.post("/api/generate-follow-up-questions")
async def generate_follow_up_questions(request: FollowUpQuestionsRequest):
    """Generate tailored Constraints prompts. Upstream failures are a 502."""
    service = get_container().get_intake_use_cases()
    try:
        questions = await service.generate_follow_up_questions(request.opening, request.objectives)
    except GatewayError as e:
        logger.warning("follow_up_questions.failed", error_type=type(e).__name__, error=e.message)
        return JSONResponse(status_code=502, content={"error": e.message})
    return _camel(questions)


@app.post("/api/generate-visual-concept")
async def generate_visual_concept(payload: Dict[str, Any] = Body(...)):
    """Generate the Reference Concept for a Design Request Summary."""
    service = get_container().get_intake_use_cases()
    concept, error = await service.generate_visual_concept(payload)
    headers = {LLM_ERROR_HEADER: _header_value(error)} if error else None
    return JSONResponse(content=_camel(concept), headers=headers)


@app.post("/api/generate-mockup")
async def generate_mockup(request: GenerateMockupRequest):
    """Generate a low-fidelity mockup image."""
    service = get_container().get_intake_use_cases()
    result = await service.generate_mockup(request.intent_summary, request.objectives)
    if result.error:
        return JSONResponse(status_code=502, content={"error": result.error})
    return _camel(result)


@app.get("/api/llm-check")
async def llm_check():
    """Diagnostic probe of the model credential and connectivity."""
    service = get_container().get_intake_use_cases()
    return _camel(await service.diagnostic_check())


# ============================================
# Wizard Sessions
# ============================================


class ArtifactView(CamelModel):
    """Client view of one generated artifact."""

    status: RequestStatus
    value: Optional[Any] = None
    error: Optional[str] = None
    diagnostic: Optional[str] = None


class StepCopy(CamelModel):
    """Heading, intro and prompts shown for the current step."""

    heading: str
    intro: str
    prompts: List[str] = []


class WizardView(CamelModel):
    """Client view of a wizard run."""

    session_id: str
    step: WizardStep
    copy_text: Optional[StepCopy] = None
    answers: Dict[str, str]
    feedback: Dict[str, SectionFeedback]
    step_error: Optional[str] = None
    loading: bool
    risk_score: int
    flags: List[str]
    recommended_action: RecommendedAction
    follow_ups: ArtifactView
    summary: ArtifactView
    wants_visual_concept: Optional[bool] = None
    concept: ArtifactView
    mockup: ArtifactView
    show_diagnostics: bool
    intake_summary: Optional[IntakeSummary] = None


def _artifact_view(lifecycle: Lifecycle, show_diagnostics: bool) -> ArtifactView:
    return ArtifactView(
        status=lifecycle.status,
        value=lifecycle.value,
        error=lifecycle.error,
        diagnostic=lifecycle.diagnostic if show_diagnostics else None,
    )


def step_copy(state: WizardRunState) -> Optional[StepCopy]:
    """Copy for the current step. Constraints prompts use generated follow-ups when present."""
    if state.step == WizardStep.OPENING:
        return StepCopy(heading="Design Intake Assistant", intro=OPENING_WELCOME, prompts=[OPENING_PROMPT])
    section = STEP_SECTIONS.get(state.step)
    if section is None:
        if state.step == WizardStep.FINAL:
            return StepCopy(heading="Thank you", intro=FINAL_THANK_YOU)
        return None
    intro = SECTION_INTROS[section]
    follow_ups = state.follow_ups.value
    if section == Section.CONSTRAINTS_AND_CONSIDERATIONS and follow_ups is not None:
        return StepCopy(heading=intro.heading, intro=follow_ups.intro, prompts=list(follow_ups.questions))
    return StepCopy(heading=intro.heading, intro=intro.intro, prompts=list(intro.prompts))


def build_view(session_id: str, state: WizardRunState) -> WizardView:
    """Project a run state onto its client view."""
    diagnostics = state.show_diagnostics
    return WizardView(
        session_id=session_id,
        step=state.step,
        copy_text=step_copy(state),
        answers={section.value: text for section, text in state.answers.items()},
        feedback={section.value: feedback for section, feedback in state.feedback.items()},
        step_error=state.step_error,
        loading=state.loading,
        risk_score=state.risk.score,
        flags=list(state.risk.flags),
        recommended_action=state.recommended_action,
        follow_ups=_artifact_view(state.follow_ups, diagnostics),
        summary=_artifact_view(state.summary, diagnostics),
        wants_visual_concept=state.wants_visual_concept,
        concept=_artifact_view(state.concept, diagnostics),
        mockup=_artifact_view(state.mockup, diagnostics),
        show_diagnostics=diagnostics,
        intake_summary=build_intake_summary(state) if state.step == WizardStep.FINAL else None,
    )


_user_event_adapter = TypeAdapter(UserEvent)


def _get_runner(session_id: str) -> WizardRunner:
    runner = get_container().get_session_store().get(session_id)
    if runner is None:
        raise StarletteHTTPException(status_code=404, detail="Session not found")
    return runner


@app.post("/api/wizard/sessions", status_code=201)
async def create_wizard_session():
    """Start a new wizard run."""
    session_id, runner = get_container().get_session_store().create()
    logger.info("wizard.session_created", session_id=session_id)
    return _camel(build_view(session_id, runner.state))


@app.get("/api/wizard/sessions/{session_id}")
async def get_wizard_session(session_id: str):
    """Current view of a wizard run."""
    return _camel(build_view(session_id, _get_runner(session_id).state))


@app.post("/api/wizard/sessions/{session_id}/events")
async def post_wizard_event(session_id: str, payload: Dict[str, Any] = Body(...), wait: bool = False):
    """Apply one user event. With ``wait``, respond once outstanding work settles."""
    runner = _get_runner(session_id)
    try:
        event = _user_event_adapter.validate_python(payload)
    except ValidationError as e:
        raise IntakeValidationError(f"Invalid wizard event: {e.errors()[0]['msg']}") from e

    state = await runner.dispatch(event)
    logger.info("wizard.event_applied", session_id=session_id, kind=event.kind, step=state.step.value)
    if wait:
        state = await runner.wait_idle()
    return _camel(build_view(session_id, state))


@app.delete("/api/wizard/sessions/{session_id}", status_code=204)
async def delete_wizard_session(session_id: str):
    """Drop a wizard run."""
    if not get_container().get_session_store().delete(session_id):
        raise StarletteHTTPException(status_code=404, detail="Session not found")
    return Response(status_code=204)


# ============================================
# CLI
# ============================================


@click.group()
def cli():
    """Design Intake Assistant CLI."""
    pass


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host: str, port: int):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


@cli.command()
def check():
    """Probe the model credential and connectivity."""
    service = get_container().get_intake_use_cases()
    result = asyncio.run(service.diagnostic_check())
    click.echo(json.dumps(_camel(result), indent=2))
    if not result.reachable:
        sys.exit(1)


@cli.command()
@click.argument("section")
@click.argument("text")
def evaluate(section: str, text: str):
    """Evaluate one answer for SECTION.

    Args:
        section: Section name, e.g. "Objectives and Outcomes".
        text: The answer to evaluate.
    """
    service = get_container().get_intake_use_cases()
    try:
        feedback = asyncio.run(service.evaluate_section(section, text))
    except IntakeValidationError as e:
        click.echo(e.message, err=True)
        sys.exit(1)
    click.echo(json.dumps(_camel(feedback), indent=2))


def _echo_feedback(feedback: SectionFeedback) -> None:
    click.echo(f"\n{feedback.feedback}")
    for suggestion in feedback.suggested_improvements:
        click.echo(f"  - {suggestion}")
    if feedback.flags:
        click.echo(f"Flags: {', '.join(feedback.flags)}")


def _echo_fields(title: str, fields: Dict[str, Any]) -> None:
    click.echo(f"\n== {title} ==")
    for name, value in fields.items():
        click.echo(f"{name}: {value}")


async def _section_turn(runner: WizardRunner, section: Section) -> bool:
    """Collect and evaluate one answer. Returns False when the user quits."""
    state = runner.state
    copy_text = step_copy(state)
    if copy_text is not None:
        click.echo(f"\n== {copy_text.heading} ==\n{copy_text.intro}")
        for prompt in copy_text.prompts:
            click.echo(f"  * {prompt}")
    if state.follow_ups.status == RequestStatus.FAILED:
        click.echo(state.follow_ups.error)

    if section in state.feedback:
        _echo_feedback(state.feedback[section])
        command = click.prompt("Press enter to continue (/back, /reset, /quit)", default="", show_default=False)
    else:
        command = click.prompt("Your answer (/back, /reset, /quit)", default="", show_default=False)

    if command == "/quit":
        return False
    if command == "/back":
        if state.step != WizardStep.OPENING:
            await runner.dispatch(Back())
        return True
    if command == "/reset":
        await runner.dispatch(Reset())
        return True
    if section in state.feedback:
        await runner.dispatch(Next())
        return True

    await runner.dispatch(UpdateAnswer(section=section, text=command))
    await runner.dispatch(Next())
    state = await runner.wait_idle()
    if state.step_error:
        click.echo(state.step_error, err=True)
    elif section in state.feedback:
        _echo_feedback(state.feedback[section])
        await runner.dispatch(Next())
    return True


async def _run_wizard(runner: WizardRunner) -> None:
    while True:
        state = await runner.wait_idle()
        section = STEP_SECTIONS.get(state.step)
        if section is not None:
            if not await _section_turn(runner, section):
                return
            continue

        if state.step == WizardStep.SUMMARY_GENERATION:
            if state.summary.status == RequestStatus.FAILED:
                click.echo(state.summary.error, err=True)
                if click.confirm("Retry the summary?", default=True):
                    await runner.dispatch(RetryGeneration(artifact="summary"))
                    continue
            elif state.summary.value is not None:
                _echo_fields("Design Request Summary", state.summary.value.model_dump(by_alias=True))
            await runner.dispatch(Next())

        elif state.step == WizardStep.OFFER_VISUAL:
            wants = click.confirm("Would you like a reference concept and mockup?", default=False)
            await runner.dispatch(ChooseVisual(wants=wants))

        elif state.step == WizardStep.VISUAL_CONCEPT:
            if state.concept.value is not None:
                _echo_fields("Reference Concept", state.concept.value.model_dump(by_alias=True))
            elif state.concept.error:
                click.echo(state.concept.error, err=True)
            if state.mockup.value is not None:
                click.echo(f"\nMockup: {state.mockup.value.image_url or 'generated (inline image)'}")
            elif state.mockup.error:
                click.echo(f"\nMockup unavailable: {state.mockup.error}", err=True)
            await runner.dispatch(Next())

        else:
            click.echo(f"\n== Thank you ==\n{FINAL_THANK_YOU}")
            click.echo(json.dumps(_camel(build_intake_summary(state)), indent=2))
            return


@cli.command()
def wizard():
    """Walk through a design request interactively."""
    runner = WizardRunner(get_container().get_intake_use_cases())
    click.echo(OPENING_WELCOME)
    try:
        asyncio.run(_run_wizard(runner))
    finally:
        runner.close()


if __name__ == "__main__":
    # Check if running as CLI or server
    if len(sys.argv) > 1:
        # CLI mode
        cli()
    else:
        # Server mode
        import uvicorn

        uvicorn.run(app, host="0.0.0.0", port=8000)
