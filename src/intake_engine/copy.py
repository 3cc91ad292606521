"""User-facing wizard copy."""

from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict

from src.domain.schema import Section

OPENING_PROMPT = (
    "Let's start with the basics — what's the project name, and is this a new initiative "
    "or part of an existing product?"
)

OPENING_WELCOME = (
    "Hi there, and welcome! I'm here to help you submit a Product Design Request. My goal is to "
    "make sure your request includes everything our design team needs to understand the work and "
    "plan effectively.\n\n"
    "We'll go step-by-step through a few short questions about your project — things like the "
    "project name, business area, objectives, scope, and any supporting documentation. The more "
    "information you can provide now, the faster we can move your request into review. And if you "
    "don't have everything ready, that's okay — we can still capture what you do know and fill in "
    "the gaps together when we review it."
)

FOLLOW_UP_FALLBACK_NOTICE = "Using default prompts."

FINAL_THANK_YOU = (
    "Your design request has been captured. Our UX team will review it and reach out if needed."
)


class SectionIntro(BaseModel):
    model_config = ConfigDict(frozen=True)

    heading: str
    intro: str
    prompts: Tuple[str, ...]


SECTION_INTROS: Dict[Section, SectionIntro] = {
    Section.OBJECTIVES_AND_OUTCOMES: SectionIntro(
        heading="Objectives and Outcomes",
        intro=(
            "Define what you want to achieve and what success looks like. Be as specific as you "
            "can — we'll ask you to add more detail if something is unclear."
        ),
        prompts=(
            "What are the main objectives for this project?",
            "What does success look like? (concrete outcomes)",
            "What improvement or change do you expect?",
            "Why does this matter to the business or users?",
        ),
    ),
    Section.CONSTRAINTS_AND_CONSIDERATIONS: SectionIntro(
        heading="Constraints & Considerations",
        intro="Clarify any limits or dependencies that will shape the solution.",
        prompts=(
            "Technical limitations",
            "Operational realities",
            "Licensing limits",
            "Scale considerations",
            "Workflow dependencies",
        ),
    ),
}
