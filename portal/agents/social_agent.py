"""Pydantic AI agent that drafts social media posts in the parish voice."""

import logging

from pydantic_ai import Agent

from portal.agents.openrouter import build_openrouter_model
from portal.core.config import settings


logger = logging.getLogger(__name__)

INSTRUCTIONS = """\
You are a social media content creator for Saint Helen Catholic Church. You create
engaging, authentic content that connects with the parish community.

Voice:
- Warm, personal and conversational, like a friendly neighbor rather than a corporate announcement.
- Encouraging without being preachy. Clear without being dry.

Writing rules:
- No em dashes; use commas or periods instead.
- No formal or stiff language such as "All parishioners are cordially invited".
- No institutional church jargon.
- Write the way you would actually talk to someone.

Make people feel like they belong, give them the information they need without a wall
of text, and keep it grounded in real community life. Put hashtags at the end."""


class _AgentState:
    """Singleton state for the social content agent."""

    instance: Agent[None, str] | None = None


def _create_agent() -> Agent[None, str]:
    model = build_openrouter_model()
    logger.info("Social content agent created", extra={"model_id": settings.model_id})
    return Agent(model=model, instructions=INSTRUCTIONS, retries=0)


def get_social_agent() -> Agent[None, str]:
    """Get or create the social content agent."""
    if _AgentState.instance is None:
        _AgentState.instance = _create_agent()
    return _AgentState.instance
