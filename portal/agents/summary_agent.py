"""Pydantic AI agent that turns selected announcements into publishable copy."""

import logging

from pydantic_ai import Agent

from portal.agents.openrouter import build_openrouter_model
from portal.core.config import settings


logger = logging.getLogger(__name__)

INSTRUCTIONS = """\
You are a communications assistant for Saint Helen Parish.
Rewrite the announcements you are given into:
1. A short bulletin paragraph for each announcement.
2. One social media post per announcement, warm and under 280 characters.
3. A one-line subject suggestion for the weekly email blast.
Keep dates, times, and locations exactly as written. Do not invent details."""


class _AgentState:
    """Singleton state for the summary agent."""

    instance: Agent[None, str] | None = None


def _create_agent() -> Agent[None, str]:
    model = build_openrouter_model()
    logger.info("Summary agent created", extra={"model_id": settings.model_id})
    return Agent(model=model, instructions=INSTRUCTIONS, retries=0)


def get_summary_agent() -> Agent[None, str]:
    """Get or create the summary agent."""
    if _AgentState.instance is None:
        _AgentState.instance = _create_agent()
    return _AgentState.instance
