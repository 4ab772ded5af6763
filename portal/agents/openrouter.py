"""OpenRouter model shared by the portal's agents."""

from pydantic_ai.models.openrouter import OpenRouterModel
from pydantic_ai.providers.openrouter import OpenRouterProvider

from portal.core.config import settings


def build_openrouter_model() -> OpenRouterModel:
    """Create the configured OpenRouter model.

    Raises:
        ValueError: If no OpenRouter API key is configured
    """
    api_key = settings.require_credential("openrouter_api_key", "OpenRouter API key")
    provider = OpenRouterProvider(api_key=api_key)
    return OpenRouterModel(model_name=settings.model_id, provider=provider)
