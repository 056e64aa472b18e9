"""
Gateway factory module.

Selects the completion gateway for the configured provider. Selection happens
once, when the application is wired, and the instance is reused afterwards.
"""

from skill_exam.config import AIProvider, Settings, get_settings
from skill_exam.gateways.anthropic_gateway import AnthropicGateway
from skill_exam.gateways.base import CompletionGateway, GatewayError, GatewayErrorKind
from skill_exam.gateways.google_gateway import GoogleGateway
from skill_exam.gateways.openai_gateway import OpenAIGateway

# Registry of all available gateways
_GATEWAYS: dict[AIProvider, type[CompletionGateway]] = {
    AIProvider.OPENAI: OpenAIGateway,
    AIProvider.ANTHROPIC: AnthropicGateway,
    AIProvider.GOOGLE: GoogleGateway,
}


def get_supported_providers() -> tuple[str, ...]:
    """
    Get the names of all supported providers.

    Returns:
        Tuple of provider names (e.g., ('anthropic', 'google', 'openai')).
    """
    return tuple(sorted(p.value for p in _GATEWAYS))


def create_gateway(settings: Settings | None = None) -> CompletionGateway:
    """
    Create the gateway for the configured provider.

    Args:
        settings: Configuration settings. Uses global settings if not provided.

    Returns:
        A ready-to-use CompletionGateway.

    Raises:
        GatewayError: If the provider has no registered gateway.
    """
    settings = settings or get_settings()
    provider = settings.exam_ai_provider
    gateway_cls = _GATEWAYS.get(provider)

    if gateway_cls is None:
        raise GatewayError(
            f"Unsupported provider '{provider}'. Supported providers: {get_supported_providers()}",
            kind=GatewayErrorKind.CONFIGURATION,
        )

    common = {
        "api_key": settings.api_key_for(provider),
        "timeout": settings.exam_ai_timeout_seconds,
        "max_retries": settings.gateway_max_retries,
    }
    if gateway_cls is OpenAIGateway:
        return OpenAIGateway(
            base_url=settings.openai_base_url,
            project=settings.openai_project_id,
            **common,
        )
    return gateway_cls(**common)
