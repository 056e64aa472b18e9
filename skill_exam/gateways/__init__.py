"""
Completion Gateway Module.

Provides a unified async interface for requesting text completions from
multiple LLM providers:
- OpenAI (and OpenAI-compatible endpoints)
- Anthropic
- Google Generative AI
"""

from skill_exam.gateways.base import (
    CompletionGateway,
    GatewayError,
    GatewayErrorKind,
    ModelParams,
)
from skill_exam.gateways.factory import create_gateway, get_supported_providers

__all__ = [
    "CompletionGateway",
    "GatewayError",
    "GatewayErrorKind",
    "ModelParams",
    "create_gateway",
    "get_supported_providers",
]
