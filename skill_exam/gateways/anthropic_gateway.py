"""
Anthropic completion gateway.

The Messages API takes the system instruction separately from the turns,
so the system message is split out before the call.
"""

from typing import ClassVar

from anthropic import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncAnthropic,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)

from skill_exam.gateways.base import (
    CompletionGateway,
    GatewayError,
    GatewayErrorKind,
    Message,
    ModelParams,
)


class AnthropicGateway(CompletionGateway):
    """Messages API completions against Anthropic."""

    provider_name: ClassVar[str] = "anthropic"

    def __init__(self, api_key: str | None, timeout: float = 60.0, max_retries: int = 0):
        super().__init__(api_key, timeout=timeout, max_retries=max_retries)
        self._client: AsyncAnthropic | None = None

    def _get_client(self) -> AsyncAnthropic:
        if self._client is None:
            self._client = AsyncAnthropic(
                api_key=self._api_key,
                timeout=self._timeout,
                max_retries=0,
            )
        return self._client

    async def _complete(self, messages: list[Message], params: ModelParams) -> str:
        system, turns = self.split_system(messages)
        request: dict = {
            "model": params.model,
            "messages": turns,
            "temperature": min(params.temperature, 1.0),
            "max_tokens": params.max_tokens,
        }
        if system:
            request["system"] = system

        try:
            response = await self._get_client().messages.create(**request)
        except (AuthenticationError, PermissionDeniedError) as e:
            raise GatewayError(
                f"Anthropic rejected credentials: {e.message}",
                kind=GatewayErrorKind.AUTHENTICATION,
                cause=e,
            ) from e
        except RateLimitError as e:
            raise GatewayError(
                "Anthropic rate limit exceeded",
                kind=GatewayErrorKind.RATE_LIMIT,
                cause=e,
                retryable=True,
            ) from e
        except APITimeoutError as e:
            raise GatewayError(
                "Anthropic request timed out",
                kind=GatewayErrorKind.TIMEOUT,
                cause=e,
                retryable=True,
            ) from e
        except APIConnectionError as e:
            raise GatewayError(
                "Could not connect to Anthropic",
                kind=GatewayErrorKind.NETWORK,
                cause=e,
                retryable=True,
            ) from e
        except APIStatusError as e:
            raise GatewayError(
                f"Anthropic API error {e.status_code}: {e.message}",
                kind=GatewayErrorKind.UPSTREAM,
                cause=e,
                retryable=e.status_code >= 500,
            ) from e

        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
