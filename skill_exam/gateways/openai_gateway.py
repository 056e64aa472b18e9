"""
OpenAI completion gateway.

Wraps the async OpenAI SDK. The base URL is configurable so any
OpenAI-compatible endpoint can be used.
"""

from typing import ClassVar

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
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


class OpenAIGateway(CompletionGateway):
    """Chat completions against the OpenAI API."""

    provider_name: ClassVar[str] = "openai"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        project: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 0,
    ):
        super().__init__(api_key, timeout=timeout, max_retries=max_retries)
        self._base_url = base_url
        self._project = project
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                project=self._project,
                timeout=self._timeout,
                # Retries are handled by CompletionGateway
                max_retries=0,
            )
        return self._client

    async def _complete(self, messages: list[Message], params: ModelParams) -> str:
        request: dict = {
            "model": params.model,
            "messages": messages,
            "temperature": params.temperature,
            "max_tokens": params.max_tokens,
        }
        if params.json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            response = await self._get_client().chat.completions.create(**request)
        except (AuthenticationError, PermissionDeniedError) as e:
            raise GatewayError(
                f"OpenAI rejected credentials: {e.message}",
                kind=GatewayErrorKind.AUTHENTICATION,
                cause=e,
            ) from e
        except RateLimitError as e:
            raise GatewayError(
                "OpenAI rate limit exceeded",
                kind=GatewayErrorKind.RATE_LIMIT,
                cause=e,
                retryable=True,
            ) from e
        except APITimeoutError as e:
            raise GatewayError(
                "OpenAI request timed out",
                kind=GatewayErrorKind.TIMEOUT,
                cause=e,
                retryable=True,
            ) from e
        except APIConnectionError as e:
            raise GatewayError(
                "Could not connect to OpenAI",
                kind=GatewayErrorKind.NETWORK,
                cause=e,
                retryable=True,
            ) from e
        except APIStatusError as e:
            # Don't retry on client errors (4xx)
            raise GatewayError(
                f"OpenAI API error {e.status_code}: {e.message}",
                kind=GatewayErrorKind.UPSTREAM,
                cause=e,
                retryable=e.status_code >= 500,
            ) from e

        if response.choices and response.choices[0].message.content:
            return response.choices[0].message.content
        return ""
