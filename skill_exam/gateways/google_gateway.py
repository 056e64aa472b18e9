"""
Google Generative AI completion gateway.

Uses the async variant of `GenerativeModel.generate_content`. The system
message becomes the model's system instruction.
"""

from typing import ClassVar

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from skill_exam.gateways.base import (
    CompletionGateway,
    GatewayError,
    GatewayErrorKind,
    Message,
    ModelParams,
)


class GoogleGateway(CompletionGateway):
    """Content generation against Google's Gemini models."""

    provider_name: ClassVar[str] = "google"

    def __init__(self, api_key: str | None, timeout: float = 60.0, max_retries: int = 0):
        super().__init__(api_key, timeout=timeout, max_retries=max_retries)
        self._configured = False

    def _configure(self) -> None:
        if not self._configured:
            genai.configure(api_key=self._api_key)
            self._configured = True

    async def _complete(self, messages: list[Message], params: ModelParams) -> str:
        self._configure()
        system, turns = self.split_system(messages)

        model = genai.GenerativeModel(params.model, system_instruction=system)
        generation_config = genai.GenerationConfig(
            temperature=params.temperature,
            max_output_tokens=params.max_tokens,
            response_mime_type="application/json" if params.json_mode else "text/plain",
        )
        contents = [
            {"role": "model" if m["role"] == "assistant" else "user", "parts": [m["content"]]}
            for m in turns
        ]

        try:
            response = await model.generate_content_async(
                contents,
                generation_config=generation_config,
            )
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            raise GatewayError(
                f"Google rejected credentials: {e.message}",
                kind=GatewayErrorKind.AUTHENTICATION,
                cause=e,
            ) from e
        except google_exceptions.ResourceExhausted as e:
            raise GatewayError(
                "Google rate limit exceeded",
                kind=GatewayErrorKind.RATE_LIMIT,
                cause=e,
                retryable=True,
            ) from e
        except google_exceptions.DeadlineExceeded as e:
            raise GatewayError(
                "Google request timed out",
                kind=GatewayErrorKind.TIMEOUT,
                cause=e,
                retryable=True,
            ) from e
        except google_exceptions.ServiceUnavailable as e:
            raise GatewayError(
                "Google service unavailable",
                kind=GatewayErrorKind.NETWORK,
                cause=e,
                retryable=True,
            ) from e
        except google_exceptions.GoogleAPIError as e:
            raise GatewayError(
                f"Google API error: {e}",
                kind=GatewayErrorKind.UPSTREAM,
                cause=e,
            ) from e

        try:
            return response.text
        except ValueError:
            # Raised when the candidate was blocked or carries no text parts
            return ""
