"""
Base classes for completion gateways.

Defines the abstract interface every provider adapter implements: given chat
messages and model parameters, return non-empty text or raise a typed
GatewayError. Timeout and the optional retry loop live here so that adapters
only translate their SDK's exceptions.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class GatewayErrorKind(str, Enum):
    """Failure categories a gateway can report."""

    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    TIMEOUT = "timeout"
    EMPTY_RESPONSE = "empty_response"
    UPSTREAM = "upstream"
    UNKNOWN = "unknown"


class GatewayError(Exception):
    """Raised when a completion request fails."""

    def __init__(
        self,
        message: str,
        kind: GatewayErrorKind = GatewayErrorKind.UNKNOWN,
        cause: Exception | None = None,
        retryable: bool = False,
    ):
        self.kind = kind
        self.cause = cause
        self.retryable = retryable
        super().__init__(message)


class ModelParams(BaseModel):
    """Per-call model parameters."""

    model_config = ConfigDict(frozen=True)

    model: str = Field(..., min_length=1)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, gt=0)
    json_mode: bool = Field(default=True)


Message = dict[str, str]


class CompletionGateway(ABC):
    """
    Abstract base class for completion providers.

    Subclasses implement `_complete` and declare their `provider_name`,
    which doubles as the provenance tag of exams they produce.
    """

    provider_name: ClassVar[str] = ""

    def __init__(
        self,
        api_key: str | None,
        timeout: float = 60.0,
        max_retries: int = 0,
    ):
        """
        Initialize the gateway.

        Args:
            api_key: Provider API key. A missing key fails at request time.
            timeout: Upper bound in seconds on a single attempt.
            max_retries: Extra attempts on retryable failures.
        """
        self._api_key = api_key
        self._timeout = timeout
        self._max_retries = max_retries

        # Backoff configuration
        self._base_delay = 1.0  # seconds
        self._max_delay = 30.0  # seconds

    async def request_completion(self, messages: list[Message], params: ModelParams) -> str:
        """
        Request a completion and return its stripped text.

        Args:
            messages: Chat messages with `role` and `content`.
            params: Model, temperature and token limit.

        Returns:
            Non-empty response text.

        Raises:
            GatewayError: On any failure, including an empty response.
        """
        if not messages:
            raise GatewayError(
                "Completion requires at least one message",
                kind=GatewayErrorKind.CONFIGURATION,
            )
        if not self._api_key:
            raise GatewayError(
                f"No API key configured for provider '{self.provider_name}'",
                kind=GatewayErrorKind.CONFIGURATION,
            )

        last_error: GatewayError | None = None

        for attempt in range(self._max_retries + 1):
            try:
                text = await asyncio.wait_for(self._complete(messages, params), self._timeout)
            except asyncio.TimeoutError as e:
                last_error = GatewayError(
                    f"Completion timed out after {self._timeout:g}s",
                    kind=GatewayErrorKind.TIMEOUT,
                    cause=e,
                    retryable=True,
                )
            except GatewayError as e:
                last_error = e
            except Exception as e:
                last_error = GatewayError(
                    f"Unexpected error: {e}",
                    kind=GatewayErrorKind.UNKNOWN,
                    cause=e,
                )
            else:
                if text and text.strip():
                    return text.strip()
                raise GatewayError(
                    f"Empty response from provider '{self.provider_name}'",
                    kind=GatewayErrorKind.EMPTY_RESPONSE,
                )

            if not last_error.retryable or attempt >= self._max_retries:
                raise last_error

            delay = self._calculate_delay(attempt)
            logger.info(
                "%s completion failed (%s), retrying in %.1fs",
                self.provider_name,
                last_error.kind.value,
                delay,
            )
            await asyncio.sleep(delay)

        # Should not reach here, but just in case
        raise last_error or GatewayError("Completion failed", kind=GatewayErrorKind.UNKNOWN)

    @abstractmethod
    async def _complete(self, messages: list[Message], params: ModelParams) -> str:
        """
        Perform a single provider call.

        Raises:
            GatewayError: Translated from the provider SDK's exceptions.
        """
        ...

    def _calculate_delay(self, attempt: int) -> float:
        """Exponential backoff delay for the given 0-indexed attempt."""
        delay = self._base_delay * (2**attempt)
        return min(delay, self._max_delay)

    async def health_check(self, model: str) -> bool:
        """
        Check if the provider is reachable.

        Returns:
            True if a short ping completes, False otherwise.
        """
        try:
            await self.request_completion(
                [{"role": "user", "content": "ping"}],
                ModelParams(model=model, max_tokens=5, json_mode=False),
            )
            return True
        except GatewayError as e:
            logger.warning("Health check for %s failed: %s", self.provider_name, e)
            return False

    @staticmethod
    def split_system(messages: list[Message]) -> tuple[str | None, list[Message]]:
        """Separate the system instruction from the conversational turns."""
        system = next((m["content"] for m in messages if m.get("role") == "system"), None)
        turns = [m for m in messages if m.get("role") != "system"]
        return system, turns
