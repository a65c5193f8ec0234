"""CompletionGateway — the single call out to the LLM provider.

Wraps LiteLLM so any provider with a chat-style completion (system + user
message in, text out) can be used by setting FIXPROMPT_MODEL. Provider
failures are translated into the Upstream* errors of fixprompt.errors.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from nfo.decorators import log_call

from fixprompt.errors import (
    FixPromptError,
    InternalError,
    UpstreamAuthError,
    UpstreamMalformedResponseError,
    UpstreamRateLimitedError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from fixprompt.models import GatewayConfig

logger = logging.getLogger("fixprompt.gateway")

RETRYABLE = (UpstreamTimeoutError, UpstreamUnavailableError)

_STATUS_MAP: dict[int, type[FixPromptError]] = {
    401: UpstreamAuthError,
    429: UpstreamRateLimitedError,
    504: UpstreamTimeoutError,
    503: UpstreamUnavailableError,
}


def _litellm_error_map() -> list[tuple[tuple[type[BaseException], ...], type[FixPromptError]]]:
    import litellm

    def classes(*names: str) -> tuple[type[BaseException], ...]:
        return tuple(cls for cls in (getattr(litellm, n, None) for n in names) if isinstance(cls, type))

    # Timeout subclasses APIConnectionError, so it is checked first.
    return [
        (classes("AuthenticationError"), UpstreamAuthError),
        (classes("RateLimitError"), UpstreamRateLimitedError),
        (classes("Timeout"), UpstreamTimeoutError),
        (classes("APIConnectionError", "ServiceUnavailableError"), UpstreamUnavailableError),
    ]


def map_upstream_error(exc: BaseException) -> FixPromptError:
    """Classify a provider failure into a user-facing error."""
    if isinstance(exc, FixPromptError):
        return exc

    for exc_types, error_cls in _litellm_error_map():
        if exc_types and isinstance(exc, exc_types):
            return error_cls()

    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if isinstance(status, int) and status in _STATUS_MAP:
        return _STATUS_MAP[status]()

    if isinstance(exc, asyncio.TimeoutError):
        return UpstreamTimeoutError()

    message = str(exc).lower()
    if "timeout" in message or "timed out" in message:
        return UpstreamTimeoutError()
    if "network" in message or "connection" in message:
        return UpstreamUnavailableError()

    return InternalError("Failed to improve prompt. Please try again.")


class CompletionGateway:
    """Chat completion call with upstream error classification.

    Usage:
        gateway = CompletionGateway(GatewayConfig(model="gpt-4-turbo"))
        text = await gateway.complete("You rewrite prompts.", "Improve this prompt: ...")
    """

    def __init__(self, config: GatewayConfig | None = None):
        self.config = config or GatewayConfig()

    @log_call
    async def complete(self, system_instruction: str, user_message: str, **kwargs: Any) -> str:
        """Send the system/user pair and return the stripped completion text.

        Raises:
            Upstream*Error: classified provider failure.
            UpstreamMalformedResponseError: no completion text, or shorter than
                ``min_response_chars``.
        """
        import litellm

        messages = [
            {"role": "system", "content": system_instruction},
            {"role": "user", "content": user_message},
        ]
        attempts = max(1, self.config.max_retries)

        for attempt in range(attempts):
            try:
                resp = await litellm.acompletion(
                    model=self.config.model,
                    messages=messages,
                    max_tokens=self.config.max_tokens,
                    timeout=self.config.timeout,
                    temperature=self.config.temperature,
                    top_p=self.config.top_p,
                    **kwargs,
                )
            except Exception as e:
                error = map_upstream_error(e)
                if isinstance(error, RETRYABLE) and attempt + 1 < attempts:
                    logger.warning(f"Attempt {attempt + 1} with {self.config.model} failed ({error.kind}), retrying")
                    continue
                logger.warning(f"Completion with {self.config.model} failed: {error.kind}: {type(e).__name__}")
                raise error from e

            return self._extract_text(resp)

        raise InternalError("Failed to improve prompt. Please try again.")

    def _extract_text(self, resp: Any) -> str:
        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise UpstreamMalformedResponseError() from e

        if not isinstance(content, str):
            raise UpstreamMalformedResponseError()

        text = content.strip()
        if len(text) < self.config.min_response_chars:
            raise UpstreamMalformedResponseError("Generated prompt is too short")

        logger.debug(f"Completion from {self.config.model}: {len(text)} chars")
        return text
