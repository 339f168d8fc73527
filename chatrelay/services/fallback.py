"""Tiered generation with retry-then-fallback.

The escalation policy is an ordered tuple of `Tier` values. Each tier is tried
up to `Tier.attempts` times (tenacity drives the attempts); an empty answer
counts as a failed attempt. When a tier is exhausted the next one runs. A tier
with a `sentinel` never ends on an empty answer: the sentinel text is returned
instead. When the last tier faults, `GenerationExhaustedError` is raised,
chained from the earliest tier's last real fault so the root cause survives.

Every call carries the system prompt followed by the full session history.
"""

import asyncio
import logging
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any
from uuid import uuid4

from tenacity import AsyncRetrying
from tenacity import RetryCallState
from tenacity import retry_if_exception_type
from tenacity import stop_after_attempt
from tenacity import wait_fixed

from chatrelay.core.config import settings
from chatrelay.core.exceptions import ConfigurationError
from chatrelay.models.chat_models import GenerationResult
from chatrelay.models.chat_models import Role
from chatrelay.models.chat_models import Session
from chatrelay.services.llm import EmptyCompletionError
from chatrelay.services.llm import LLMError
from chatrelay.services.llm import call_chat
from chatrelay.services.llm import call_responses
from chatrelay.services.prompts import system_prompt
from chatrelay.services.response_normalizer import extract_text

logger = logging.getLogger(__name__)

TierCall = Callable[[list[dict[str, str]]], Awaitable[Any]]


class GenerationExhaustedError(LLMError):
    """Raised when every tier has failed."""

    def __init__(self, message: str, root_cause: Exception | None = None):
        super().__init__(message)
        self.root_cause = root_cause


@dataclass(frozen=True)
class Tier:
    """One backend configuration in the fallback sequence."""

    name: str
    model: str
    attempts: int
    call: TierCall
    sentinel: str | None = None


def build_default_tiers() -> tuple[Tier, ...]:
    """Primary Responses API tier, then a capped Chat Completions tier."""
    return (
        Tier(
            name="primary",
            model=settings.primary_model,
            attempts=settings.primary_attempts,
            call=partial(call_responses, model=settings.primary_model),
        ),
        Tier(
            name="secondary",
            model=settings.secondary_model,
            attempts=settings.secondary_attempts,
            call=partial(
                call_chat,
                model=settings.secondary_model,
                max_output_tokens=settings.secondary_max_output_tokens,
            ),
            sentinel=settings.empty_completion_sentinel,
        ),
    )


class FallbackOrchestrator:
    """Drives a session through the tiers until one produces text."""

    def __init__(
        self,
        tiers: Sequence[Tier] | None = None,
        *,
        retry_wait: float | None = None,
        call_timeout: float | None = None,
    ):
        self.tiers = tuple(tiers) if tiers is not None else build_default_tiers()
        if not self.tiers:
            raise ConfigurationError("FallbackOrchestrator needs at least one tier.")
        for tier in self.tiers:
            if tier.sentinel is not None and not tier.sentinel.strip():
                raise ConfigurationError(f"Tier {tier.name} has a blank sentinel; it must be non-empty text.")
        self.retry_wait = settings.retry_wait_seconds if retry_wait is None else retry_wait
        self.call_timeout = settings.llm_call_timeout if call_timeout is None else call_timeout

    @staticmethod
    def build_messages(session: Session) -> list[dict[str, str]]:
        return [{"role": Role.SYSTEM.value, "content": system_prompt()}, *session.as_messages()]

    async def _attempt(self, tier: Tier, messages: list[dict[str, str]]) -> str:
        try:
            raw = await asyncio.wait_for(tier.call(messages), timeout=self.call_timeout)
        except asyncio.TimeoutError as e:
            raise LLMError(f"{tier.name} tier ({tier.model}) timed out after {self.call_timeout:.0f}s") from e
        except LLMError:
            raise
        except Exception as e:
            logger.exception("Unexpected error calling %s tier (%s)", tier.name, tier.model)
            raise LLMError(f"Unexpected error in {tier.name} tier call: {str(e)}") from e

        text = extract_text(raw)
        if not text.strip():
            raise EmptyCompletionError(f"{tier.name} tier ({tier.model}) returned empty output")
        return text

    async def _run_tier(
        self,
        tier: Tier,
        messages: list[dict[str, str]],
        request_id: str,
        faults: list[LLMError],
    ) -> str:
        def _record_failure(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            if exc is None:
                return
            logger.warning(
                "[%s] %s tier (%s) attempt %d/%d failed: %s",
                request_id,
                tier.name,
                tier.model,
                retry_state.attempt_number,
                tier.attempts,
                str(exc),
            )
            if not isinstance(exc, EmptyCompletionError):
                faults.append(exc)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(tier.attempts),
            wait=wait_fixed(self.retry_wait),
            retry=retry_if_exception_type(LLMError),
            after=_record_failure,
            reraise=True,
        )
        try:
            return await retrying(self._attempt, tier, messages)
        except EmptyCompletionError:
            if tier.sentinel is None:
                raise
            logger.warning("[%s] %s tier (%s) returned no content; using sentinel text", request_id, tier.name, tier.model)
            return tier.sentinel

    async def generate(self, session: Session, request_id: str | None = None) -> GenerationResult:
        """Run the tiers in order over the full history of `session`.

        Raises:
            GenerationExhaustedError: when every tier has failed.
        """
        request_id = request_id or str(uuid4())
        messages = self.build_messages(session)
        logger.info("[%s] Generating for session %s with %d messages", request_id, session.id, len(messages))

        root_fault: LLMError | None = None
        last_fault: LLMError | None = None
        for index, tier in enumerate(self.tiers):
            tier_faults: list[LLMError] = []
            try:
                text = await self._run_tier(tier, messages, request_id, tier_faults)
            except LLMError as e:
                last_fault = e
                if root_fault is None and tier_faults:
                    root_fault = tier_faults[-1]
                logger.error(
                    "[%s] %s tier (%s) exhausted after %d attempt(s): %s",
                    request_id,
                    tier.name,
                    tier.model,
                    tier.attempts,
                    str(e),
                )
                continue

            logger.info(
                "[%s] %s tier (%s) produced %d chars",
                request_id,
                tier.name,
                tier.model,
                len(text),
            )
            return GenerationResult(text=text, model_used=tier.model, used_fallback=index > 0)

        cause = root_fault or last_fault
        raise GenerationExhaustedError(f"All model tiers failed. Root cause: {cause}", root_cause=cause) from cause
