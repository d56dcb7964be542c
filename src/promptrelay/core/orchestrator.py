"""Prompt refinement pipeline: analyze, enrich, generate.

:class:`PromptOrchestrator` sequences calls to the chat and image models.
Every operation makes at most one outbound call and returns an
:class:`OperationResult` instead of raising, so the HTTP layer can map
failures to its error envelope in one place.

Pipeline
--------
::

    prompt ──analyze──▶ element map ──enrich (two-pass)──▶ sentence
    prompt ──────────────enrich (single-pass)────────────▶ sentence
    sentence ──generate──▶ PNG bytes

Analyze never fails on a malformed reply: the raw prompt becomes the only
subject instead (see :mod:`promptrelay.core.elements`).  Transport and
service failures are never retried.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from promptrelay.core.config import RelayConfig
from promptrelay.core.elements import AnalysisResult, parse_analysis
from promptrelay.core.inference import InferenceClient, InferenceError
from promptrelay.core.templates import (
    ANALYZE_SYSTEM_PROMPT,
    ENRICH_SYSTEM_PROMPT,
    SYNTHESIZE_SYSTEM_PROMPT,
    SYNTHESIZE_USER_TEMPLATE,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Success value or error message from one orchestrator operation.

    Exactly one of ``value`` and ``error`` is meaningful; check :attr:`ok`.
    """

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> OperationResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, message: str) -> OperationResult[T]:
        return cls(error=message)


def decode_image(payload: str) -> bytes:
    """Decode a base64 image payload from the image model.

    Whitespace is ignored and missing "=" padding is restored, as a
    browser's ``atob`` does.

    Args:
        payload: Standard-alphabet base64 text.

    Returns:
        The raw bytes, unvalidated.

    Raises:
        binascii.Error: If *payload* holds characters outside the alphabet
            or has an impossible length.
    """
    compact = "".join(payload.split())
    compact += "=" * (-len(compact) % 4)
    return base64.b64decode(compact, validate=True)


def _chat_messages(system: str, user: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


class PromptOrchestrator:
    """Runs the analyze / enrich / generate operations against one client.

    Attributes:
        _client (InferenceClient):
            Client used for every outbound call.
        _config (RelayConfig):
            Supplies the token bounds and the default step count.
    """

    def __init__(self, client: InferenceClient, config: RelayConfig) -> None:
        self._client = client
        self._config = config

    async def analyze(self, prompt: str) -> OperationResult[AnalysisResult]:
        """Extract an element map from a free-text prompt.

        Args:
            prompt: The user's request, in any language.

        Returns:
            Success with an :class:`AnalysisResult` (possibly a fallback),
            or failure if the prompt is empty or the chat call failed.
        """
        if not prompt or not prompt.strip():
            return OperationResult.failure("prompt is required")

        try:
            reply = await self._client.chat(
                _chat_messages(ANALYZE_SYSTEM_PROMPT, prompt),
                max_tokens=self._config.analyze_max_tokens,
            )
        except InferenceError as e:
            logger.error("Analyze failed: %s", e)
            return OperationResult.failure(str(e))

        return OperationResult.success(parse_analysis(reply, prompt))

    async def enrich(
        self,
        prompt: str | None = None,
        system_prompt: str | None = None,
        structure: dict[str, Any] | None = None,
    ) -> OperationResult[str]:
        """Produce one descriptive sentence for the image model.

        Two-pass mode is used whenever *structure* is given; *prompt* and
        *system_prompt* are then ignored.  Otherwise single-pass mode sends
        *prompt* with *system_prompt* or :data:`ENRICH_SYSTEM_PROMPT`.

        Args:
            prompt: Raw user prompt (single-pass mode).
            system_prompt: Instruction override (single-pass mode).
            structure: Element map from :meth:`analyze` (two-pass mode).

        Returns:
            Success with the sentence (stripped in two-pass mode, verbatim in
            single-pass mode), or failure.
        """
        if structure is not None:
            elements = json.dumps(structure, ensure_ascii=False, separators=(",", ":"))
            messages = _chat_messages(
                SYNTHESIZE_SYSTEM_PROMPT,
                SYNTHESIZE_USER_TEMPLATE.format(elements=elements),
            )
            two_pass = True
        elif prompt and prompt.strip():
            messages = _chat_messages(system_prompt or ENRICH_SYSTEM_PROMPT, prompt)
            two_pass = False
        else:
            return OperationResult.failure("prompt or structure is required")

        try:
            reply = await self._client.chat(messages, max_tokens=self._config.enrich_max_tokens)
        except InferenceError as e:
            logger.error("Enrich failed: %s", e)
            return OperationResult.failure(str(e))

        return OperationResult.success(reply.strip() if two_pass else reply)

    async def generate(self, prompt: str, steps: int | None = None) -> OperationResult[bytes]:
        """Synthesize an image and return its bytes.

        Args:
            prompt: Descriptive sentence.
            steps: Diffusion steps; ``None`` uses ``config.default_steps``.

        Returns:
            Success with the decoded image bytes, or failure.
        """
        if not prompt or not prompt.strip():
            return OperationResult.failure("prompt is required")

        num_steps = steps if steps is not None else self._config.default_steps
        try:
            payload = await self._client.text_to_image(prompt, num_steps)
            return OperationResult.success(decode_image(payload))
        except InferenceError as e:
            logger.error("Generate failed: %s", e)
            return OperationResult.failure(str(e))
        except binascii.Error as e:
            logger.error("Image payload is not valid base64: %s", e)
            return OperationResult.failure(f"Invalid image payload: {e}")

    async def enrich_and_generate(
        self,
        prompt: str,
        steps: int | None = None,
        system_prompt: str | None = None,
    ) -> OperationResult[bytes]:
        """Run single-pass :meth:`enrich`, then :meth:`generate` on its sentence."""
        enriched = await self.enrich(prompt=prompt, system_prompt=system_prompt)
        if not enriched.ok:
            return OperationResult.failure(enriched.error)
        logger.info("Enriched prompt: %s", enriched.value)
        return await self.generate(enriched.value, steps)
