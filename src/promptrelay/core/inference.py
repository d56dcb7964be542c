"""Outbound client for the hosted inference models.

This module provides :class:`InferenceClient`, the single point of contact
with the Workers AI REST API.  It owns one pooled ``httpx.AsyncClient`` and
exposes the two calls the pipeline needs:

- :meth:`InferenceClient.chat` — role-tagged messages in, free text out.
- :meth:`InferenceClient.text_to_image` — prompt and step count in, base64
  image out.

Key Responsibilities
--------------------
- **Connection lifecycle** — the underlying client is created once (at
  application startup) and closed with :meth:`InferenceClient.aclose`.
- **Envelope unwrapping** — Workers AI wraps every result as
  ``{"success": ..., "errors": [...], "result": {...}}``; callers only see
  the inner field they asked for.
- **Failure reporting** — non-2xx statuses, ``success: false`` envelopes,
  missing result fields, and transport errors all surface as
  :class:`InferenceError`.  Nothing is retried.

Usage
-----
::

    from promptrelay.core.config import config
    from promptrelay.core.inference import InferenceClient

    client = InferenceClient(config)
    text = await client.chat(
        [{"role": "system", "content": "..."}, {"role": "user", "content": "un chat"}],
        max_tokens=160,
    )
    await client.aclose()
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from promptrelay.core.config import RelayConfig

logger = logging.getLogger(__name__)


class InferenceError(RuntimeError):
    """Raised when an inference call fails at the transport or service level."""


class InferenceClient:
    """Async client for the chat-completion and image-synthesis models.

    Attributes:
        _config (RelayConfig):
            Application configuration — endpoint, credentials, model ids,
            and timeout.
        _http (httpx.AsyncClient):
            Pooled HTTP client shared by every call.
    """

    def __init__(
        self,
        config: RelayConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            config: Application configuration instance.
            transport: Optional transport override.  Tests pass an
                ``httpx.MockTransport`` here.
        """
        self._config = config
        self._http = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {config.api_token}"},
            timeout=config.request_timeout,
            transport=transport,
        )

    # -- Public interface ---------------------------------------------------

    async def chat(self, messages: list[dict[str, str]], max_tokens: int) -> str:
        """Run one chat completion and return the reply text.

        Args:
            messages: Ordered ``{"role", "content"}`` dicts, e.g. a
                ``system`` instruction followed by a ``user`` message.
            max_tokens: Upper bound on generated tokens.

        Returns:
            The model's reply exactly as sent.

        Raises:
            InferenceError: On any transport or service failure, or if the
                reply carries no ``response`` text.
        """
        model = self._config.chat_model
        logger.info("Chat completion on '%s' (max_tokens=%d).", model, max_tokens)
        result = await self._run(model, {"messages": messages, "max_tokens": max_tokens})
        response = result.get("response")
        if not isinstance(response, str):
            raise InferenceError(f"Model '{model}' returned no response text")
        return response

    async def text_to_image(self, prompt: str, steps: int) -> str:
        """Run one image synthesis and return the base64 payload.

        Args:
            prompt: Descriptive sentence for the image model.
            steps: Diffusion step count (``num_steps``).

        Returns:
            Base64-encoded image as returned by the model.

        Raises:
            InferenceError: On any transport or service failure, or if the
                reply carries no ``image`` field.
        """
        model = self._config.image_model
        logger.info("Generating image on '%s' (num_steps=%d) for prompt: %s", model, steps, prompt)
        result = await self._run(model, {"prompt": prompt, "num_steps": steps})
        image = result.get("image")
        if not isinstance(image, str):
            raise InferenceError(f"Model '{model}' returned no image")
        return image

    async def aclose(self) -> None:
        """Close the underlying HTTP client.  Safe to call more than once."""
        await self._http.aclose()
        logger.info("Inference client closed.")

    # -- Internals ----------------------------------------------------------

    async def _run(self, model: str, inputs: dict[str, Any]) -> dict[str, Any]:
        """POST *inputs* to the run endpoint of *model* and unwrap ``result``."""
        url = self._config.run_url(model)
        try:
            response = await self._http.post(url, json=inputs)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise InferenceError(
                f"Model '{model}' returned HTTP {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise InferenceError(f"Request to model '{model}' failed: {e}") from e
        except ValueError as e:
            raise InferenceError(f"Model '{model}' returned a non-JSON body") from e

        if not isinstance(body, dict) or not body.get("success", False):
            errors = body.get("errors") if isinstance(body, dict) else None
            raise InferenceError(f"Model '{model}' reported failure: {errors or body!r}")

        result = body.get("result")
        if not isinstance(result, dict):
            raise InferenceError(f"Model '{model}' returned no result")
        return result
