"""Pydantic request and response models for the Prompt Relay API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for request validation, serialisation, and OpenAPI documentation.
Field names follow the JSON wire format (camelCase where the wire uses it)
via aliases; Python code uses snake_case.

Models
------
AnalyzeRequest
    Payload for ``POST /analyze``.
AnalyzeResponse
    Element map plus the ``parseError`` flag.
EnrichRequest
    Payload for ``POST /enrich`` — a raw prompt or an element map.
EnrichResponse
    The enriched sentence.
GenerateRequest
    Payload for ``POST /`` — the image prompt and optional step count.
ErrorResponse
    The ``{"error": ...}`` envelope returned with status 500.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AnalyzeRequest(BaseModel):
    """Request body for the ``POST /analyze`` endpoint.

    Attributes:
        prompt: Free-text illustration request, in any language.
    """

    prompt: str = Field(
        ...,
        min_length=1,
        description="Free-text illustration request.",
    )


class AnalyzeResponse(BaseModel):
    """Response body for ``POST /analyze``.

    Attributes:
        analysis: The element map.  ``subjects`` is always a non-empty list.
        parse_error: ``True`` when the model reply was unusable and the raw
            prompt was substituted as the only subject.  Omitted otherwise.
    """

    model_config = ConfigDict(populate_by_name=True)

    analysis: dict[str, Any]
    parse_error: bool | None = Field(default=None, alias="parseError")


class EnrichRequest(BaseModel):
    """Request body for the ``POST /enrich`` endpoint.

    Either ``structure`` (two-pass) or ``prompt`` (single-pass) must be
    supplied.  When both are present ``structure`` wins.

    Attributes:
        prompt: Raw prompt for single-pass enrichment.
        system_prompt: Optional instruction replacing the default
            single-pass instruction (wire name ``systemPrompt``).
        structure: Element map previously returned by ``/analyze``.
    """

    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = Field(
        default=None,
        description="Raw prompt (single-pass mode).",
    )
    system_prompt: str | None = Field(
        default=None,
        alias="systemPrompt",
        description="Instruction override for single-pass mode.",
    )
    structure: dict[str, Any] | None = Field(
        default=None,
        description="Element map from /analyze (two-pass mode).",
    )


class EnrichResponse(BaseModel):
    """Response body for ``POST /enrich``."""

    enriched: str


class GenerateRequest(BaseModel):
    """Request body for the ``POST /`` image endpoint.

    Attributes:
        prompt: Descriptive sentence for the image model (or a raw prompt
            when ``enrich`` is set).
        steps: Diffusion steps.  ``None`` means the configured default.
        enrich: Run single-pass enrichment on ``prompt`` first.
        system_prompt: Instruction override used when ``enrich`` is set
            (wire name ``systemPrompt``).
    """

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(
        ...,
        min_length=1,
        description="Image prompt.",
    )
    steps: int | None = Field(
        default=None,
        ge=1,
        le=8,
        description="Diffusion steps (1-8).  None = server default.",
    )
    enrich: bool = Field(
        default=False,
        description="Enrich the prompt before generating.",
    )
    system_prompt: str | None = Field(
        default=None,
        alias="systemPrompt",
        description="Enrichment instruction override (used with enrich=true).",
    )


class ErrorResponse(BaseModel):
    """The error envelope returned with status 500."""

    error: str
