"""Pydantic models for decoding inbound source-format requests.

These models give the translators a typed view of the request body.
They only check shape: tool schemas and message semantics are not
validated, and unknown fields are allowed everywhere.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..errors import InvalidRequestBody

# Top-level keys the translators own. Everything else passes through.
RECOGNIZED_KEYS = ("tools", "messages", "tool_choice")


class NestedContent(BaseModel):
    """An item inside a tool_use/tool_result block's content list."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    text: str | None = None


class SourceContentBlock(BaseModel):
    """Content block within a source message.

    The extra="allow" config ensures unknown block types decode too.
    """

    model_config = ConfigDict(extra="allow")

    type: str

    # For text blocks
    text: str | None = None

    # For tool_use blocks
    id: str | None = None
    name: str | None = None
    input: dict[str, Any] | None = None

    # For tool_use/tool_result blocks
    content: list[NestedContent] | None = None

    # Opaque, carried through as-is
    cache_control: Any = None

    @field_validator("content", mode="before")
    @classmethod
    def normalize_content(cls, v: Any) -> Any:
        """A bare string result becomes a single text item."""
        if isinstance(v, str):
            return [{"type": "text", "text": v}]
        return v


class SourceMessage(BaseModel):
    """A message in the conversation."""

    model_config = ConfigDict(extra="allow")

    role: str
    content: list[SourceContentBlock]

    @field_validator("content", mode="before")
    @classmethod
    def normalize_content(cls, v: Any) -> Any:
        """Plain string content becomes a single text block.

        Empty lists are kept as-is; the message translator reports them.
        """
        if isinstance(v, str):
            return [{"type": "text", "text": v}]
        return v


class SourceTool(BaseModel):
    """Definition of an available tool."""

    model_config = ConfigDict(extra="allow")

    name: str
    description: str | None = None
    input_schema: dict[str, Any] | None = None


class SourceRequest(BaseModel):
    """The parts of a source request body the translators understand."""

    model_config = ConfigDict(extra="allow")

    messages: list[SourceMessage]
    tools: list[SourceTool] | None = None
    tool_choice: Any = None


def _reject_constant(const: str) -> Any:
    # json.loads accepts NaN/Infinity/-Infinity; strict JSON does not
    raise InvalidRequestBody(f"Invalid JSON: {const} is not a JSON value")


def parse_body(raw: bytes | str) -> dict[str, Any]:
    """Decode raw request bytes into a JSON object.

    Raises:
        InvalidRequestBody: If the body is not JSON or not an object.
    """
    try:
        body = json.loads(raw, parse_constant=_reject_constant)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequestBody(f"Invalid JSON: {e}") from e
    except RecursionError as e:
        raise InvalidRequestBody("Invalid JSON: nested too deeply") from e

    if not isinstance(body, dict):
        raise InvalidRequestBody(
            f"Request body must be a JSON object, got {type(body).__name__}"
        )
    return body


def _format_errors(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(p) for p in err["loc"]) or "body"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def decode_request(body: dict[str, Any]) -> SourceRequest:
    """Decode a request body into the typed source model.

    Args:
        body: The decoded JSON request body

    Returns:
        SourceRequest with typed tools and messages

    Raises:
        InvalidRequestBody: If the body is not shaped as a source payload
    """
    try:
        return SourceRequest.model_validate(body)
    except ValidationError as e:
        raise InvalidRequestBody(_format_errors(e)) from e
