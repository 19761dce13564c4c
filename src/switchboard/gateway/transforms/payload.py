"""Payload assembly and the full request translation pipeline.

Combines translated tools, translated messages, the narrowed tool-choice
directive and every unrecognized top-level field into the outbound
request body, then runs the type-sanitation pass over it.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..errors import InvalidRequestBody
from .content import translate_message
from .sanitize import TypeSanitizer
from .tools import translate_tool
from .types import SanitationReport, TargetMessage, TargetTool, TranslationOptions
from .validation import RECOGNIZED_KEYS, decode_request

logger = logging.getLogger(__name__)


def narrow_tool_choice(tool_choice: Any) -> str | None:
    """Reduce a {"type": "<str>"} directive to its bare string.

    Any other shape (including a directive naming one specific tool)
    has no counterpart here and yields None.
    """
    if isinstance(tool_choice, dict):
        choice_type = tool_choice.get("type")
        if isinstance(choice_type, str):
            return choice_type
    return None


def split_passthrough(body: dict[str, Any]) -> dict[str, Any]:
    """Return the top-level fields the translators do not model.

    Insertion order of the input is kept. Recognized keys are deleted
    explicitly so they can never be merged over translated values.
    """
    passthrough = dict(body)
    for key in RECOGNIZED_KEYS:
        passthrough.pop(key, None)
    return passthrough


def assemble_payload(
    tools: Sequence[TargetTool] | None,
    messages: Sequence[TargetMessage],
    tool_choice: Any,
    passthrough: dict[str, Any],
) -> dict[str, Any]:
    """Build the outbound mapping.

    Args:
        tools: Translated tools, or None when the request carried none
        messages: Translated messages
        tool_choice: The original tool-choice directive, narrowed here
        passthrough: Unrecognized top-level fields, forwarded unchanged

    Returns:
        Outbound request body
    """
    result: dict[str, Any] = {}
    if tools is not None:
        result["tools"] = [tool.to_dict() for tool in tools]
    result["messages"] = [message.to_dict() for message in messages]

    narrowed = narrow_tool_choice(tool_choice)
    if narrowed is not None:
        result["tool_choice"] = narrowed
    elif tool_choice is not None:
        logger.debug("Dropping unsupported tool_choice directive: %r", tool_choice)

    for key, value in passthrough.items():
        if key in RECOGNIZED_KEYS:
            continue
        result[key] = value

    return result


@dataclass
class TranslationResult:
    """Outcome of translating one request."""

    payload: dict[str, Any]
    sanitation: SanitationReport = field(default_factory=SanitationReport)


def translate_request(
    body: dict[str, Any],
    options: TranslationOptions | None = None,
    sanitizer: TypeSanitizer | None = None,
    trace_id: str | None = None,
) -> TranslationResult:
    """Translate a decoded source request body into a sanitized target body.

    Args:
        body: Decoded JSON request body in source format
        options: Translator switches
        sanitizer: Sanitation pass to apply (a default one if omitted)
        trace_id: Optional trace ID for log correlation

    Returns:
        TranslationResult with the outbound payload

    Raises:
        InvalidRequestBody: If the body is not shaped as a source payload,
            or is nested too deeply to walk
        MalformedContent: If a message or tool block has no content
    """
    options = options or TranslationOptions()
    sanitizer = sanitizer or TypeSanitizer()

    try:
        request = decode_request(body)

        tools = None
        if request.tools is not None:
            tools = [translate_tool(tool) for tool in request.tools]
        messages = [translate_message(message, options) for message in request.messages]

        assembled = assemble_payload(
            tools,
            messages,
            request.tool_choice,
            split_passthrough(body),
        )
        payload, report = sanitizer.sanitize(assembled, trace_id)
    except RecursionError as e:
        raise InvalidRequestBody("Request body is nested too deeply") from e

    logger.debug(
        "[%s] Translated request: tools=%d, messages=%d, passthrough=%s",
        trace_id or "-",
        len(tools or ()),
        len(messages),
        sorted(k for k in payload if k not in RECOGNIZED_KEYS),
    )
    return TranslationResult(payload=payload, sanitation=report)
