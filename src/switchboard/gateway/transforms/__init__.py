"""Request transformers for source → target format conversion.

This module turns source-format chat requests (content blocks and
named tool declarations) into function-calling requests with flattened
text content, and sanitizes the result before it is forwarded.
"""

from .content import translate_content_block, translate_message
from .payload import (
    TranslationResult,
    assemble_payload,
    narrow_tool_choice,
    split_passthrough,
    translate_request,
)
from .sanitize import TypeSanitizer
from .tools import translate_tool
from .types import (
    FunctionDeclaration,
    SanitationReport,
    TargetContentItem,
    TargetMessage,
    TargetTool,
    TranslationOptions,
)
from .validation import (
    SourceContentBlock,
    SourceMessage,
    SourceRequest,
    SourceTool,
    decode_request,
    parse_body,
)

__all__ = [
    # Translators
    "translate_content_block",
    "translate_message",
    "translate_tool",
    "assemble_payload",
    "TypeSanitizer",
    "narrow_tool_choice",
    "split_passthrough",
    "translate_request",
    "TranslationResult",
    # Types
    "FunctionDeclaration",
    "SanitationReport",
    "TargetContentItem",
    "TargetMessage",
    "TargetTool",
    "TranslationOptions",
    # Validation
    "SourceContentBlock",
    "SourceMessage",
    "SourceRequest",
    "SourceTool",
    "decode_request",
    "parse_body",
]
