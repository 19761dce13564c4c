"""Content block and message translation.

Converts source messages (role + ordered content blocks) into target
messages carrying flattened text content items. Tool invocation and
tool result blocks have no counterpart in the target format, so they
are reported as text taken from their nested content and the message
is addressed to the "tool" role.
"""

import logging

from ..errors import MalformedContent
from .types import TargetContentItem, TargetMessage, TranslationOptions
from .validation import SourceContentBlock, SourceMessage

logger = logging.getLogger(__name__)

TOOL_BLOCK_TYPES = frozenset({"tool_use", "tool_result"})
TOOL_ROLE = "tool"

_DEFAULT_OPTIONS = TranslationOptions()


def translate_content_block(block: SourceContentBlock) -> TargetContentItem:
    """Convert one source content block into one target content item.

    For tool_use/tool_result blocks the text comes from the first nested
    content element, while id/input/name/cache_control come from the
    outer block and the type is forced to "text". Any other block keeps
    its own type and fields.

    Raises:
        MalformedContent: If a tool block has no nested content
    """
    if block.type in TOOL_BLOCK_TYPES:
        if not block.content:
            raise MalformedContent(
                f"{block.type} block{_describe_id(block)} has no nested content"
            )
        return TargetContentItem(
            type="text",
            text=block.content[0].text or "",
            id=block.id,
            input=block.input,
            name=block.name,
            cache_control=block.cache_control,
        )

    return TargetContentItem(
        type=block.type,
        text=block.text or "",
        id=block.id,
        input=block.input,
        name=block.name,
        cache_control=block.cache_control,
    )


def translate_message(
    message: SourceMessage,
    options: TranslationOptions = _DEFAULT_OPTIONS,
) -> TargetMessage:
    """Convert one source message into one target message.

    Only the first content block is inspected and emitted. Blocks after
    the first are dropped with a warning, or rejected when
    options.reject_multi_block is set.

    Raises:
        MalformedContent: If content is empty, or has several blocks in
            strict mode
    """
    if not message.content:
        raise MalformedContent(f"{message.role} message has empty content")

    extra_blocks = len(message.content) - 1
    if extra_blocks:
        if options.reject_multi_block:
            raise MalformedContent(
                f"multi-block messages not yet supported "
                f"({message.role} message has {len(message.content)} content blocks)"
            )
        logger.warning(
            "Dropping %d trailing content block(s) from %s message; only the first is translated",
            extra_blocks,
            message.role,
        )

    first = message.content[0]
    role = TOOL_ROLE if first.type in TOOL_BLOCK_TYPES else message.role

    return TargetMessage(role=role, content=(translate_content_block(first),))


def _describe_id(block: SourceContentBlock) -> str:
    return f" {block.id!r}" if block.id else ""
