"""Type-sanitation pass for outbound payloads.

The target content model has no representation for tool invocation or
tool result content. Any mapping that still reports one of those types
when the payload is about to be forwarded is rewritten into a text item
with a fixed placeholder, so the backend never sees the tag.

The rewrite walks the decoded structure instead of patching serialized
text, so tag-like substrings inside ordinary strings are left alone.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from ..errors import SanitationDecodeError
from .types import SanitationReport

logger = logging.getLogger(__name__)

PLACEHOLDERS = {
    "tool_use": "incorrect tool use",
    "tool_result": "incorrect tool result",
}


@dataclass
class TypeSanitizer:
    """Rewrites leftover tool_use/tool_result typed mappings to text."""

    placeholders: dict[str, str] = field(default_factory=lambda: dict(PLACEHOLDERS))

    def sanitize(
        self,
        payload: dict[str, Any],
        trace_id: str | None = None,
    ) -> tuple[dict[str, Any], SanitationReport]:
        """Return a sanitized copy of payload and a report of rewrites.

        The input is not modified.
        """
        report = SanitationReport()
        result = self._walk(payload, "$", report)

        if report.total:
            logger.warning(
                "[%s] Sanitized %d untranslated tool marker(s) (tool_use=%d, tool_result=%d) at %s",
                trace_id or "-",
                report.total,
                report.tool_use,
                report.tool_result,
                ", ".join(report.paths),
            )
        return result, report

    def sanitize_text(
        self,
        serialized: str | bytes,
        trace_id: str | None = None,
    ) -> tuple[dict[str, Any], SanitationReport]:
        """Sanitize a serialized payload and return the decoded result.

        Entry point for payloads held as text, such as captured debug files
        fed to the `switchboard sanitize` command.

        Raises:
            SanitationDecodeError: If the text is not a JSON object
        """
        try:
            payload = json.loads(serialized, parse_constant=_reject_constant)
        except (ValueError, RecursionError) as e:
            raise SanitationDecodeError(f"Failed to parse sanitized payload: {e}") from e
        if not isinstance(payload, dict):
            raise SanitationDecodeError(
                f"Failed to parse sanitized payload: expected object, got {type(payload).__name__}"
            )
        try:
            return self.sanitize(payload, trace_id)
        except RecursionError as e:
            raise SanitationDecodeError(
                "Failed to parse sanitized payload: nested too deeply"
            ) from e

    def _walk(self, node: Any, path: str, report: SanitationReport) -> Any:
        if isinstance(node, dict):
            result = {key: self._walk(value, f"{path}.{key}", report) for key, value in node.items()}
            tag = result.get("type")
            if isinstance(tag, str) and tag in self.placeholders:
                result["type"] = "text"
                result["text"] = self.placeholders[tag]
                if tag == "tool_use":
                    report.tool_use += 1
                else:
                    report.tool_result += 1
                report.paths.append(path)
            return result

        if isinstance(node, list):
            return [self._walk(item, f"{path}[{i}]", report) for i, item in enumerate(node)]

        return node


def _reject_constant(const: str) -> Any:
    raise ValueError(f"{const} is not a JSON value")
