"""Types for the target (OpenAI-style) request format.

These are the translated shapes produced by the transformers. Source
shapes are decoded with the pydantic models in validation.py.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TargetContentItem:
    """A flattened content item within a translated message.

    Optional fields are only emitted when the source block carried them.
    """

    type: str
    text: str = ""
    id: str | None = None
    input: dict[str, Any] | None = None
    name: str | None = None
    cache_control: Any = None

    def to_dict(self) -> dict[str, Any]:
        item: dict[str, Any] = {"type": self.type, "text": self.text}
        if self.id is not None:
            item["id"] = self.id
        if self.input is not None:
            item["input"] = self.input
        if self.name is not None:
            item["name"] = self.name
        if self.cache_control is not None:
            item["cache_control"] = self.cache_control
        return item


@dataclass(frozen=True)
class TargetMessage:
    """A translated message."""

    role: str
    content: tuple[TargetContentItem, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "content": [item.to_dict() for item in self.content],
        }


@dataclass(frozen=True)
class FunctionDeclaration:
    """Nested function part of a translated tool."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema, carried through untouched


@dataclass(frozen=True)
class TargetTool:
    """Tool declaration in function-calling format."""

    function: FunctionDeclaration
    type: str = "function"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "function": {
                "name": self.function.name,
                "description": self.function.description,
                "parameters": self.function.parameters,
            },
        }


@dataclass(frozen=True)
class TranslationOptions:
    """Per-gateway switches for the translators."""

    # Raise instead of dropping content blocks after the first one
    reject_multi_block: bool = False


@dataclass
class SanitationReport:
    """Counts of rewrites made by the type-sanitation pass."""

    tool_use: int = 0
    tool_result: int = 0
    paths: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.tool_use + self.tool_result
