"""Tool definition translation.

Source: {name, description, input_schema}
Target: {type: "function", function: {name, description, parameters}}
"""

from .types import FunctionDeclaration, TargetTool
from .validation import SourceTool


def translate_tool(tool: SourceTool) -> TargetTool:
    """Convert a source tool declaration into a function declaration.

    The input schema is relocated, not interpreted: the same parsed
    object becomes the function's parameters.
    """
    return TargetTool(
        function=FunctionDeclaration(
            name=tool.name,
            description=tool.description if tool.description is not None else "",
            parameters=tool.input_schema if tool.input_schema is not None else {},
        )
    )
