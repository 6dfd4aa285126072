# nanocode/tool_defs.py
from typing import Any, Dict, List

from nanocode.data_models import ParameterSchema, PropertySchema, ToolDeclaration

TOOL_DECLARATIONS: List[ToolDeclaration] = [
    ToolDeclaration(
        name="read",
        description="Read a file. Returns its lines prefixed with 1-based line numbers.",
        parameter_schema=ParameterSchema(
            properties={
                "path": PropertySchema(type="string", description="Path of the file to read"),
                "offset": PropertySchema(type="integer", description="0-based index of the first line to return (default 0)"),
                "limit": PropertySchema(type="integer", description="Maximum number of lines to return (default: all)"),
            },
            required=["path"],
        ),
    ),
    ToolDeclaration(
        name="write",
        description="Create a file or overwrite an existing one with the given content",
        parameter_schema=ParameterSchema(
            properties={
                "path": PropertySchema(type="string", description="Path of the file to write"),
                "content": PropertySchema(type="string", description="Full content of the file"),
            },
            required=["path", "content"],
        ),
    ),
    ToolDeclaration(
        name="edit",
        description="Replace an exact substring in a file. Fails if 'old' is missing, or appears more than once unless 'all' is true.",
        parameter_schema=ParameterSchema(
            properties={
                "path": PropertySchema(type="string", description="Path of the file to edit"),
                "old": PropertySchema(type="string", description="Exact text to find"),
                "new": PropertySchema(type="string", description="Replacement text"),
                "all": PropertySchema(type="boolean", description="Replace every occurrence (default false)"),
            },
            required=["path", "old", "new"],
        ),
    ),
    ToolDeclaration(
        name="bash",
        description="Run a shell command and return its combined stdout/stderr. Killed after a fixed timeout.",
        parameter_schema=ParameterSchema(
            properties={
                "cmd": PropertySchema(type="string", description="Command line passed to 'bash -c'"),
            },
            required=["cmd"],
        ),
    ),
    ToolDeclaration(
        name="glob",
        description="List files matching a glob pattern, most recently modified first",
        parameter_schema=ParameterSchema(
            properties={
                "pattern": PropertySchema(type="string", description="Glob pattern, e.g. '*.py' or '**/*.go'"),
                "root": PropertySchema(type="string", description="Directory the pattern is relative to (default '.')"),
            },
            required=["pattern"],
        ),
    ),
]

DECLARATIONS_BY_NAME: Dict[str, ToolDeclaration] = {decl.name: decl for decl in TOOL_DECLARATIONS}
TOOL_NAMES = frozenset(DECLARATIONS_BY_NAME)


def _parameters_dict(schema: ParameterSchema, upper_types: bool = False) -> Dict[str, Any]:
    def _type(name: str) -> str:
        return name.upper() if upper_types else name

    return {
        "type": _type(schema.type),
        "properties": {
            prop_name: {"type": _type(prop.type), "description": prop.description}
            for prop_name, prop in schema.properties.items()
        },
        "required": list(schema.required),
    }


def openai_tools() -> List[Dict[str, Any]]:
    """Tool list in the chat-completions `tools` format."""
    return [
        {
            "type": "function",
            "function": {
                "name": decl.name,
                "description": decl.description,
                "parameters": _parameters_dict(decl.parameter_schema),
            },
        }
        for decl in TOOL_DECLARATIONS
    ]


def gemini_tools() -> List[Dict[str, Any]]:
    """Tool list in the generateContent `functionDeclarations` format."""
    return [{
        "functionDeclarations": [
            {
                "name": decl.name,
                "description": decl.description,
                "parameters": _parameters_dict(decl.parameter_schema, upper_types=True),
            }
            for decl in TOOL_DECLARATIONS
        ]
    }]
