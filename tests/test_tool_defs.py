# tests/test_tool_defs.py
from nanocode.tool_defs import DECLARATIONS_BY_NAME, TOOL_DECLARATIONS, TOOL_NAMES, gemini_tools, openai_tools

def test_tools_is_list():
    """Verify that the chat-completions tool list is a non-empty list."""
    tools = openai_tools()
    assert isinstance(tools, list)
    assert len(tools) == len(TOOL_DECLARATIONS)

def test_each_tool_has_correct_structure():
    """Verify the basic structure of each tool definition in the list."""
    for tool_def in openai_tools():
        assert tool_def["type"] == "function"
        func_def = tool_def["function"]
        assert isinstance(func_def["name"], str) and func_def["name"]
        assert isinstance(func_def["description"], str) and func_def["description"]
        assert isinstance(func_def["parameters"], dict)

def test_each_parameters_definition_has_correct_structure():
    """Verify the structure within the 'parameters' key for each tool."""
    for tool_def in openai_tools():
        params_def = tool_def["function"]["parameters"]
        assert params_def["type"] == "object"
        assert isinstance(params_def["properties"], dict)
        assert isinstance(params_def["required"], list)
        # Check that all required properties are listed in properties
        for required_prop in params_def["required"]:
            assert required_prop in params_def["properties"]

def test_all_defined_tools_are_accounted_for():
    """Verify that the names of tools in the list match expectations."""
    expected_tool_names = {"read", "write", "edit", "bash", "glob"}
    assert TOOL_NAMES == expected_tool_names
    assert {tool_def["function"]["name"] for tool_def in openai_tools()} == expected_tool_names

def test_required_parameters():
    """Required arguments per tool."""
    assert DECLARATIONS_BY_NAME["read"].parameter_schema.required == ["path"]
    assert set(DECLARATIONS_BY_NAME["write"].parameter_schema.required) == {"path", "content"}
    assert set(DECLARATIONS_BY_NAME["edit"].parameter_schema.required) == {"path", "old", "new"}
    assert DECLARATIONS_BY_NAME["bash"].parameter_schema.required == ["cmd"]
    assert DECLARATIONS_BY_NAME["glob"].parameter_schema.required == ["pattern"]

def test_gemini_tools_use_function_declarations_with_uppercase_types():
    """The generateContent format wraps every declaration and spells types in upper case."""
    tools = gemini_tools()
    assert len(tools) == 1
    declarations = tools[0]["functionDeclarations"]
    assert [d["name"] for d in declarations] == [decl.name for decl in TOOL_DECLARATIONS]
    read_params = declarations[0]["parameters"]
    assert read_params["type"] == "OBJECT"
    assert read_params["properties"]["path"]["type"] == "STRING"
