# tests/test_tool_call_assembler.py
from nanocode.data_models import ToolCallFragment, ToolInvocation
from nanocode.tool_call_assembler import ToolCallAssembler


def assemble(fragments):
    assembler = ToolCallAssembler()
    for fragment in fragments:
        assembler.add(fragment)
    return assembler.finish()


def test_no_fragments_gives_no_invocations():
    """A response without tool calls assembles to an empty list."""
    assert ToolCallAssembler().finish() == []


def test_arguments_split_across_fragments_are_concatenated():
    """Argument text is the exact concatenation of the chunks, wherever they were split."""
    arguments = '{"path": "main.go", "offset": 2}'
    for cut in range(len(arguments) + 1):
        result = assemble([
            ToolCallFragment(index=0, id_if_new="call_a", name_if_new="read", arguments_chunk=arguments[:cut]),
            ToolCallFragment(index=0, arguments_chunk=arguments[cut:]),
        ])
        assert result == [ToolInvocation(id="call_a", name="read", arguments_json=arguments)]


def test_interleaved_indices_come_out_in_first_seen_order():
    """N distinct indices give N invocations, ordered by first appearance."""
    result = assemble([
        ToolCallFragment(index=2, id_if_new="c", name_if_new="bash", arguments_chunk='{"cmd":'),
        ToolCallFragment(index=0, id_if_new="a", name_if_new="glob", arguments_chunk='{"pattern":'),
        ToolCallFragment(index=2, arguments_chunk=' "ls"}'),
        ToolCallFragment(index=0, arguments_chunk=' "*.go"}'),
        ToolCallFragment(index=1, id_if_new="b", name_if_new="read", arguments_chunk='{"path": "x"}'),
    ])
    assert [call.id for call in result] == ["c", "a", "b"]
    assert result[0].arguments_json == '{"cmd": "ls"}'
    assert result[1].arguments_json == '{"pattern": "*.go"}'


def test_new_id_on_same_index_seals_previous_invocation():
    """A second identifier on an index closes the first invocation and opens another."""
    result = assemble([
        ToolCallFragment(index=0, id_if_new="first", name_if_new="read", arguments_chunk='{"path": "a"}'),
        ToolCallFragment(index=0, id_if_new="second", name_if_new="read", arguments_chunk='{"path": "b"}'),
    ])
    assert result == [
        ToolInvocation(id="first", name="read", arguments_json='{"path": "a"}'),
        ToolInvocation(id="second", name="read", arguments_json='{"path": "b"}'),
    ]


def test_repeated_id_continues_open_invocation():
    """Providers that repeat the id on every chunk still produce one invocation."""
    result = assemble([
        ToolCallFragment(index=0, id_if_new="x", name_if_new="write", arguments_chunk='{"path":'),
        ToolCallFragment(index=0, id_if_new="x", arguments_chunk=' "a", "content": ""}'),
    ])
    assert result == [ToolInvocation(id="x", name="write", arguments_json='{"path": "a", "content": ""}')]


def test_missing_ids_are_synthesized_and_unique():
    """Invocations without an id get distinct generated ids."""
    result = assemble([
        ToolCallFragment(index=0, name_if_new="read", arguments_chunk="{}"),
        ToolCallFragment(index=1, name_if_new="glob", arguments_chunk="{}"),
    ])
    assert [call.name for call in result] == ["read", "glob"]
    assert result[0].id and result[1].id
    assert result[0].id != result[1].id


def test_continuation_without_opener_is_kept():
    """Argument text for an index that was never opened is still collected."""
    result = assemble([ToolCallFragment(index=0, arguments_chunk='{"cmd": "pwd"}')])
    assert len(result) == 1
    assert result[0].name == ""
    assert result[0].arguments_json == '{"cmd": "pwd"}'
