# nanocode/commands/context_command.py
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel

from nanocode.memory import memory_description

if TYPE_CHECKING:
    from nanocode.app_state import AppState

PREVIEW_LIMIT = 200
ROLE_COLORS = {"system": "yellow", "user": "green", "assistant": "cyan", "tool": "magenta"}


def try_handle_context_command(user_input: str, app_state: 'AppState') -> bool:
    words = user_input.lower().split()
    if not words or words[0] != "/context":
        return False

    messages = app_state.store.messages
    app_state.console.print(Panel(
        f"Memory: {escape(app_state.config.memory_file)} ({escape(memory_description(app_state.config.memory_file))})\n"
        f"Messages: {len(messages)} (including the system prompt)",
        title="[bold blue]💬 Conversation Context[/bold blue]",
        border_style="blue", padding=(1, 1)
    ))

    if len(messages) <= 1:
        app_state.console.print("[yellow]Conversation history is empty.[/yellow]")
        return True

    for i, msg in enumerate(messages):
        role_color = ROLE_COLORS[msg.role]
        label = msg.role.capitalize()
        if msg.role == "tool":
            label += f" {msg.tool_name} [{msg.tool_call_id}]"
        app_state.console.print(f"╭─ [bold {role_color}]{escape(label)}[/bold {role_color}] ({i+1}/{len(messages)})")
        if msg.text:
            suffix = '...' if len(msg.text) > PREVIEW_LIMIT else ''
            app_state.console.print(f"│  {escape(msg.text[:PREVIEW_LIMIT])}{suffix}")
        if msg.tool_calls:
            names = ", ".join(call.name for call in msg.tool_calls)
            app_state.console.print(f"│  [dim]Tool Calls: {len(msg.tool_calls)} call(s): {escape(names)}[/dim]")
        app_state.console.print("╰─")
    app_state.console.print()
    return True
