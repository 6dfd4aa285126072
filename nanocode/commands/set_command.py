# nanocode/commands/set_command.py
from typing import TYPE_CHECKING

from nanocode.config_utils import SUPPORTED_SET_PARAMS, list_runtime_overrides, update_runtime_override

if TYPE_CHECKING:
    from nanocode.app_state import AppState


def try_handle_set_command(user_input: str, app_state: 'AppState') -> bool:
    command_prefix = "/set"
    stripped_input = user_input.strip()

    words = stripped_input.lower().split(maxsplit=1)
    if not words or words[0] != command_prefix:
        return False

    args_text = stripped_input[len(command_prefix):].strip()

    if not args_text:
        list_runtime_overrides(app_state.RUNTIME_OVERRIDES, app_state.console)
        app_state.console.print("[dim]Usage: /set <parameter_name> <value>  (e.g. /set max_tool_rounds 10)[/dim]")
        app_state.console.print(f"[dim]Parameters: {', '.join(SUPPORTED_SET_PARAMS)}[/dim]")
        return True

    parts = args_text.split(maxsplit=1)
    if len(parts) < 2:
        app_state.console.print("[yellow]Usage: /set <parameter_name> <value>[/yellow]")
        app_state.console.print(f"[dim]You provided: /set {args_text}[/dim]")
        return True

    param_name, param_value = parts[0].lower(), parts[1]

    if param_name not in SUPPORTED_SET_PARAMS:
        app_state.console.print(f"[red]Error: Unknown parameter '{param_name}'. Type '/help' for options.[/red]")
        return True

    if update_runtime_override(param_name, param_value, app_state.RUNTIME_OVERRIDES, app_state.console):
        config = app_state.reconfigure()
        if not config.api_key:
            app_state.console.print(f"[yellow]Warning: no API key found for protocol '{config.protocol}'. Requests will fail.[/yellow]")
    return True
