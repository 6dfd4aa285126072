# nanocode/commands/help_command.py
from typing import TYPE_CHECKING

from rich.table import Table

from nanocode.config_utils import SUPPORTED_SET_PARAMS

if TYPE_CHECKING:
    from nanocode.app_state import AppState

COMMANDS_HELP = [
    ("/i", "Analyse the project files and append guidelines to the memory file."),
    ("/c", "Clear the conversation and reload the memory file."),
    ("/context", "Show the messages of the current conversation."),
    ("/set <param> <value>", "Override a setting for this session. '/set' alone lists overrides."),
    ("/debug <on|off>", "Toggle debug logging on stderr."),
    ("/help", "Show this help."),
    ("/q, /quit, /exit", "Leave nanocode."),
]


def try_handle_help_command(user_input: str, app_state: 'AppState') -> bool:
    if not user_input.strip().lower().startswith("/help"):
        return False

    commands_table = Table(title="📚 Commands", title_justify="left", border_style="blue")
    commands_table.add_column("Command", style="bold bright_blue", no_wrap=True)
    commands_table.add_column("Description")
    for command, description in COMMANDS_HELP:
        commands_table.add_row(command, description)
    app_state.console.print(commands_table)

    params_table = Table(title="⚙️  /set parameters", title_justify="left", border_style="blue")
    params_table.add_column("Parameter", style="bold bright_blue", no_wrap=True)
    params_table.add_column("Env var", style="dim")
    params_table.add_column("Current")
    params_table.add_column("Description")
    for param_name, p_config in SUPPORTED_SET_PARAMS.items():
        current = getattr(app_state.config, param_name, "") if app_state.config else ""
        params_table.add_row(param_name, p_config.get("env_var", ""), str(current), p_config["description"])
    app_state.console.print(params_table)
    app_state.console.print("[dim]Press Ctrl-C during an answer to interrupt the current turn.[/dim]")
    return True
