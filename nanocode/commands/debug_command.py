# nanocode/commands/debug_command.py
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nanocode.app_state import AppState

PACKAGE_LOGGER = "nanocode"


def set_debug_logging(enabled: bool) -> None:
    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if enabled else logging.WARNING)


def try_handle_debug_command(user_input: str, app_state: 'AppState') -> bool:
    command_prefix = "/debug"
    stripped_input = user_input.strip().lower()

    if not stripped_input.startswith(command_prefix):
        return False

    parts = stripped_input.split()
    if len(parts) == 1 and parts[0] == command_prefix:
        app_state.console.print("[yellow]Usage: /debug <on|off>[/yellow]")
        app_state.console.print(f"[dim]Current debug logging: {'ON' if app_state.DEBUG_LLM_INTERACTIONS else 'OFF'}[/dim]")
        return True

    if len(parts) == 2:
        action = parts[1]
        if action == "on":
            app_state.DEBUG_LLM_INTERACTIONS = True
            set_debug_logging(True)
            app_state.console.print("[green]✓ Debug logging: ON (stderr)[/green]")
        elif action == "off":
            app_state.DEBUG_LLM_INTERACTIONS = False
            set_debug_logging(False)
            app_state.console.print("[yellow]✓ Debug logging: OFF[/yellow]")
        else: app_state.console.print(f"[yellow]Unknown /debug action: {action}. Usage: /debug <on|off>[/yellow]")
    else: app_state.console.print("[yellow]Usage: /debug <on|off>[/yellow]")
    return True
