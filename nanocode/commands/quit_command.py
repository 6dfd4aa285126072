# nanocode/commands/quit_command.py
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nanocode.app_state import AppState

QUIT_COMMANDS = ("/q", "/quit", "/exit", "exit", "quit")


def try_handle_quit_command(user_input: str, app_state: 'AppState') -> bool:
    if user_input.strip().lower() not in QUIT_COMMANDS:
        return False

    app_state.console.print("[bold bright_blue]👋 Goodbye! Happy coding![/bold bright_blue]")
    app_state.close()
    sys.exit(0)
