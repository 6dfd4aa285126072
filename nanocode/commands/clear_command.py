# nanocode/commands/clear_command.py
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nanocode.app_state import AppState


def try_handle_clear_command(user_input: str, app_state: 'AppState') -> bool:
    if user_input.strip().lower() not in ("/c", "/clear"):
        return False

    app_state.reload_memory()
    app_state.console.print("[green]✓ Cleaned & Memory Reloaded.[/green]")
    return True
