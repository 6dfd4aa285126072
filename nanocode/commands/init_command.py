# nanocode/commands/init_command.py
import logging
from typing import TYPE_CHECKING

from rich.markup import escape

from nanocode.errors import TransportError
from nanocode.memory import (
    NO_FILES_TO_ANALYZE,
    append_analysis,
    build_analysis_prompt,
    collect_project_files,
)

if TYPE_CHECKING:
    from nanocode.app_state import AppState

logger = logging.getLogger(__name__)


def try_handle_init_command(user_input: str, app_state: 'AppState') -> bool:
    """/i: analyses the project files and appends the result to the memory file."""
    if user_input.strip().lower() not in ("/i", "/init"):
        return False

    config = app_state.config
    files = collect_project_files(app_state.cwd, config.memory_file, config.analysis_file_chars)
    if not files:
        app_state.console.print(f"[yellow]{NO_FILES_TO_ANALYZE}[/yellow]")
        return True

    app_state.console.print(f"[yellow](Analyzing project structure to update {config.memory_file}...)[/yellow]")
    try:
        guidelines = app_state.orchestrator.ask_without_tools(build_analysis_prompt(files))
    except TransportError as e:
        app_state.console.print(f"\n[bold red]❌ {escape(str(e))}[/bold red]")
        return True
    except KeyboardInterrupt:
        app_state.console.print("\n[bold yellow]⏹ Analysis interrupted. Memory file unchanged.[/bold yellow]")
        return True

    if not guidelines.strip():
        app_state.console.print("[yellow]The model returned an empty analysis. Memory file unchanged.[/yellow]")
        return True

    try:
        append_analysis(config.memory_file, guidelines)
    except OSError as e:
        logger.warning("Could not update %s: %s", config.memory_file, e)
        app_state.console.print(f"[red]Error writing {config.memory_file}: {e}[/red]")
        return True
    app_state.console.print(f"[green]✓ {config.memory_file} updated on disk.[/green]")

    app_state.reload_memory()
    app_state.console.print(f"[green]✓ Context reloaded from {config.memory_file}.[/green]")
    return True
