# nanocode/ui_display.py
from rich.panel import Panel

from nanocode.app_state import AppState
from nanocode.memory import memory_description
from nanocode.tool_defs import TOOL_DECLARATIONS


def display_welcome_panel(app_state: AppState, version: str):
    """Displays the welcome panel."""
    config = app_state.config
    max_rounds = config.max_tool_rounds or "unbounded"

    instructions = f"""  📁 [bold bright_blue]Current Directory: [/bold bright_blue][bold green]{app_state.cwd}[/bold green]

  🧠 [bold bright_blue]Model: [/bold bright_blue][bold magenta]{config.model}[/bold magenta] ([dim]protocol: {config.protocol}[/dim])
     Tools: [dim]{', '.join(decl.name for decl in TOOL_DECLARATIONS)}[/dim] | Max tool rounds: [dim]{max_rounds}[/dim]
     Memory: [dim]{config.memory_file} ({memory_description(config.memory_file)})[/dim]

  ⌨️  [bold bright_blue]/i[/bold bright_blue] Init/Update Memory  [bold bright_blue]/c[/bold bright_blue] Clear Chat  [bold bright_blue]/q[/bold bright_blue] Quit  [bold bright_blue]/help[/bold bright_blue] All commands

  👥 [bold white]Just ask naturally, like you are explaining to a Software Engineer.[/bold white]"""

    app_state.console.print(Panel(
        instructions,
        border_style="blue",
        padding=(1, 2),
        title=f"[bold blue]🎯 nanocode {version}[/bold blue]",
        title_align="left"
    ))
    app_state.console.print()
