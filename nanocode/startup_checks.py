# nanocode/startup_checks.py
import sys

from rich.console import Console
from rich.panel import Panel

from nanocode.config_utils import API_KEY_ENV_VAR, PROTOCOL_DEFAULTS, AgentConfig


def perform_credentials_check(config: AgentConfig, console: Console = None):
    """
    Checks that an API key is available for the configured protocol.
    If not, prints an error message and exits.
    """
    if config.api_key:
        return

    provider_env_var = PROTOCOL_DEFAULTS[config.protocol]["api_key_env_var"]
    message = (
        f"ERROR: No API key found for protocol '{config.protocol}'.\n\n"
        f"Set one of these environment variables (or put it in a .env file):\n"
        f"  {provider_env_var}\n"
        f"  {API_KEY_ENV_VAR}\n\n"
        "Example (Linux/macOS):\n"
        f"  export {provider_env_var}=<your key>\n\n"
        "Exiting."
    )
    console = console or Console(stderr=True)
    console.print(Panel(message, title="[bold red]Credentials Check Failed[/bold red]", border_style="red", expand=False))
    sys.exit(1)
