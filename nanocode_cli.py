#!/usr/bin/env python3

"""
nanocode: a terminal coding agent.

The model answers in a streamed conversation and works on the current
directory through five tools (read, write, edit, bash, glob). Every tool
result goes back to the model until it answers without asking for tools.
"""
import argparse
import logging
import sys
from pathlib import Path

# LiteLLM is only used to estimate the context usage shown in the prompt
import litellm
from litellm import token_counter

from nanocode.app_state import AppState, create_prompt_session
from nanocode.command_handlers import dispatch_command
from nanocode.commands.debug_command import set_debug_logging
from nanocode.config_utils import load_configuration
from nanocode.startup_checks import perform_credentials_check
from nanocode.ui_display import display_welcome_panel

__version__ = "0.3.0"

# Suppress LiteLLM debug info
litellm.suppress_debug_info = True
logging.getLogger("litellm").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger("nanocode")


def configure_logging():
    """Log records go to stderr; the nanocode logger stays quiet until '/debug on'."""
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    set_debug_logging(False)


def get_context_usage_prompt_string(app_state: AppState) -> str:
    """
    Generates the context usage string for the prompt (e.g., "[Ctx: 1234 toks] ").
    Returns an empty string if the count cannot be determined.
    """
    messages_for_count = app_state.store.to_openai_messages()
    if not messages_for_count:
        return ""
    try:
        tokens_used = token_counter(model=app_state.config.model, messages=messages_for_count)
    except Exception as e:
        # litellm raises a variety of errors for unknown models; the prompt must not break
        logger.debug("Error calculating context usage: %s", e)
        return ""
    return f"[Ctx: {tokens_used} toks] "


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="nanocode: a terminal coding agent with streamed tool calls.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--protocol', choices=["stream", "gemini"], help="Wire protocol (overrides NANOCODE_PROTOCOL and config.toml).")
    parser.add_argument('--model', metavar='MODEL_NAME', type=str, help="Model name (overrides NANOCODE_MODEL and config.toml).")
    parser.add_argument('--config', metavar='CONFIG_PATH', type=Path, default=Path("config.toml"), help="Path to config.toml (default: ./config.toml).")
    return parser


def main(argv=None):
    args = build_arg_parser().parse_args(argv)
    configure_logging()

    app_state = AppState()
    if args.protocol:
        app_state.RUNTIME_OVERRIDES["protocol"] = args.protocol
    if args.model:
        app_state.RUNTIME_OVERRIDES["model"] = args.model

    config, toml_values = load_configuration(app_state.console, args.config, app_state.RUNTIME_OVERRIDES)
    perform_credentials_check(config)
    app_state.configure(config, toml_values)
    app_state.prompt_session = create_prompt_session()

    display_welcome_panel(app_state, __version__)

    while True:
        try:
            context_usage_str = get_context_usage_prompt_string(app_state)
            user_input = app_state.prompt_session.prompt(f"🔵 {context_usage_str}You> ").strip()
        except (EOFError, KeyboardInterrupt):
            app_state.console.print("\n[bold yellow]👋 Exiting gracefully...[/bold yellow]")
            app_state.close()
            sys.exit(0)

        if not user_input:
            continue

        if dispatch_command(user_input, app_state):
            continue

        if user_input.startswith("/"):
            app_state.console.print(f"[yellow]Unknown command: '{user_input.split()[0]}'. Type '/help' for a list of commands.[/yellow]")
            continue

        try:
            app_state.orchestrator.run_turn(user_input)
        except KeyboardInterrupt:
            # Ctrl-C between rounds; the conversation is already consistent
            app_state.console.print("\n[bold yellow]⏹ Interrupted.[/bold yellow]")


if __name__ == "__main__":
    main()
