# nanocode/app_state.py
import os
from typing import Any, Dict, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.styles import Style as PromptStyle
from rich.console import Console

from nanocode.config_utils import AgentConfig, resolve_configuration
from nanocode.conversation import ConversationStore
from nanocode.memory import build_system_prompt
from nanocode.orchestrator import OrchestratorLoop


def create_prompt_session() -> PromptSession:
    return PromptSession(
        style=PromptStyle.from_dict({
            'prompt': '#0066ff bold',
            'completion-menu.completion': 'bg:#1e3a8a fg:#ffffff',
            'completion-menu.completion.current': 'bg:#3b82f6 fg:#ffffff bold',
        })
    )


class AppState:
    def __init__(self, console: Optional[Console] = None, cwd: Optional[str] = None):
        self.console = console or Console()
        self.prompt_session: Optional[PromptSession] = None  # created by the CLI, needs a terminal
        self.cwd = cwd or os.getcwd()
        self.config: Optional[AgentConfig] = None
        # config.toml values, kept so /set can re-resolve the full configuration
        self.toml_values: Dict[str, Any] = {}
        self.RUNTIME_OVERRIDES: Dict[str, Any] = {}
        self.DEBUG_LLM_INTERACTIONS: bool = False
        self.store = ConversationStore()
        self.orchestrator: Optional[OrchestratorLoop] = None

    def configure(self, config: AgentConfig, toml_values: Dict[str, Any]) -> None:
        """Installs a resolved configuration and starts a fresh conversation."""
        self.config = config
        self.toml_values = toml_values
        self._rebuild_orchestrator()
        self.reload_memory()

    def reconfigure(self) -> AgentConfig:
        """Re-resolves the configuration after a runtime override changed. The conversation is kept."""
        self.config = resolve_configuration(self.RUNTIME_OVERRIDES, self.toml_values, self.console)
        self._rebuild_orchestrator()
        return self.config

    def reload_memory(self) -> None:
        """Clears the conversation and rebuilds the system prompt from the memory file."""
        self.store.reset(build_system_prompt(self.cwd, self.config.memory_file))

    def close(self) -> None:
        if self.orchestrator:
            self.orchestrator.close()
            self.orchestrator = None

    def _rebuild_orchestrator(self) -> None:
        self.close()
        self.orchestrator = OrchestratorLoop.from_config(self.config, self.store, self.console)
