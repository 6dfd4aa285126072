# nanocode/config_utils.py
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import toml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# --- Ultimate Fallback Defaults ---
# Used when a key is found neither in runtime overrides, the environment nor config.toml.
ULTIMATE_DEFAULTS: Dict[str, Any] = {
    "protocol": "stream",
    "temperature": 0.1,
    "request_timeout": 120.0,
    "bash_timeout": 30.0,
    "preview_chars": 60,
    "max_tool_rounds": 25,
    "memory_file": "agents.md",
}

# model and api_base default per wire protocol
PROTOCOL_DEFAULTS: Dict[str, Dict[str, str]] = {
    "stream": {
        "model": "codestral-latest",
        "api_base": "https://api.mistral.ai/v1/chat/completions",
        "api_key_env_var": "MISTRAL_API_KEY",
    },
    "gemini": {
        "model": "gemini-2.5-flash",
        "api_base": "https://generativelanguage.googleapis.com/v1beta",
        "api_key_env_var": "GEMINI_API_KEY",
    },
}

API_KEY_ENV_VAR = "NANOCODE_API_KEY"

# Module-level limits
MAX_FILE_SIZE_BYTES = 5_000_000  # 5MB
ANALYSIS_FILE_CHARS = 3000

SUPPORTED_SET_PARAMS: Dict[str, Dict[str, Any]] = {
    "protocol": {
        "env_var": "NANOCODE_PROTOCOL",
        "allowed_values": ["stream", "gemini"],
        "description": "Wire protocol: 'stream' (chat completions with server-sent frames) or 'gemini' (single-shot generateContent)."
    },
    "model": {
        "env_var": "NANOCODE_MODEL",
        "description": "Model name sent with every request (e.g., 'codestral-latest')."
    },
    "api_base": {
        "env_var": "NANOCODE_API_BASE",
        "description": "Endpoint URL. Chat completions URL for 'stream', API root for 'gemini'."
    },
    "temperature": {
        "env_var": "NANOCODE_TEMPERATURE",
        "type": float,
        "description": "Sampling temperature (0.0 to 2.0, lower is more deterministic)."
    },
    "request_timeout": {
        "env_var": "NANOCODE_REQUEST_TIMEOUT",
        "type": float,
        "description": "Seconds a single model round (request plus stream drain) may take."
    },
    "bash_timeout": {
        "env_var": "NANOCODE_BASH_TIMEOUT",
        "type": float,
        "description": "Wall-clock seconds before a 'bash' tool command is killed."
    },
    "preview_chars": {
        "env_var": "NANOCODE_PREVIEW_CHARS",
        "type": int,
        "description": "Characters of each tool result shown in the terminal preview."
    },
    "max_tool_rounds": {
        "env_var": "NANOCODE_MAX_TOOL_ROUNDS",
        "type": int,
        "allow_zero": True,
        "description": "Maximum tool rounds per user turn. 0 disables the cap."
    },
    "memory_file": {
        "env_var": "NANOCODE_MEMORY_FILE",
        "description": "Memory file appended to the system prompt (e.g., 'agents.md')."
    },
}

# (toml section, toml key) -> parameter name
TOML_KEY_MAP = {
    ("model", "protocol"): "protocol",
    ("model", "name"): "model",
    ("model", "api_base"): "api_base",
    ("model", "temperature"): "temperature",
    ("limits", "request_timeout"): "request_timeout",
    ("limits", "bash_timeout"): "bash_timeout",
    ("limits", "preview_chars"): "preview_chars",
    ("limits", "max_tool_rounds"): "max_tool_rounds",
    ("memory", "file"): "memory_file",
}


class AgentConfig(BaseModel):
    protocol: Literal["stream", "gemini"] = "stream"
    model: str = PROTOCOL_DEFAULTS["stream"]["model"]
    api_base: str = PROTOCOL_DEFAULTS["stream"]["api_base"]
    api_key: Optional[str] = Field(default=None, repr=False)
    temperature: float = 0.1
    request_timeout: float = 120.0
    bash_timeout: float = 30.0
    preview_chars: int = 60
    max_tool_rounds: int = 25
    memory_file: str = "agents.md"
    max_file_size_bytes: int = MAX_FILE_SIZE_BYTES
    analysis_file_chars: int = ANALYSIS_FILE_CHARS
    model_config = ConfigDict(frozen=True)


def coerce_config_value(param_name: str, value: Any) -> Any:
    """Converts and validates a raw value for 'param_name'. Raises ValueError."""
    p_config = SUPPORTED_SET_PARAMS[param_name]
    value_type = p_config.get("type", str)

    if value_type is int:
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid value '{value}' for {param_name}. Must be an integer.") from None
        if value < 0 or (value == 0 and not p_config.get("allow_zero")):
            raise ValueError(f"Invalid value '{value}' for {param_name}. Must be a positive integer.")
    elif value_type is float:
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid value '{value}' for {param_name}. Must be a number (e.g., 0.7).") from None
        if param_name == "temperature" and not (0.0 <= value <= 2.0):
            raise ValueError("Temperature must be between 0.0 and 2.0.")
        if param_name != "temperature" and value <= 0:
            raise ValueError(f"Invalid value '{value}' for {param_name}. Must be positive.")
    else:
        value = str(value).strip()
        if not value:
            raise ValueError(f"Empty value for {param_name}.")

    allowed_values = p_config.get("allowed_values")
    if allowed_values:
        value = str(value).lower()
        if value not in allowed_values:
            raise ValueError(f"Invalid value '{value}' for {param_name}. Allowed values: {', '.join(allowed_values)}")
    return value


def update_runtime_override(param_name: str, value: Any, runtime_overrides: Dict[str, Any], console_obj=None) -> bool:
    """
    Validates and stores a runtime override for a given parameter.
    Returns True when the override was stored.
    """
    param_name_lower = param_name.lower()
    if param_name_lower not in SUPPORTED_SET_PARAMS:
        if console_obj:
            console_obj.print(f"[red]Error: Unknown parameter '{param_name}'. Cannot set override.[/red]")
        return False

    try:
        value = coerce_config_value(param_name_lower, value)
    except ValueError as e:
        if console_obj:
            console_obj.print(f"[red]Error: {e}[/red]")
        return False

    runtime_overrides[param_name_lower] = value
    if console_obj:
        console_obj.print(f"[green]✓ Runtime override set: {param_name_lower} = {value}[/green]")
    return True


def list_runtime_overrides(runtime_overrides: Dict[str, Any], console_obj):
    """Lists current runtime overrides."""
    if not runtime_overrides:
        console_obj.print("[dim]No active runtime overrides.[/dim]")
        return
    console_obj.print("[bold blue]Active Runtime Overrides:[/bold blue]")
    for key, value in runtime_overrides.items():
        console_obj.print(f"  - {key}: {value}")


def load_toml_values(config_path: Path = Path("config.toml"), console_obj=None) -> Dict[str, Any]:
    """Reads config.toml and flattens it into parameter-name keys."""
    toml_values: Dict[str, Any] = {}
    if not config_path.exists():
        return toml_values
    try:
        loaded_toml = toml.load(config_path)
    except (toml.TomlDecodeError, OSError) as e:
        if console_obj:
            console_obj.print(f"[yellow]Warning: Could not load or parse {config_path}: {e}. Using internal defaults.[/yellow]")
        return toml_values

    for (section, key), param_name in TOML_KEY_MAP.items():
        section_values = loaded_toml.get(section)
        if isinstance(section_values, dict) and key in section_values:
            toml_values[param_name] = section_values[key]
    return toml_values


def get_config_value(param_name: str, runtime_overrides: Dict[str, Any], toml_values: Dict[str, Any], console_obj=None) -> Any:
    """
    Retrieves a configuration value based on precedence:
    1. Runtime overrides
    2. Environment variables
    3. Values from config.toml
    4. Protocol defaults / ultimate hardcoded defaults
    Invalid values at one layer are reported and skipped.
    """
    if param_name not in SUPPORTED_SET_PARAMS:
        raise KeyError(f"Unknown config param '{param_name}'")

    env_var_name = SUPPORTED_SET_PARAMS[param_name].get("env_var")
    layers = [
        ("runtime override", runtime_overrides.get(param_name)),
        (f"environment variable {env_var_name}", os.getenv(env_var_name) if env_var_name else None),
        ("config.toml", toml_values.get(param_name)),
    ]
    for source, raw_value in layers:
        if raw_value is None:
            continue
        try:
            return coerce_config_value(param_name, raw_value)
        except ValueError as e:
            if console_obj:
                console_obj.print(f"[yellow]Warning: Ignoring {source}: {e}[/yellow]")

    if param_name in ("model", "api_base"):
        protocol = get_config_value("protocol", runtime_overrides, toml_values)
        return PROTOCOL_DEFAULTS[protocol][param_name]
    return ULTIMATE_DEFAULTS[param_name]


def resolve_api_key(protocol: str) -> Optional[str]:
    """NANOCODE_API_KEY wins over the provider-specific variable."""
    return os.getenv(API_KEY_ENV_VAR) or os.getenv(PROTOCOL_DEFAULTS[protocol]["api_key_env_var"]) or None


def resolve_configuration(runtime_overrides: Dict[str, Any], toml_values: Dict[str, Any], console_obj=None) -> AgentConfig:
    """Builds the frozen AgentConfig from all configuration layers."""
    values = {
        param_name: get_config_value(param_name, runtime_overrides, toml_values, console_obj)
        for param_name in SUPPORTED_SET_PARAMS
    }
    values["api_key"] = resolve_api_key(values["protocol"])
    return AgentConfig(**values)


def load_configuration(console_obj=None, config_path: Path = Path("config.toml"), runtime_overrides: Optional[Dict[str, Any]] = None):
    """
    Loads .env into environment variables, reads config.toml and resolves the configuration.
    Returns (AgentConfig, toml_values); toml_values is kept so later /set overrides can re-resolve.
    """
    load_dotenv()
    toml_values = load_toml_values(config_path, console_obj)
    config = resolve_configuration(runtime_overrides or {}, toml_values, console_obj)
    return config, toml_values
