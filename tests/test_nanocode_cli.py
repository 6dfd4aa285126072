# tests/test_nanocode_cli.py
from unittest.mock import MagicMock, patch

import pytest

import nanocode_cli
from nanocode.app_state import AppState
from nanocode.config_utils import AgentConfig
from nanocode.startup_checks import perform_credentials_check


@pytest.fixture
def app_state(tmp_path):
    state = AppState(console=MagicMock(), cwd=str(tmp_path))
    state.configure(AgentConfig(api_key="k", memory_file=str(tmp_path / "agents.md")), {})
    return state


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc_info:
        nanocode_cli.build_arg_parser().parse_args(["--version"])
    assert exc_info.value.code == 0
    assert nanocode_cli.__version__ in capsys.readouterr().out


def test_protocol_flag_is_validated():
    with pytest.raises(SystemExit):
        nanocode_cli.build_arg_parser().parse_args(["--protocol", "smoke-signals"])


def test_context_usage_prompt(app_state):
    with patch("nanocode_cli.token_counter", return_value=321) as mock_counter:
        assert nanocode_cli.get_context_usage_prompt_string(app_state) == "[Ctx: 321 toks] "
    assert mock_counter.call_args.kwargs["model"] == "codestral-latest"


def test_context_usage_prompt_survives_counter_errors(app_state):
    with patch("nanocode_cli.token_counter", side_effect=ValueError("unknown model")):
        assert nanocode_cli.get_context_usage_prompt_string(app_state) == ""


def test_missing_api_key_exits():
    console = MagicMock()
    with pytest.raises(SystemExit) as exc_info:
        perform_credentials_check(AgentConfig(api_key=None), console)
    assert exc_info.value.code == 1
    console.print.assert_called_once()
