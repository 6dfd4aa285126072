# nanocode/tool_executor.py
import glob
import json
import logging
import os
import signal
import subprocess
from typing import Callable, Dict, Iterable, Tuple, Type

from pydantic import BaseModel, ValidationError

from nanocode.config_utils import AgentConfig
from nanocode.data_models import (
    BashArgs,
    EditFileArgs,
    GlobArgs,
    ReadFileArgs,
    ToolDeclaration,
    WriteFileArgs,
)
from nanocode.errors import (
    AmbiguousEditError,
    ConfigurationError,
    ToolArgumentError,
    ToolExecutionError,
)
from nanocode.file_utils import normalize_path, read_local_file, write_file_atomically
from nanocode.tool_defs import TOOL_DECLARATIONS

logger = logging.getLogger(__name__)

FAILURE_MARKER = "error: "
SUCCESS_MARKER = "ok"
EOF_MARKER = "EOF"
EMPTY_OUTPUT_MARKER = "(empty)"
TIMEOUT_MARKER = "(timed out)"
NO_MATCHES_MARKER = "none"

# Seconds to wait for a killed command's pipes to drain.
_REAP_GRACE_SECONDS = 5


def is_failure(result: str) -> bool:
    return result.startswith(FAILURE_MARKER)


class ToolExecutor:
    """
    Runs one declared tool against JSON arguments and returns its text result.

    execute() never raises for tool-level problems: bad arguments, missing
    files and failing commands all come back as strings starting with
    FAILURE_MARKER, so the model can read them and react.
    """

    def __init__(self, config: AgentConfig, declarations: Iterable[ToolDeclaration] = TOOL_DECLARATIONS):
        self.config = config
        self._handlers: Dict[str, Tuple[Type[BaseModel], Callable[[BaseModel], str]]] = {
            "read": (ReadFileArgs, self._read),
            "write": (WriteFileArgs, self._write),
            "edit": (EditFileArgs, self._edit),
            "bash": (BashArgs, self._bash),
            "glob": (GlobArgs, self._glob),
        }
        declared = {decl.name for decl in declarations}
        if declared != set(self._handlers):
            raise ConfigurationError(
                f"Tool handlers {sorted(self._handlers)} do not match declared tools {sorted(declared)}"
            )

    @property
    def tool_names(self):
        return frozenset(self._handlers)

    def execute(self, name: str, arguments_json: str) -> str:
        entry = self._handlers.get(name)
        if entry is None:
            return f"{FAILURE_MARKER}unknown tool '{name}'"

        args_model, handler = entry
        try:
            args = self._parse_arguments(args_model, arguments_json)
            result = handler(args)
        except (ToolArgumentError, ToolExecutionError) as e:
            logger.debug("Tool %s failed: %s", name, e)
            return f"{FAILURE_MARKER}{e}"
        except Exception as e:
            logger.exception("Unexpected error while executing tool %s", name)
            return f"{FAILURE_MARKER}unexpected failure in {name}: {e}"
        logger.debug("Tool %s returned %d chars", name, len(result))
        return result

    @staticmethod
    def _parse_arguments(args_model: Type[BaseModel], arguments_json: str) -> BaseModel:
        try:
            raw_args = json.loads(arguments_json) if arguments_json.strip() else {}
        except json.JSONDecodeError as e:
            raise ToolArgumentError(f"arguments are not valid JSON ({e.msg} at position {e.pos})") from e
        if not isinstance(raw_args, dict):
            raise ToolArgumentError("arguments must be a JSON object")
        try:
            return args_model.model_validate(raw_args)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            raise ToolArgumentError(f"invalid arguments: {problems}") from e

    # --- file tools ---

    @staticmethod
    def _load_text(path: str) -> Tuple[str, str]:
        try:
            normalized_path = normalize_path(path)
        except ValueError as e:
            raise ToolArgumentError(str(e)) from e
        try:
            return normalized_path, read_local_file(normalized_path)
        except FileNotFoundError:
            raise ToolExecutionError(f"file not found: {path}") from None
        except IsADirectoryError:
            raise ToolExecutionError(f"is a directory: {path}") from None
        except UnicodeDecodeError:
            raise ToolExecutionError(f"not a UTF-8 text file: {path}") from None
        except OSError as e:
            raise ToolExecutionError(f"cannot read {path}: {e.strerror or e}") from e

    def _store_text(self, path: str, content: str) -> None:
        try:
            write_file_atomically(path, content, self.config.max_file_size_bytes)
        except ValueError as e:
            raise ToolArgumentError(str(e)) from e
        except OSError as e:
            raise ToolExecutionError(f"cannot write {path}: {e.strerror or e}") from e

    def _read(self, args: ReadFileArgs) -> str:
        _, text = self._load_text(args.path)
        lines = text.split("\n")
        if lines[-1] == "":
            lines.pop() # trailing newline does not start another line

        if args.offset >= len(lines):
            return EOF_MARKER
        end = len(lines) if args.limit is None else min(args.offset + args.limit, len(lines))
        numbered = []
        for line_number, line in enumerate(lines[args.offset:end], start=args.offset + 1):
            line = line.rstrip("\r")
            numbered.append(f"{line_number:4d}| {line}\n")
        return "".join(numbered)

    def _write(self, args: WriteFileArgs) -> str:
        self._store_text(args.path, args.content)
        return SUCCESS_MARKER

    def _edit(self, args: EditFileArgs) -> str:
        normalized_path, text = self._load_text(args.path)
        occurrences = text.count(args.old)
        if occurrences == 0:
            raise ToolExecutionError("old_string not found")
        if occurrences > 1 and not args.replace_all:
            raise AmbiguousEditError(occurrences)

        updated = text.replace(args.old, args.new) if args.replace_all else text.replace(args.old, args.new, 1)
        if updated != text:
            self._store_text(normalized_path, updated)
        return SUCCESS_MARKER

    # --- process tool ---

    def _bash(self, args: BashArgs) -> str:
        try:
            process = subprocess.Popen(
                ["bash", "-c", args.cmd],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                start_new_session=True,
            )
        except OSError as e:
            raise ToolExecutionError(f"cannot start bash: {e.strerror or e}") from e

        timed_out = False
        try:
            output_bytes, _ = process.communicate(timeout=self.config.bash_timeout)
        except subprocess.TimeoutExpired as first_timeout:
            timed_out = True
            logger.debug("Command timed out after %ss: %s", self.config.bash_timeout, args.cmd)
            _kill_process_tree(process)
            try:
                output_bytes, _ = process.communicate(timeout=_REAP_GRACE_SECONDS)
            except subprocess.TimeoutExpired as second_timeout:
                # A detached grandchild still holds the pipe; keep what we have.
                output_bytes = second_timeout.output or first_timeout.output or b""
                if process.stdout:
                    process.stdout.close()
                process.wait()
        except BaseException:
            _kill_process_tree(process)
            process.wait()
            raise

        output = output_bytes.decode("utf-8", errors="replace").strip()
        if timed_out:
            return f"{output}\n{TIMEOUT_MARKER}" if output else TIMEOUT_MARKER
        if process.returncode != 0:
            status = f"exit status {process.returncode}"
            return f"{output}\n{status}" if output else status
        return output or EMPTY_OUTPUT_MARKER

    # --- search tool ---

    def _glob(self, args: GlobArgs) -> str:
        if not os.path.isdir(args.root):
            raise ToolExecutionError(f"not a directory: {args.root}")
        matches = glob.glob(os.path.join(args.root, args.pattern), recursive=True)
        if not matches:
            return NO_MATCHES_MARKER
        # list.sort is stable, also with reverse=True: equal mtimes keep enumeration order
        matches.sort(key=_mtime_ns, reverse=True)
        return "\n".join(matches)


def _mtime_ns(path: str) -> int:
    try:
        return os.stat(path).st_mtime_ns
    except OSError:
        return 0


def _kill_process_tree(process: subprocess.Popen) -> None:
    # The command runs in its own session, so its pid is also its process group id.
    try:
        if hasattr(os, "killpg"):
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except (ProcessLookupError, PermissionError):
        pass
