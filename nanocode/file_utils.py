# nanocode/file_utils.py
import os
import tempfile
from pathlib import Path

# MAX_FILE_SIZE_BYTES lives in config_utils and is passed in by the caller.


def normalize_path(path_str: str) -> str:
    """Return a canonical, absolute version of the path."""
    try:
        if not path_str:
            raise ValueError("Path cannot be empty.")
        return str(Path(path_str).expanduser().resolve())
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid path: \"{path_str}\". Error: {e}") from e


def is_binary_file(file_path: str, peek_size: int = 1024) -> bool:
    """Checks if a file is likely binary by looking for null bytes."""
    try:
        with open(file_path, 'rb') as f:
            chunk = f.read(peek_size)
        return b'\0' in chunk
    except OSError:
        return True # Err on the side of caution


def read_local_file(file_path: str) -> str:
    """Return the text content of a local file.
    Raises FileNotFoundError, OSError or UnicodeDecodeError on issues.
    """
    with open(file_path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_file_atomically(path: str, content: str, max_file_size_bytes: int) -> str:
    """Create (or overwrite) the file at 'path' with 'content'.

    The content goes to a temporary sibling first and is moved into place with
    os.replace, so readers see either the old file or the new one. Returns the
    normalized path.
    """
    normalized_file_path = Path(normalize_path(path))

    encoded_size = len(content.encode("utf-8"))
    if encoded_size > max_file_size_bytes:
        raise ValueError(f"File content ({encoded_size} bytes) exceeds the {max_file_size_bytes} byte size limit")

    normalized_file_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{normalized_file_path.name}.", suffix=".tmp", dir=normalized_file_path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if normalized_file_path.exists():
            os.chmod(tmp_path, normalized_file_path.stat().st_mode & 0o7777)
        else:
            os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, normalized_file_path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
    return str(normalized_file_path)
