# nanocode/memory.py
"""
Persistent project memory: the memory file (agents.md by default) is read on
every system prompt rebuild, and /i appends a model-written analysis to it.
"""
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from nanocode.file_utils import is_binary_file

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"
NO_FILES_TO_ANALYZE = "No files to analyze."

ANALYSIS_INSTRUCTION = (
    "Analyze these project files. Output a clean Markdown list of Coding Guidelines, "
    "patterns, and Architecture notes (max 300 words). Do NOT act as an agent, just "
    "output the MD content:\n"
)


def base_instruction(cwd: str) -> str:
    return (
        f"You are the Orchestrator Agent. CWD: {cwd}.\n"
        "PROTOCOL: THOUGHT (Explain plan) > ACTION (Use tool) > OBSERVATION > REPEAT.\n"
        "Never use a tool without explaining WHY first in the THOUGHT phase."
    )


def split_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """
    Separates an optional YAML frontmatter block from the memory text.
    Returns (metadata, body). Malformed frontmatter leaves the content untouched.
    """
    if not content.startswith(FRONTMATTER_DELIMITER):
        return {}, content
    end_frontmatter = content.find(FRONTMATTER_DELIMITER, len(FRONTMATTER_DELIMITER))
    if end_frontmatter == -1:
        return {}, content
    try:
        metadata = yaml.safe_load(content[len(FRONTMATTER_DELIMITER):end_frontmatter])
    except yaml.YAMLError as e:
        logger.warning("Ignoring malformed frontmatter in memory file: %s", e)
        return {}, content
    if not isinstance(metadata, dict):
        metadata = {}
    return metadata, content[end_frontmatter + len(FRONTMATTER_DELIMITER):].lstrip()


def read_memory(memory_file: str) -> Tuple[Dict[str, Any], str]:
    """Returns (metadata, body) of the memory file, or ({}, "") when it is absent or unreadable."""
    try:
        with open(memory_file, "r", encoding="utf-8") as f:
            content = f.read()
    except FileNotFoundError:
        return {}, ""
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read memory file %s: %s", memory_file, e)
        return {}, ""
    return split_frontmatter(content)


def memory_description(memory_file: str) -> str:
    metadata, body = read_memory(memory_file)
    if metadata.get("description"):
        return str(metadata["description"])
    return "No description provided." if body else "No memory file."


def build_system_prompt(cwd: str, memory_file: str) -> str:
    prompt = base_instruction(cwd)
    _, body = read_memory(memory_file)
    if body:
        prompt += f"\n\n=== [{Path(memory_file).name}] MEMORY & GUIDELINES ===\n{body}"
    logger.debug("System prompt built (%d chars, memory: %d chars)", len(prompt), len(body))
    return prompt


def collect_project_files(root: str, memory_file: str, max_chars: int) -> List[Tuple[str, str]]:
    """Non-hidden regular text files directly under 'root', each cut to max_chars characters."""
    memory_name = Path(memory_file).name
    collected = []
    for name in sorted(os.listdir(root)):
        path = os.path.join(root, name)
        if name.startswith(".") or name == memory_name or not os.path.isfile(path):
            continue
        if is_binary_file(path):
            logger.debug("Skipping binary file %s", path)
            continue
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                collected.append((name, f.read(max_chars)))
        except OSError as e:
            logger.debug("Skipping unreadable file %s: %s", path, e)
    return collected


def build_analysis_prompt(files: List[Tuple[str, str]]) -> str:
    parts = [ANALYSIS_INSTRUCTION]
    for name, content in files:
        parts.append(f"\n--- FILE: {name} ---\n{content}\n")
    return "".join(parts)


def analysis_header(now: float = None) -> str:
    stamp = time.strftime("%Y-%m-%d %H:%M", time.localtime(now))
    return f"\n\n### AUTO-ANALYSIS ({stamp}) ###\n"


def append_analysis(memory_file: str, guidelines: str, now: float = None) -> None:
    """Appends the analysis under a timestamped header. Raises OSError."""
    with open(memory_file, "a", encoding="utf-8") as f:
        f.write(analysis_header(now) + guidelines)
    logger.debug("Appended %d chars of analysis to %s", len(guidelines), memory_file)
