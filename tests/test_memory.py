# tests/test_memory.py
import time

from nanocode.memory import (
    ANALYSIS_INSTRUCTION,
    append_analysis,
    build_analysis_prompt,
    build_system_prompt,
    collect_project_files,
    memory_description,
    split_frontmatter,
)


def test_system_prompt_without_memory_file(tmp_path):
    prompt = build_system_prompt("/work", str(tmp_path / "agents.md"))
    assert prompt.startswith("You are the Orchestrator Agent. CWD: /work.")
    assert "THOUGHT" in prompt
    assert "MEMORY & GUIDELINES" not in prompt


def test_system_prompt_includes_memory_without_frontmatter(tmp_path):
    memory = tmp_path / "agents.md"
    memory.write_text("---\ndescription: Go service notes\n---\n- use gofmt\n", encoding="utf-8")
    prompt = build_system_prompt("/work", str(memory))
    assert prompt.endswith("=== [agents.md] MEMORY & GUIDELINES ===\n- use gofmt\n")
    assert "description:" not in prompt


def test_split_frontmatter_variants():
    assert split_frontmatter("plain text") == ({}, "plain text")
    assert split_frontmatter("---\ntitle: x\n---\nbody") == ({"title": "x"}, "body")
    # unterminated frontmatter is kept as content
    assert split_frontmatter("---\nno end") == ({}, "---\nno end")
    # malformed YAML is kept as content
    assert split_frontmatter("---\n: [\n---\nbody")[1] == "---\n: [\n---\nbody"


def test_memory_description(tmp_path):
    memory = tmp_path / "agents.md"
    assert memory_description(str(memory)) == "No memory file."
    memory.write_text("just notes", encoding="utf-8")
    assert memory_description(str(memory)) == "No description provided."
    memory.write_text("---\ndescription: Team rules\n---\nnotes", encoding="utf-8")
    assert memory_description(str(memory)) == "Team rules"


def test_collect_project_files_filters_and_truncates(tmp_path):
    (tmp_path / "main.go").write_text("x" * 5000, encoding="utf-8")
    (tmp_path / "README.md").write_text("readme", encoding="utf-8")
    (tmp_path / ".env").write_text("SECRET=1", encoding="utf-8")
    (tmp_path / "agents.md").write_text("memory", encoding="utf-8")
    (tmp_path / "logo.png").write_bytes(b"\x89PNG\x00\x00")
    (tmp_path / "pkg").mkdir()

    files = collect_project_files(str(tmp_path), "agents.md", 3000)

    assert [name for name, _ in files] == ["README.md", "main.go"]
    assert len(dict(files)["main.go"]) == 3000


def test_build_analysis_prompt():
    prompt = build_analysis_prompt([("main.go", "package main")])
    assert prompt.startswith(ANALYSIS_INSTRUCTION)
    assert "\n--- FILE: main.go ---\npackage main\n" in prompt


def test_append_analysis_adds_timestamped_section(tmp_path):
    memory = tmp_path / "agents.md"
    memory.write_text("existing", encoding="utf-8")
    now = time.mktime((2024, 5, 17, 9, 30, 0, 0, 0, -1))

    append_analysis(str(memory), "- guideline", now=now)

    assert memory.read_text(encoding="utf-8") == "existing\n\n### AUTO-ANALYSIS (2024-05-17 09:30) ###\n- guideline"


def test_append_analysis_creates_file(tmp_path):
    memory = tmp_path / "agents.md"
    append_analysis(str(memory), "- first")
    assert memory.read_text(encoding="utf-8").endswith("###\n- first")
