"""Turns raw model text into an AgentAction."""

import json

from auditagent.core.actions import (
    AgentAction, Final, ReadFile, Grep, ListDir, FindFiles,
    DEFAULT_CONTEXT_LINES, MAX_CONTEXT_LINES,
)
from auditagent.core.errors import NotStructuredJson, UnsupportedAction


def parse_structured_content(content: str) -> dict:
    """
    Parse model output as a JSON object.

    Tries the text as-is first, then with a surrounding ``` / ```json
    fence removed.
    """
    try:
        parsed = json.loads(content)
    except (json.JSONDecodeError, TypeError):
        parsed = _parse_fenced(content or "")

    if not isinstance(parsed, dict):
        raise NotStructuredJson(
            "AI provider response is not valid JSON for structured findings")
    return parsed


def _parse_fenced(content: str):
    trimmed = content.strip()
    if trimmed.startswith("```json"):
        inner = trimmed[len("```json"):]
    elif trimmed.startswith("```"):
        inner = trimmed[len("```"):]
    else:
        return None

    inner = inner.strip()
    if inner.endswith("```"):
        inner = inner[:-3]
    try:
        return json.loads(inner.strip())
    except json.JSONDecodeError:
        return None


def _context_lines(value) -> int:
    if isinstance(value, bool):
        return DEFAULT_CONTEXT_LINES
    if isinstance(value, int):
        n = value
    elif isinstance(value, str) and value.strip().isdigit():
        n = int(value.strip())
    else:
        return DEFAULT_CONTEXT_LINES
    return max(0, min(n, MAX_CONTEXT_LINES))


def _text(value, default: str) -> str:
    return value if isinstance(value, str) else default


def parse_agent_action(content: str) -> AgentAction:
    parsed = parse_structured_content(content)

    raw_action = parsed.get("action")
    action = raw_action.strip().lower() if isinstance(raw_action, str) else None

    has_final_shape = "findings" in parsed or "status" in parsed
    if action is None and has_final_shape:
        return Final(parsed)

    action = action or "final"
    path = _text(parsed.get("path"), ".")

    if action == "final":
        return Final(parsed)
    if action == "read_file":
        return ReadFile(path=path)
    if action == "grep":
        return Grep(pattern=_text(parsed.get("pattern"), ""), path=path,
                    context_lines=_context_lines(parsed.get("context_lines")))
    if action == "list_dir":
        return ListDir(path=path)
    if action == "find_files":
        glob = parsed.get("glob")
        return FindFiles(path=path, glob=glob if isinstance(glob, str) and glob else None)
    raise UnsupportedAction(action)
