"""Prompt templates for the audit agent loop."""

import re

_PLACEHOLDER = re.compile(r"\{\{([A-Z_]+)\}\}")

AGENT_SYSTEM_PROMPT = """You are a security auditor specialized in Aiken smart contracts.
You evaluate a project against ONE vulnerability skill at a time.

You cannot see the project directly. You may ask for read-only information,
one request per reply, and you will receive the command output in the next
message. Reply with exactly one JSON object and nothing else.

Available actions:

{"action": "read_file", "path": "<relative path>"}
{"action": "grep", "pattern": "<regex>", "path": "<relative path>", "context_lines": <0-20>}
{"action": "list_dir", "path": "<relative path>"}
{"action": "find_files", "path": "<relative path>", "glob": "<name pattern, optional>"}

When you have enough evidence, finish with:

{"action": "final",
 "status": "completed",
 "findings": [
   {"title": string,
    "severity": "low" | "medium" | "high" | "critical",
    "summary": string,
    "evidence": [string],
    "recommendation": string,
    "file": string | null,
    "line": number | null}
 ],
 "next_prompt": string | null}

Rules:
- Paths are relative to the project root. Requests outside it are refused.
- A refused request is reported back as "Request failed: ..."; adjust and continue.
- Report only issues supported by code you have read. An empty findings list is a valid answer.
"""

INITIAL_USER_PROMPT_TEMPLATE = """Analyze the project for the following vulnerability skill.

## Skill

{{SKILL}}

## Source files

{{SOURCE_REFERENCES}}

## Permissions

{{PERMISSION_PROMPT}}

Start by requesting the files you need, then return the final JSON verdict.
"""

TOOL_RESULT_PROMPT_TEMPLATE = """Tool result for {{REQUEST}}:

{{OUTPUT}}

Continue and return JSON: either another read request or the final verdict.
"""


def render_source_references(source_references) -> str:
    if not source_references:
        return "- (none)"
    return "\n".join(f"- {path}" for path in source_references)


def fill_template(template: str, values: dict) -> str:
    # one pass: substituted text is never scanned for placeholders again
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def build_initial_user_prompt(skill_text: str, source_references, permission_text: str) -> str:
    return fill_template(INITIAL_USER_PROMPT_TEMPLATE, {
        "SKILL": skill_text,
        "SOURCE_REFERENCES": render_source_references(source_references),
        "PERMISSION_PROMPT": permission_text,
    })


def build_tool_result_prompt(request_summary: str, output: str) -> str:
    return fill_template(TOOL_RESULT_PROMPT_TEMPLATE,
                         {"REQUEST": request_summary, "OUTPUT": output})
