"""Agent loop: bounded multi-turn exchange between a model and the sandbox.

    AwaitingModel -> (ReadingSandbox -> AwaitingModel)* -> Terminal

The conversation belongs to a single skill and is dropped once the loop
returns; only the resulting SkillIterationResult is persisted.
"""

from typing import List, Dict, Optional

from auditagent.core.actions import Final, summarize_read_request, describe_read_request
from auditagent.core.errors import SandboxError, StepLimitExceeded
from auditagent.core.models import (
    VulnerabilitySkill, MiniPrompt, SkillIterationResult, VulnerabilityFinding,
)
from auditagent.core.permissions import render_permission_prompt
from auditagent.core.prompts import (
    AGENT_SYSTEM_PROMPT, build_initial_user_prompt, build_tool_result_prompt,
)
from auditagent.core.sandbox import Sandbox
from auditagent.parsers.action import parse_agent_action
from auditagent.reporters.console import truncate_for_log

MAX_AGENT_STEPS = 25
LOG_PREVIEW_CHARS = 2_000


class AgentLoop:

    def __init__(self, provider, sandbox: Sandbox, logger=None, max_steps: int = MAX_AGENT_STEPS):
        self.provider = provider
        self.sandbox = sandbox
        self.logger = logger
        self.max_steps = max_steps

    def seed(self, prompt: MiniPrompt, source_references: List[str]) -> List[Dict[str, str]]:
        user = build_initial_user_prompt(
            prompt.text, source_references, render_permission_prompt(self.sandbox.policy))
        return [
            {"role": "system", "content": AGENT_SYSTEM_PROMPT},
            {"role": "user", "content": user},
        ]

    def run(self, skill: VulnerabilitySkill, prompt: MiniPrompt,
            source_references: List[str]) -> SkillIterationResult:
        messages = self.seed(prompt, source_references)

        for step in range(1, self.max_steps + 1):
            tag = f"skill={skill.id} step={step}/{self.max_steps}"
            self._agent(f"{tag} requesting next action from {self.provider.describe().name}")

            content = self.provider.exchange(messages)
            messages.append({"role": "assistant", "content": content})
            self._agent(f"{tag} model output:\n{truncate_for_log(content, LOG_PREVIEW_CHARS)}")

            action = parse_agent_action(content)

            if isinstance(action, Final):
                result = iteration_from_parsed(skill, action.payload)
                self._agent(f"{tag} final status={result.status} findings={len(result.findings)}")
                return result

            self._agent(f"{tag} model requested: {describe_read_request(action)}")
            try:
                output = self.sandbox.execute(action)
            except SandboxError as e:
                output = f"Request failed: {e}"
            self._agent(f"{tag} tool output: {self._preview_tool_output(action, output)}")

            messages.append({
                "role": "user",
                "content": build_tool_result_prompt(summarize_read_request(action), output),
            })

        raise StepLimitExceeded(skill.id, self.max_steps)

    # ── helpers ─────────────────────────────────────────────────

    def _agent(self, msg: str):
        if self.logger:
            self.logger.agent(msg)

    @staticmethod
    def _preview_tool_output(action, output: str) -> str:
        # file contents stay out of the logs
        if action.action == "read_file" and not output.startswith("Request failed:"):
            return f"file '{action.path}' read ({len(output)} chars)"
        return truncate_for_log(output, LOG_PREVIEW_CHARS)


# ── verdict translation ────────────────────────────────────────

def _str_or(value, default: str) -> str:
    return value if isinstance(value, str) else default


def _line_number(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int) and value >= 0:
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _file(value) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def finding_from_dict(item: dict, default_severity: str) -> VulnerabilityFinding:
    location = item.get("location") if isinstance(item.get("location"), dict) else {}
    evidence = item.get("evidence")
    if isinstance(evidence, str):
        evidence = [evidence]
    elif not isinstance(evidence, list):
        evidence = []

    line = _line_number(item.get("line"))
    if line is None:
        line = _line_number(location.get("line"))

    return VulnerabilityFinding(
        title=_str_or(item.get("title"), "Untitled finding"),
        severity=_str_or(item.get("severity"), default_severity),
        summary=_str_or(item.get("summary"), ""),
        evidence=[e for e in evidence if isinstance(e, str)],
        recommendation=_str_or(item.get("recommendation"), ""),
        file=_file(item.get("file")) or _file(location.get("file")),
        line=line,
    )


def iteration_from_parsed(skill: VulnerabilitySkill, parsed: dict) -> SkillIterationResult:
    items = parsed.get("findings")
    findings = [finding_from_dict(i, skill.severity)
                for i in (items if isinstance(items, list) else [])
                if isinstance(i, dict)]

    nxt = parsed.get("next_prompt")
    next_prompt = (MiniPrompt(skill_id=skill.id, text=nxt)
                   if isinstance(nxt, str) and nxt.strip() else None)

    return SkillIterationResult(
        skill_id=skill.id,
        status=_str_or(parsed.get("status"), "completed"),
        findings=findings,
        next_prompt=next_prompt,
    )
