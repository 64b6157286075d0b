"""Vulnerability skill catalog: frontmatter + markdown body per file."""

from pathlib import Path
from typing import List

import yaml

from auditagent.core.errors import (
    ConfigError, MalformedSkill, MissingField, InvalidSeverity, EmptyCatalog,
    DuplicateSkillId,
)
from auditagent.core.models import VulnerabilitySkill, MiniPrompt, SEVERITIES
from auditagent.parsers.builtin_skills import BUILTIN_SKILLS

DEFAULT_SKILLS_DIR = "skills/vulnerabilities"

_REQUIRED = ("id", "name", "severity", "description", "prompt_fragment")
_LISTS = ("examples", "false_positives", "references", "tags")
_KNOWN = set(_REQUIRED) | set(_LISTS) | {"confidence_hint"}


def load_skills(skills_dir, default_requested: bool | None = None) -> List[VulnerabilitySkill]:
    """
    Load every regular file in *skills_dir*, sorted by path.

    A missing directory falls back to the built-in catalog only when the
    caller asked for the default location.
    """
    skills_dir = Path(skills_dir)
    if default_requested is None:
        default_requested = skills_dir.as_posix() == DEFAULT_SKILLS_DIR

    if not skills_dir.exists():
        if default_requested:
            return load_builtin_skills()
        raise ConfigError(f"Audit skills directory not found: {skills_dir}")
    if not skills_dir.is_dir():
        raise ConfigError(f"Audit skills path is not a directory: {skills_dir}")

    entries = sorted(p for p in skills_dir.iterdir() if p.is_file())
    if not entries:
        raise EmptyCatalog(f"No vulnerability skills found in {skills_dir}")
    return _unique([(str(p), load_skill_file(p)) for p in entries])


def load_builtin_skills() -> List[VulnerabilitySkill]:
    return _unique([(name, parse_skill_content(name, content))
                    for name, content in sorted(BUILTIN_SKILLS.items())])


def _unique(loaded) -> List[VulnerabilitySkill]:
    """Reject a repeated skill id, naming both files."""
    seen = {}
    for source, skill in loaded:
        if skill.id in seen:
            raise DuplicateSkillId(skill.id, seen[skill.id], source)
        seen[skill.id] = source
    return [skill for _, skill in loaded]


def load_skill_file(path: Path) -> VulnerabilitySkill:
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedSkill(
            f"Failed to read vulnerability skill file {path}: {e}") from e
    return parse_skill_content(str(path), content)


def split_frontmatter(content: str) -> tuple[str, str]:
    lines = content.lstrip("\ufeff").splitlines()
    if not lines:
        raise MalformedSkill("Skill file is empty")
    if lines[0].strip() != "---":
        raise MalformedSkill("Missing frontmatter start delimiter `---`")

    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == "---":
            return "\n".join(lines[1:i]), "\n".join(lines[i + 1:])
    raise MalformedSkill("Missing frontmatter end delimiter `---`")


def _as_list(value, key: str, source: str) -> tuple:
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list):
        return tuple(str(v) for v in value)
    raise MalformedSkill(f"Field `{key}` must be a list in vulnerability skill file {source}")


def parse_skill_content(source: str, content: str) -> VulnerabilitySkill:
    try:
        frontmatter, body = split_frontmatter(content)
    except MalformedSkill as e:
        raise MalformedSkill(
            f"Failed to parse frontmatter from vulnerability skill file {source}: {e}") from e

    try:
        # BaseLoader keeps scalars verbatim, e.g. `id: 010` stays "010"
        data = yaml.load(frontmatter.replace("\t", "  "), Loader=yaml.BaseLoader) or {}
    except yaml.YAMLError as e:
        raise MalformedSkill(
            f"Invalid YAML frontmatter in vulnerability skill file {source}: {e}") from e
    if not isinstance(data, dict):
        raise MalformedSkill(
            f"Frontmatter must be a key/value mapping in vulnerability skill file {source}")

    unknown = sorted(set(map(str, data)) - _KNOWN)
    if unknown:
        raise MalformedSkill(
            f"Unknown field(s) {', '.join(unknown)} in vulnerability skill file {source}")

    values = {}
    for key in _REQUIRED:
        raw = data.get(key)
        text = "" if raw is None else str(raw).strip()
        if not text:
            raise MissingField(key, source)
        values[key] = text

    severity = values["severity"].lower()
    if severity not in SEVERITIES:
        raise InvalidSeverity(values["severity"], source)

    hint = data.get("confidence_hint")
    hint = str(hint).strip() if hint is not None else ""

    return VulnerabilitySkill(
        id=values["id"],
        name=values["name"],
        severity=severity,
        description=values["description"],
        prompt_fragment=values["prompt_fragment"],
        examples=_as_list(data.get("examples"), "examples", source),
        false_positives=_as_list(data.get("false_positives"), "false_positives", source),
        references=_as_list(data.get("references"), "references", source),
        tags=_as_list(data.get("tags"), "tags", source),
        confidence_hint=hint or None,
        guidance_markdown=body.strip(),
    )


def compose_skill_prompt(skill: VulnerabilitySkill) -> str:
    sections = [
        f"Skill ID: {skill.id}",
        f"Name: {skill.name}",
        f"Severity: {skill.severity}",
        f"Description: {skill.description}",
        f"Prompt Fragment: {skill.prompt_fragment}",
    ]
    if skill.tags:
        sections.append(f"Tags: {', '.join(skill.tags)}")
    if skill.confidence_hint:
        sections.append(f"Confidence Hint: {skill.confidence_hint}")
    if skill.examples:
        sections.append("Examples:\n- " + "\n- ".join(skill.examples))
    if skill.false_positives:
        sections.append("False Positives To Avoid:\n- " + "\n- ".join(skill.false_positives))
    if skill.references:
        sections.append("References:\n- " + "\n- ".join(skill.references))
    if skill.guidance_markdown.strip():
        sections.append(f"Guidance:\n{skill.guidance_markdown.strip()}")
    return "\n\n".join(sections)


def build_mini_prompt(skill: VulnerabilitySkill) -> MiniPrompt:
    return MiniPrompt(skill_id=skill.id, text=compose_skill_prompt(skill))
