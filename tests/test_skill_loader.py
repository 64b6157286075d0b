"""Tests for the vulnerability skill catalog loader."""

import pytest

from auditagent.core.errors import (
    ConfigError, MalformedSkill, MissingField, InvalidSeverity, EmptyCatalog,
    DuplicateSkillId,
)
from auditagent.parsers.skill import (
    parse_skill_content, load_skills, load_builtin_skills, compose_skill_prompt,
)

SKILL = """---
id: strict-value-equality-003
name: Strict value equality
severity: High
description: Detect strict equality checks for ADA.
prompt_fragment: Find strict equality on ADA or full values.
examples:
  - output.value == expected
tags:
\t- plutus-v2
confidence_hint: medium
---
# Instructions

Check validator outputs and avoid false positives for without_lovelace().
"""


def _skill_text(**overrides):
    fields = {
        "id": "skill-1",
        "name": "Test skill",
        "severity": "low",
        "description": "desc",
        "prompt_fragment": "prompt",
    }
    fields.update(overrides)
    body = "\n".join(f"{k}: {v}" for k, v in fields.items() if v is not None)
    return f"---\n{body}\n---\nbody\n"


def test_parse_reads_frontmatter_and_guidance():
    skill = parse_skill_content("skill.md", SKILL)

    assert skill.id == "strict-value-equality-003"
    assert skill.name == "Strict value equality"
    assert skill.severity == "high"
    assert skill.examples == ("output.value == expected",)
    assert skill.tags == ("plutus-v2",)
    assert skill.confidence_hint == "medium"
    assert skill.guidance_markdown.startswith("# Instructions")


def test_parse_requires_frontmatter():
    with pytest.raises(MalformedSkill, match="frontmatter"):
        parse_skill_content("skill.md", "id: foo")


def test_parse_requires_closing_delimiter():
    with pytest.raises(MalformedSkill, match="end delimiter"):
        parse_skill_content("skill.md", "---\nid: foo\n")


@pytest.mark.parametrize("field", ["id", "name", "severity", "description", "prompt_fragment"])
def test_missing_required_field_is_named(field):
    with pytest.raises(MissingField) as exc:
        parse_skill_content("skill.md", _skill_text(**{field: None}))
    assert exc.value.field == field


def test_blank_required_field_counts_as_missing():
    with pytest.raises(MissingField) as exc:
        parse_skill_content("skill.md", _skill_text(name="''"))
    assert exc.value.field == "name"


def test_invalid_severity_rejected():
    with pytest.raises(InvalidSeverity, match="Invalid `severity` value 'urgent'"):
        parse_skill_content("skill.md", _skill_text(severity="urgent"))


def test_unknown_field_rejected():
    with pytest.raises(MalformedSkill, match="Unknown field"):
        parse_skill_content("skill.md", _skill_text(owner="me"))


def test_load_skills_sorted_by_path(tmp_path):
    (tmp_path / "b.md").write_text(_skill_text(id="second"))
    (tmp_path / "a.md").write_text(_skill_text(id="first"))
    (tmp_path / "nested").mkdir()

    skills = load_skills(tmp_path)

    assert [s.id for s in skills] == ["first", "second"]


def test_missing_default_dir_falls_back_to_builtin(tmp_path):
    skills = load_skills(tmp_path / "skills" / "vulnerabilities", default_requested=True)
    assert [s.id for s in skills] == [s.id for s in load_builtin_skills()]
    assert len(skills) == 3


def test_missing_explicit_dir_is_config_error(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_skills(tmp_path / "nope", default_requested=False)


def test_empty_dir_is_empty_catalog(tmp_path):
    with pytest.raises(EmptyCatalog):
        load_skills(tmp_path, default_requested=False)


def test_builtin_skills_are_valid():
    skills = load_builtin_skills()
    assert {s.severity for s in skills} <= {"low", "medium", "high", "critical"}
    assert all(s.guidance_markdown for s in skills)


def test_compose_skill_prompt_omits_empty_sections():
    skill = parse_skill_content("skill.md", SKILL)
    text = compose_skill_prompt(skill)

    assert "Skill ID: strict-value-equality-003" in text
    assert "Examples:\n- output.value == expected" in text
    assert "Guidance:\n# Instructions" in text
    assert "References" not in text
    assert "False Positives" not in text


def test_duplicate_ids_rejected(tmp_path):
    (tmp_path / "a.md").write_text(_skill_text(id="dup"))
    (tmp_path / "b.md").write_text(_skill_text(id="dup"))

    with pytest.raises(DuplicateSkillId) as exc:
        load_skills(tmp_path)

    assert exc.value.skill_id == "dup"
    assert "a.md" in str(exc.value)
    assert "b.md" in str(exc.value)


@pytest.mark.parametrize("raw", ["010", "001", "1e3", "true"])
def test_scalar_ids_kept_verbatim(raw):
    assert parse_skill_content("skill.md", _skill_text(id=raw)).id == raw


def test_empty_list_field():
    skill = parse_skill_content("skill.md", _skill_text(examples=""))
    assert skill.examples == ()
