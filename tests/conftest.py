"""Pytest configuration and fixtures."""
import io
import json
from pathlib import Path

import pytest

from auditagent.core.models import VulnerabilitySkill, ProviderDescriptor
from auditagent.core.permissions import build_permission_policy
from auditagent.core.sandbox import Sandbox
from auditagent.providers.base import BaseProvider
from auditagent.reporters.console import Log


@pytest.fixture
def sample_project(tmp_path):
    """Minimal Aiken project tree."""
    root = tmp_path / "project"
    (root / "validators").mkdir(parents=True)
    (root / "lib").mkdir()
    (root / "build").mkdir()

    (root / "validators" / "spend.ak").write_text(
        "validator spend {\n"
        "  spend(datum, redeemer, own_ref, self) {\n"
        "    output.value == expected\n"
        "  }\n"
        "}\n")
    (root / "validators" / "other.ak").write_text("validator other {}\n")
    (root / "lib" / "utils.ak").write_text("pub fn helper() { True }\n")
    (root / "build" / "generated.ak").write_text("// generated\n")
    (root / "README.md").write_text("# sample\n")
    return root


@pytest.fixture
def quiet_log():
    """Logger that writes to an in-memory buffer."""
    return Log(verbose=2, ai_logs=True, stream=io.StringIO())


@pytest.fixture
def skill():
    return VulnerabilitySkill(
        id="strict-value-equality-003",
        name="Strict value equality",
        severity="high",
        description="Detect strict equality checks for ADA.",
        prompt_fragment="Find strict equality on ADA or full values.",
    )


@pytest.fixture
def workspace_sandbox(sample_project):
    policy = build_permission_policy("workspace", False, sample_project, [])
    return Sandbox(sample_project, policy)


class ScriptedProvider(BaseProvider):
    """Provider stub replaying canned model replies."""

    name = "scripted"

    def __init__(self, replies, logger=None):
        self.replies = list(replies)
        self.calls = []
        self.logger = logger

    def describe(self):
        return ProviderDescriptor(name=self.name, model="stub", notes="test double")

    def exchange(self, messages):
        self.calls.append([dict(m) for m in messages])
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply if isinstance(reply, str) else json.dumps(reply)


@pytest.fixture
def scripted():
    return ScriptedProvider


@pytest.fixture
def deny_directory(monkeypatch):
    """Make iterdir() on a given directory fail the way an unreadable one does."""
    real_iterdir = Path.iterdir

    def deny(denied):
        def iterdir(self):
            if self == denied:
                raise PermissionError(13, "Permission denied", str(self))
            return real_iterdir(self)

        monkeypatch.setattr(Path, "iterdir", iterdir)

    return deny
