"""Tests for the read-only sandbox."""

import pytest

from auditagent.core.actions import ReadFile, Grep, ListDir, FindFiles
from auditagent.core.discovery import discover_source_files
from auditagent.core.errors import (
    ConfigError, CommandNotPermitted, PathNotFound, PathEscapesRoot,
    ScopeDenied, UserDenied, CommandFailed,
)
from auditagent.core.models import PermissionPolicy
from auditagent.core.permissions import build_permission_policy
from auditagent.core.sandbox import Sandbox, normalize_output, MAX_COMMAND_OUTPUT_CHARS


@pytest.fixture
def strict_sandbox(sample_project):
    sources = [sample_project / "validators" / "spend.ak"]
    policy = build_permission_policy("strict", False, sample_project, sources)
    return Sandbox(sample_project, policy)


@pytest.fixture
def outside(tmp_path):
    secret = tmp_path / "secret.txt"
    secret.write_text("top secret\n")
    return secret


class TestWorkspaceScope:

    def test_read_file(self, workspace_sandbox):
        out = workspace_sandbox.execute(ReadFile("validators/spend.ak"))
        assert "output.value == expected" in out

    def test_grep_reports_line_numbers(self, workspace_sandbox):
        out = workspace_sandbox.execute(Grep(pattern="output.value", path="validators/spend.ak"))
        assert "3:    output.value == expected" in out
        assert "1-validator spend {" in out

    def test_list_dir(self, workspace_sandbox):
        out = workspace_sandbox.execute(ListDir("validators"))
        assert "spend.ak" in out
        assert "other.ak" in out

    def test_find_files_with_glob(self, workspace_sandbox):
        out = workspace_sandbox.execute(FindFiles(path=".", glob="*.ak"))
        assert "utils.ak" in out
        assert "README.md" not in out

    def test_grep_without_match_is_not_an_error(self, workspace_sandbox):
        out = workspace_sandbox.execute(Grep(pattern="no-such-token", path="lib/utils.ak"))
        assert "(no output; command exited with status 1)" in out

    def test_dotdot_escape_rejected(self, workspace_sandbox, outside):
        with pytest.raises(PathEscapesRoot, match="escapes project root"):
            workspace_sandbox.execute(ReadFile("../secret.txt"))

    def test_absolute_escape_rejected(self, workspace_sandbox, outside):
        with pytest.raises(PathEscapesRoot):
            workspace_sandbox.execute(ReadFile(str(outside)))

    def test_symlink_escape_rejected(self, sample_project, workspace_sandbox, outside):
        (sample_project / "link.txt").symlink_to(outside)
        with pytest.raises(PathEscapesRoot):
            workspace_sandbox.execute(ReadFile("link.txt"))

    def test_missing_path(self, workspace_sandbox):
        with pytest.raises(PathNotFound):
            workspace_sandbox.execute(ReadFile("validators/missing.ak"))

    def test_null_byte_in_path(self, workspace_sandbox):
        with pytest.raises(PathNotFound):
            workspace_sandbox.execute(ReadFile("validators/spend\x00.ak"))

    def test_null_byte_in_pattern(self, workspace_sandbox):
        with pytest.raises(CommandFailed, match="Failed to run command 'grep'"):
            workspace_sandbox.execute(Grep(pattern="a\x00b", path="validators/spend.ak"))

    def test_command_not_in_allow_list(self, sample_project):
        policy = build_permission_policy("workspace", False, sample_project, [])
        policy.allowed_commands = ["grep"]
        sandbox = Sandbox(sample_project, policy)

        with pytest.raises(CommandNotPermitted, match="Command 'cat' is not permitted"):
            sandbox.execute(ReadFile("validators/spend.ak"))

    def test_missing_root(self, tmp_path):
        policy = PermissionPolicy(shell="bash", allowed_commands=["cat"], scope_rules=[])
        with pytest.raises(ConfigError):
            Sandbox(tmp_path / "nope", policy)


class TestStrictScope:

    def test_allowed_source_is_readable(self, strict_sandbox):
        out = strict_sandbox.execute(ReadFile("validators/spend.ak"))
        assert "validator spend" in out

    def test_allowed_source_by_equivalent_path(self, strict_sandbox):
        out = strict_sandbox.execute(Grep(pattern="spend", path="lib/../validators/spend.ak"))
        assert "validator spend" in out

    def test_other_source_denied(self, strict_sandbox):
        with pytest.raises(ScopeDenied, match="strict read scope"):
            strict_sandbox.execute(ReadFile("validators/other.ak"))

    def test_directory_denied(self, strict_sandbox):
        with pytest.raises(ScopeDenied):
            strict_sandbox.execute(Grep(pattern="spend", path="validators"))

    @pytest.mark.parametrize("request_", [ListDir("."), ListDir("validators"), FindFiles(path=".")])
    def test_listing_denied(self, strict_sandbox, request_):
        with pytest.raises(ScopeDenied, match="directory listing"):
            strict_sandbox.execute(request_)

    def test_escape_checked_before_scope(self, strict_sandbox, outside):
        with pytest.raises(PathEscapesRoot):
            strict_sandbox.execute(ReadFile("../secret.txt"))

    def test_symlink_escape_rejected(self, sample_project, strict_sandbox, outside):
        (sample_project / "validators" / "leak.ak").symlink_to(outside)
        with pytest.raises(PathEscapesRoot):
            strict_sandbox.execute(ReadFile("validators/leak.ak"))

    def test_full_discovery_allows_every_source(self, sample_project):
        policy = build_permission_policy(
            "strict", False, sample_project, discover_source_files(sample_project))
        sandbox = Sandbox(sample_project, policy)

        assert "validator other" in sandbox.execute(ReadFile("validators/other.ak"))


class TestInteractive:

    def _sandbox(self, sample_project, answer):
        questions = []

        def confirm(question):
            questions.append(question)
            return answer

        policy = build_permission_policy("workspace", True, sample_project, [])
        return Sandbox(sample_project, policy, confirm=confirm), questions

    def test_denied_by_operator(self, sample_project):
        sandbox, questions = self._sandbox(sample_project, False)

        with pytest.raises(UserDenied, match="read_file validators/spend.ak"):
            sandbox.execute(ReadFile("validators/spend.ak"))
        assert questions == ["[audit][permission] read_file validators/spend.ak -> validators/spend.ak"]

    def test_approved_by_operator(self, sample_project):
        sandbox, questions = self._sandbox(sample_project, True)

        assert "validator spend" in sandbox.execute(ReadFile("validators/spend.ak"))
        assert len(questions) == 1

    def test_not_asked_for_escaping_path(self, sample_project, outside):
        sandbox, questions = self._sandbox(sample_project, True)

        with pytest.raises(PathEscapesRoot):
            sandbox.execute(ReadFile("../secret.txt"))
        assert questions == []


class TestCommandArgs:

    def test_grep_context_is_clamped(self, tmp_path):
        args = Sandbox._command_args(Grep(pattern="x", path="a", context_lines=99), tmp_path)
        assert args == ["-n", "-C", "20", "--", "x", str(tmp_path)]

    def test_find_without_glob(self, tmp_path):
        assert Sandbox._command_args(FindFiles(path="."), tmp_path) == [str(tmp_path), "-type", "f"]

    def test_pattern_starting_with_dash_is_not_an_option(self, workspace_sandbox):
        out = workspace_sandbox.execute(Grep(pattern="-rf", path="validators/spend.ak"))
        assert "status 1" in out


class TestNormalizeOutput:

    def test_empty_output(self):
        assert normalize_output("", "  \n", 0) == "(no output; command exited with status 0)"

    def test_stderr_is_appended(self):
        assert normalize_output("out\n", "err\n", 0) == "out\n\nerr\n"

    def test_nonzero_status_is_noted(self):
        out = normalize_output("", "cat: nope: No such file\n", 1)
        assert out.endswith("\n(command exited with status 1)")
        assert out.startswith("cat: nope")

    def test_truncation(self):
        out = normalize_output("x" * (MAX_COMMAND_OUTPUT_CHARS + 10), "", 0)
        assert out == "x" * MAX_COMMAND_OUTPUT_CHARS + "\n...(truncated to 30000 chars)"
