"""Read-only sandbox mediating the model's requests to look at the project.

Every request goes through the same pipeline: command allow-list, path
canonicalization, containment under the project root, read-scope policy,
optional operator confirmation, then a fixed local command with captured
output.
"""

import subprocess
import sys
from pathlib import Path
from typing import Callable, List, Optional

from auditagent.core.actions import (
    ReadRequest, ReadFile, Grep, ListDir, FindFiles, summarize_read_request,
)
from auditagent.core.errors import (
    ConfigError, CommandNotPermitted, PathNotFound, PathEscapesRoot,
    ScopeDenied, UserDenied, CommandFailed,
)
from auditagent.core.models import PermissionPolicy
from auditagent.core.discovery import display_relative

MAX_COMMAND_OUTPUT_CHARS = 30_000


def ask_on_terminal(question: str) -> bool:
    """Blocking y/N prompt on stderr/stdin."""
    sys.stderr.write(f"{question}\nAllow this request? [y/N]: ")
    sys.stderr.flush()
    answer = sys.stdin.readline()
    return answer.strip().lower() in ("y", "yes")


class Sandbox:

    def __init__(self, project_root, policy: PermissionPolicy,
                 confirm: Optional[Callable[[str], bool]] = None):
        try:
            self.root = Path(project_root).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise ConfigError(f"Failed to canonicalize project root {project_root}: {e}") from e
        self.policy = policy
        self.confirm = confirm or ask_on_terminal

    # ── public API ──────────────────────────────────────────────

    def execute(self, request: ReadRequest) -> str:
        self.ensure_allowed(request.command)
        scoped = self.resolve_scoped_path(request.path)
        self.enforce_read_scope(request, scoped)
        self.confirm_if_interactive(request, scoped)
        return self.run_command(request.command, self._command_args(request, scoped))

    def relative(self, path: Path) -> str:
        return display_relative(self.root, path)

    # ── pipeline stages ─────────────────────────────────────────

    def ensure_allowed(self, command: str) -> None:
        if any(c.lower() == command.lower() for c in self.policy.allowed_commands):
            return
        raise CommandNotPermitted(f"Command '{command}' is not permitted by permission prompt")

    def resolve_scoped_path(self, requested: str) -> Path:
        requested = (requested or "").strip() or "."
        candidate = Path(requested)
        if not candidate.is_absolute():
            candidate = self.root / candidate

        # Containment is checked on the canonical path so that ".." segments
        # and symlinks are already resolved.
        try:
            canonical = candidate.resolve(strict=True)
        except (OSError, RuntimeError, ValueError) as e:
            raise PathNotFound(f"Path does not exist or is inaccessible: {requested}") from e

        if not canonical.is_relative_to(self.root):
            raise PathEscapesRoot(f"Path escapes project root and is not allowed: {requested}")
        return canonical

    def enforce_read_scope(self, request: ReadRequest, scoped: Path) -> None:
        if not self.policy.is_strict:
            return

        if isinstance(request, (ListDir, FindFiles)):
            raise ScopeDenied(
                "Request denied by strict read scope: directory listing and "
                "file discovery are not allowed")
        if not scoped.is_file():
            raise ScopeDenied(
                "Request denied by strict read scope: only known source files can be accessed")
        if scoped in self._allowed_paths():
            return
        raise ScopeDenied(
            f"Request denied by strict read scope: '{self.relative(scoped)}' "
            "is not an allowed source file")

    def confirm_if_interactive(self, request: ReadRequest, scoped: Path) -> None:
        if not self.policy.interactive_permissions:
            return
        summary = summarize_read_request(request)
        if self.confirm(f"[audit][permission] {summary} -> {self.relative(scoped)}"):
            return
        raise UserDenied(f"Request denied by user confirmation: {summary}")

    def run_command(self, command: str, args: List[str]) -> str:
        try:
            proc = subprocess.run([command, *args], cwd=self.root,
                                  capture_output=True, stdin=subprocess.DEVNULL)
        except (OSError, ValueError) as e:
            raise CommandFailed(f"Failed to run command '{command}': {e}") from e
        return normalize_output(
            proc.stdout.decode("utf-8", errors="replace"),
            proc.stderr.decode("utf-8", errors="replace"),
            proc.returncode,
        )

    # ── helpers ─────────────────────────────────────────────────

    def _allowed_paths(self) -> set:
        allowed = set()
        for entry in self.policy.allowed_paths:
            try:
                allowed.add(self.resolve_scoped_path(entry))
            except (PathNotFound, PathEscapesRoot):
                continue
        return allowed

    @staticmethod
    def _command_args(request: ReadRequest, scoped: Path) -> List[str]:
        target = str(scoped)
        if isinstance(request, ReadFile):
            return [target]
        if isinstance(request, Grep):
            return ["-n", "-C", str(request.clamped_context), "--", request.pattern, target]
        if isinstance(request, ListDir):
            return ["-la", target]
        if isinstance(request, FindFiles):
            args = [target, "-type", "f"]
            if request.glob:
                args += ["-name", request.glob]
            return args
        raise TypeError(f"not a read request: {request!r}")


def normalize_output(stdout: str, stderr: str, status: int) -> str:
    combined = stdout if stdout.strip() else ""
    if stderr.strip():
        if combined:
            combined += "\n"
        combined += stderr

    if not combined.strip():
        combined = f"(no output; command exited with status {status})"
    if status != 0:
        combined += f"\n(command exited with status {status})"

    if len(combined) > MAX_COMMAND_OUTPUT_CHARS:
        return (combined[:MAX_COMMAND_OUTPUT_CHARS]
                + f"\n...(truncated to {MAX_COMMAND_OUTPUT_CHARS} chars)")
    return combined
