"""Permission policy construction for the read-only sandbox."""

from pathlib import Path
from typing import Iterable

from auditagent.core.errors import ConfigError
from auditagent.core.models import PermissionPolicy
from auditagent.core.discovery import display_relative

READ_SCOPES = ("workspace", "strict")
ALLOWED_COMMANDS = ["grep", "cat", "find", "ls"]

_BASE_RULES = [
    "Only execute commands within the current project root.",
    "Do not write outside designated output artifacts.",
]


def build_permission_policy(
    read_scope: str,
    interactive: bool,
    project_root: Path,
    source_files: Iterable[Path],
) -> PermissionPolicy:
    """Pure function of its inputs; performs no I/O."""
    scope = (read_scope or "").strip().lower()
    if scope not in READ_SCOPES:
        raise ConfigError(
            f"Unsupported read scope '{read_scope}'. Expected one of: workspace, strict")

    rules = list(_BASE_RULES)
    if scope == "strict":
        allowed = [display_relative(project_root, Path(p)) for p in source_files]
        rules += [
            "Only the listed source files may be read or searched.",
            "Directory listing (list_dir) and file discovery (find_files) are denied.",
        ]
    else:
        allowed = []
        rules.append("Any file or directory under the project root may be read.")

    if interactive:
        rules.append("Every request is confirmed by the operator before it runs.")

    return PermissionPolicy(
        shell="bash",
        allowed_commands=list(ALLOWED_COMMANDS),
        scope_rules=rules,
        workspace_root=".",
        read_scope=scope,
        interactive_permissions=interactive,
        allowed_paths=allowed,
    )


def render_permission_prompt(policy: PermissionPolicy) -> str:
    lines = [
        f"Workspace root: {policy.workspace_root}",
        f"Read scope: {policy.read_scope}",
        f"Allowed commands: {', '.join(policy.allowed_commands)}",
        "Scope rules:",
    ]
    lines += [f"- {rule}" for rule in policy.scope_rules]
    if policy.is_strict:
        lines.append("Allowed paths:")
        lines += [f"- {p}" for p in policy.allowed_paths] or ["- (none)"]
    return "\n".join(lines)
