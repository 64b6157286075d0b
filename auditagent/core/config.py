"""Run-level configuration for an audit."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from auditagent.core.discovery import DEFAULT_EXTENSIONS
from auditagent.parsers.skill import DEFAULT_SKILLS_DIR

DEFAULT_STATE_OUT = ".tx3/audit/state.json"
DEFAULT_REPORT_OUT = ".tx3/audit/vulnerabilities.md"
DEFAULT_MAIN_FILE = "main.tx3"
DEFAULT_TIMEOUT = 120.0

PROVIDERS = ("scaffold", "openai", "anthropic", "ollama")
REASONING_EFFORTS = ("low", "medium", "high")


@dataclass(frozen=True)
class ProviderDefaults:
    endpoint: str
    model: str
    api_key_env: Optional[str]    # None: no key needed


PROVIDER_DEFAULTS = {
    "openai": ProviderDefaults(
        "https://api.openai.com/v1/responses", "gpt-4.1-mini", "OPENAI_API_KEY"),
    "anthropic": ProviderDefaults(
        "https://api.anthropic.com/v1/messages", "claude-3-5-haiku-latest", "ANTHROPIC_API_KEY"),
    "ollama": ProviderDefaults(
        "http://localhost:11434/v1/chat/completions", "llama3.1", None),
}


@dataclass
class AuditConfig:
    project_root: Path = field(default_factory=Path.cwd)
    main_file: str = DEFAULT_MAIN_FILE
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    skills_dir: str = DEFAULT_SKILLS_DIR
    state_out: str = DEFAULT_STATE_OUT
    report_out: str = DEFAULT_REPORT_OUT
    provider: str = "scaffold"
    endpoint: Optional[str] = None
    model: Optional[str] = None
    api_key_env: Optional[str] = None
    reasoning_effort: Optional[str] = None
    ai_logs: bool = False
    read_scope: str = "workspace"
    interactive_permissions: bool = False
    timeout: float = DEFAULT_TIMEOUT
    fail_fast: bool = False

    @classmethod
    def from_args(cls, args) -> "AuditConfig":
        return cls(
            project_root=Path(args.project_root) if args.project_root else Path.cwd(),
            main_file=args.main_file,
            extensions=tuple(args.ext) if args.ext else DEFAULT_EXTENSIONS,
            skills_dir=args.skills_dir,
            state_out=args.state_out,
            report_out=args.report_out,
            provider=args.provider,
            endpoint=args.endpoint,
            model=args.model,
            api_key_env=args.api_key_env,
            reasoning_effort=args.reasoning_effort,
            ai_logs=args.ai_logs,
            read_scope=args.read_scope,
            interactive_permissions=args.interactive_permissions,
            timeout=args.timeout,
            fail_fast=args.fail_fast,
        )

    def output_path(self, value: str) -> Path:
        """Output paths are relative to the project root."""
        p = Path(value)
        return p if p.is_absolute() else self.project_root / p

    @property
    def skills_path(self) -> Path:
        return self.output_path(self.skills_dir)

    @property
    def uses_default_skills_dir(self) -> bool:
        return Path(self.skills_dir).as_posix() == DEFAULT_SKILLS_DIR
