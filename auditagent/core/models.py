"""Shared data models for the audit agent."""

from dataclasses import dataclass, field
from typing import Optional, List

SEVERITIES = ("low", "medium", "high", "critical")
STATE_VERSION = "1"


@dataclass(frozen=True)
class VulnerabilitySkill:
    """A vulnerability-detection prompt template with its metadata."""
    id: str
    name: str
    severity: str          # "low", "medium", "high", "critical"
    description: str
    prompt_fragment: str
    examples: tuple = ()
    false_positives: tuple = ()
    references: tuple = ()
    tags: tuple = ()
    confidence_hint: Optional[str] = None
    guidance_markdown: str = ""


@dataclass
class MiniPrompt:
    skill_id: str
    text: str

    def to_dict(self) -> dict:
        return {"skill_id": self.skill_id, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict) -> "MiniPrompt":
        return cls(skill_id=data["skill_id"], text=data["text"])


@dataclass
class PermissionPolicy:
    """What the sandbox may run and where it may look."""
    shell: str
    allowed_commands: List[str]
    scope_rules: List[str]
    workspace_root: str = "."
    read_scope: str = "workspace"    # "workspace" or "strict"
    interactive_permissions: bool = False
    allowed_paths: List[str] = field(default_factory=list)  # strict mode only

    @property
    def is_strict(self) -> bool:
        return self.read_scope.lower() == "strict"

    def to_dict(self) -> dict:
        return {
            "shell": self.shell,
            "allowed_commands": list(self.allowed_commands),
            "scope_rules": list(self.scope_rules),
            "workspace_root": self.workspace_root,
            "read_scope": self.read_scope,
            "interactive_permissions": self.interactive_permissions,
            "allowed_paths": list(self.allowed_paths),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PermissionPolicy":
        return cls(
            shell=data["shell"],
            allowed_commands=list(data.get("allowed_commands", [])),
            scope_rules=list(data.get("scope_rules", [])),
            workspace_root=data.get("workspace_root", "."),
            read_scope=data.get("read_scope", "workspace"),
            interactive_permissions=bool(data.get("interactive_permissions", False)),
            allowed_paths=list(data.get("allowed_paths", [])),
        )


@dataclass
class ProviderDescriptor:
    name: str
    model: Optional[str]
    notes: str

    def to_dict(self) -> dict:
        return {"name": self.name, "model": self.model, "notes": self.notes}

    @classmethod
    def from_dict(cls, data: dict) -> "ProviderDescriptor":
        return cls(name=data["name"], model=data.get("model"), notes=data.get("notes", ""))


@dataclass
class VulnerabilityFinding:
    """A single reported potential vulnerability."""
    title: str
    severity: str
    summary: str
    evidence: List[str] = field(default_factory=list)
    recommendation: str = ""
    file: Optional[str] = None
    line: Optional[int] = None

    @property
    def location(self) -> str:
        if self.file and self.line is not None:
            return f"{self.file}:{self.line}"
        if self.file:
            return self.file
        if self.line is not None:
            return f"line {self.line}"
        return ""

    def to_dict(self) -> dict:
        out = {
            "title": self.title,
            "severity": self.severity,
            "summary": self.summary,
            "evidence": list(self.evidence),
            "recommendation": self.recommendation,
        }
        if self.file is not None:
            out["file"] = self.file
        if self.line is not None:
            out["line"] = self.line
        return out

    @classmethod
    def from_dict(cls, data: dict) -> "VulnerabilityFinding":
        return cls(
            title=data["title"],
            severity=data["severity"],
            summary=data.get("summary", ""),
            evidence=list(data.get("evidence", [])),
            recommendation=data.get("recommendation", ""),
            file=data.get("file"),
            line=data.get("line"),
        )


@dataclass
class SkillIterationResult:
    """Terminal outcome of the agent loop for one skill."""
    skill_id: str
    status: str
    findings: List[VulnerabilityFinding] = field(default_factory=list)
    next_prompt: Optional[MiniPrompt] = None
    error: Optional[str] = None      # set only when status == "failed"

    @classmethod
    def failed(cls, skill_id: str, error: str) -> "SkillIterationResult":
        return cls(skill_id=skill_id, status="failed", error=error)

    def to_dict(self) -> dict:
        out = {
            "skill_id": self.skill_id,
            "status": self.status,
            "findings": [f.to_dict() for f in self.findings],
            "next_prompt": self.next_prompt.to_dict() if self.next_prompt else None,
        }
        if self.error is not None:
            out["error"] = self.error
        return out

    @classmethod
    def from_dict(cls, data: dict) -> "SkillIterationResult":
        nxt = data.get("next_prompt")
        return cls(
            skill_id=data["skill_id"],
            status=data["status"],
            findings=[VulnerabilityFinding.from_dict(f) for f in data.get("findings", [])],
            next_prompt=MiniPrompt.from_dict(nxt) if nxt else None,
            error=data.get("error"),
        )


@dataclass
class AnalysisState:
    """The persisted aggregate of one audit run."""
    provider: ProviderDescriptor
    permission_prompt: PermissionPolicy
    source_files: List[str] = field(default_factory=list)
    iterations: List[SkillIterationResult] = field(default_factory=list)
    version: str = STATE_VERSION

    def findings(self) -> List[VulnerabilityFinding]:
        return [f for it in self.iterations for f in it.findings]

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "source_files": list(self.source_files),
            "provider": self.provider.to_dict(),
            "permission_prompt": self.permission_prompt.to_dict(),
            "iterations": [it.to_dict() for it in self.iterations],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisState":
        return cls(
            version=data.get("version", STATE_VERSION),
            source_files=list(data.get("source_files", [])),
            provider=ProviderDescriptor.from_dict(data["provider"]),
            permission_prompt=PermissionPolicy.from_dict(data["permission_prompt"]),
            iterations=[SkillIterationResult.from_dict(it) for it in data.get("iterations", [])],
        )
