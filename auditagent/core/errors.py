"""Exception hierarchy for the audit agent.

Configuration and catalog errors stop a run before anything is written.
Sandbox errors are fed back to the model as tool output. Action, protocol
and step-limit errors end the analysis of a single skill.
"""


class AuditError(Exception):
    """Base class for every error raised by the audit agent."""


# ── configuration ──────────────────────────────────────────────

class ConfigError(AuditError):
    """Invalid or incomplete run-level configuration."""


class OutputError(AuditError):
    """A state or report file could not be written."""


# ── skill catalog ──────────────────────────────────────────────

class CatalogError(AuditError):
    """A vulnerability skill definition could not be loaded."""


class MalformedSkill(CatalogError):
    pass


class MissingField(CatalogError):

    def __init__(self, field: str, source: str = ""):
        self.field = field
        self.source = source
        where = f" in vulnerability skill file {source}" if source else ""
        super().__init__(f"Field `{field}` must be present and non-empty{where}")


class InvalidSeverity(CatalogError):

    def __init__(self, value: str, source: str = ""):
        self.value = value
        self.source = source
        where = f" in vulnerability skill file {source}" if source else ""
        super().__init__(
            f"Invalid `severity` value '{value}'{where}. "
            "Expected one of: low, medium, high, critical")


class EmptyCatalog(CatalogError):
    pass


class DuplicateSkillId(CatalogError):

    def __init__(self, skill_id: str, first: str, second: str):
        self.skill_id = skill_id
        super().__init__(
            f"Duplicate vulnerability skill id '{skill_id}' in {first} and {second}")


# ── sandbox ────────────────────────────────────────────────────

class SandboxError(AuditError):
    """A read request was refused or could not be executed."""


class CommandNotPermitted(SandboxError):
    pass


class PathNotFound(SandboxError):
    pass


class PathEscapesRoot(SandboxError):
    pass


class ScopeDenied(SandboxError):
    pass


class UserDenied(SandboxError):
    pass


class CommandFailed(SandboxError):
    pass


# ── model actions ──────────────────────────────────────────────

class ActionError(AuditError):
    """The model's reply could not be turned into an agent action."""


class NotStructuredJson(ActionError):
    pass


class UnsupportedAction(ActionError):

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Unsupported agent action '{action}'")


# ── provider protocol ──────────────────────────────────────────

class ProtocolError(AuditError):
    """A single exchange with a model endpoint failed."""


class UnexpectedResponseShape(ProtocolError):
    pass


class EmptyStream(ProtocolError):
    pass


class ProviderExhausted(AuditError):
    """Every payload variant failed for one model exchange.

    Attributes:
        provider: provider name
        attempts: list of (variant name, error message) in attempt order
    """

    def __init__(self, provider: str, attempts: list[tuple[str, str]]):
        self.provider = provider
        self.attempts = attempts
        tried = "; ".join(f"{name}: {err}" for name, err in attempts) or "no variants"
        super().__init__(f"{provider} provider failed on every payload variant ({tried})")


# ── agent loop ─────────────────────────────────────────────────

class StepLimitExceeded(AuditError):

    def __init__(self, skill_id: str, steps: int):
        self.skill_id = skill_id
        self.steps = steps
        super().__init__(
            f"Model exceeded max interactive read steps ({steps}) for skill "
            f"'{skill_id}' (enable --ai-logs to inspect progress)")


# Errors that end the analysis of one skill without invalidating the run.
SkillAborted = (ActionError, ProviderExhausted, StepLimitExceeded)
