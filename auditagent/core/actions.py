"""Agent actions: the closed set of things a model reply can ask for."""

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

MAX_CONTEXT_LINES = 20
DEFAULT_CONTEXT_LINES = 2


@dataclass(frozen=True)
class ReadFile:
    path: str = "."

    action: ClassVar[str] = "read_file"
    command: ClassVar[str] = "cat"


@dataclass(frozen=True)
class Grep:
    pattern: str = ""
    path: str = "."
    context_lines: int = DEFAULT_CONTEXT_LINES

    action: ClassVar[str] = "grep"
    command: ClassVar[str] = "grep"

    @property
    def clamped_context(self) -> int:
        return max(0, min(self.context_lines, MAX_CONTEXT_LINES))


@dataclass(frozen=True)
class ListDir:
    path: str = "."

    action: ClassVar[str] = "list_dir"
    command: ClassVar[str] = "ls"


@dataclass(frozen=True)
class FindFiles:
    path: str = "."
    glob: Optional[str] = None

    action: ClassVar[str] = "find_files"
    command: ClassVar[str] = "find"


@dataclass(frozen=True)
class Final:
    """Terminal verdict; *payload* is the parsed JSON object."""
    payload: dict

    action: ClassVar[str] = "final"


ReadRequest = Union[ReadFile, Grep, ListDir, FindFiles]
AgentAction = Union[Final, ReadFile, Grep, ListDir, FindFiles]

READ_REQUEST_TYPES = (ReadFile, Grep, ListDir, FindFiles)


def summarize_read_request(request: ReadRequest) -> str:
    """Compact one-line form used in prompts and permission questions."""
    if isinstance(request, ReadFile):
        return f"read_file {request.path}"
    if isinstance(request, Grep):
        return (f"grep pattern='{request.pattern}' path={request.path} "
                f"context_lines={request.clamped_context}")
    if isinstance(request, ListDir):
        return f"list_dir {request.path}"
    if isinstance(request, FindFiles):
        return f"find_files path={request.path} glob={request.glob or '*'}"
    raise TypeError(f"not a read request: {request!r}")


def describe_read_request(request: ReadRequest) -> str:
    if isinstance(request, ReadFile):
        return f"read file '{request.path}'"
    if isinstance(request, Grep):
        return (f"search '{request.pattern}' in '{request.path}' "
                f"({request.clamped_context} context lines)")
    if isinstance(request, ListDir):
        return f"list directory '{request.path}'"
    if isinstance(request, FindFiles):
        return f"find files in '{request.path}' with glob '{request.glob or '*'}'"
    raise TypeError(f"not a read request: {request!r}")
