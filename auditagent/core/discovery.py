"""Source discovery: walks the project tree for contract sources."""

from pathlib import Path
from typing import List, Sequence

from auditagent.core.errors import ConfigError

SKIP_DIRS = {".git", "target", ".tx3", "build"}
DEFAULT_EXTENSIONS = (".ak",)


def discover_source_files(root: Path, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> List[Path]:
    """Return every source file under *root*, sorted, skipping build/output dirs."""
    exts = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions}
    files: List[Path] = []
    to_visit = [Path(root)]

    while to_visit:
        current = to_visit.pop()
        try:
            entries = list(current.iterdir())
        except OSError as e:
            raise ConfigError(f"Failed to read directory {current}: {e}") from e
        for entry in entries:
            if entry.is_dir():
                if entry.name not in SKIP_DIRS:
                    to_visit.append(entry)
                continue
            if entry.suffix.lower() in exts:
                files.append(entry)

    return sorted(files)


def resolve_sources(root: Path, main_file: Path | str,
                    extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> List[Path]:
    """Discovered sources, or the main protocol file when there are none."""
    files = discover_source_files(root, extensions)
    if files:
        return files
    main = Path(main_file)
    return [main if main.is_absolute() else Path(root) / main]


def display_relative(root: Path, path: Path) -> str:
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return str(path)
