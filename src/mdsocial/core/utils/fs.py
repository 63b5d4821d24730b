"""Source file discovery"""

from collections.abc import Iterable
from pathlib import Path


DEFAULT_EXTENSIONS = (".md",)


def discover_files(root: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> list[Path]:
    """Return sorted files under root (recursively) whose suffix is in extensions."""
    wanted = {e.lower() for e in extensions}
    return sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in wanted)
