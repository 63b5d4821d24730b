"""Document model: parsed frontmatter, verbatim body, and a dirty flag gating write-back"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import quote

from mdsocial.core.errors import DocumentError
from mdsocial.core.frontmatter import parse, serialize


SOCIAL_KEY = "social"


def _coerce_datetime(value: Any) -> datetime | None:
    """Soft date coercion: RFC3339/ISO strings, date and datetime values; else None."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=UTC)


@dataclass
class Document:
    """A single source file split into metadata and body.

    `path` is the POSIX path relative to the scanned root; it is the document's
    identity within a batch and the default URL path when no slug is set.
    """
    path:         str = ""
    root:         Path | None = None
    metadata:     dict[str, Any] = field(default_factory=dict)
    body:         str = ""
    raw_metadata: str = ""         # block text as read, without delimiters
    has_metadata: bool = False
    bom:          bool = False
    dirty:        bool = False

    @property
    def source_path(self) -> Path:
        return self.root / self.path if self.root is not None else Path(self.path)

    # --- soft lookups ---

    def string(self, key: str) -> str:
        """Return metadata[key] if it is a string, else ''."""
        value = self.metadata.get(key)
        return value if isinstance(value, str) else ""

    def title(self) -> str:
        return self.string("title").strip()

    def slug(self) -> str:
        return self.string("slug").strip().strip("/")

    def description(self) -> str:
        return self.string("description").strip()

    def cover_image(self) -> str:
        return self.string("coverImage").strip()

    def tags(self) -> list[str]:
        value = self.metadata.get("tags")
        if not isinstance(value, list):
            return []
        return [t for t in value if isinstance(t, str)]

    def date(self) -> datetime | None:
        """Publish date as an aware datetime, or None when absent or unparseable."""
        return _coerce_datetime(self.metadata.get("date"))

    def canonical_url(self, base_url: str) -> str:
        """Join base_url with the slug, or with the relative path minus its extension.

        Returns '' when either part is missing.
        """
        if not base_url:
            return ""
        target = self.slug()
        if not target and self.path:
            target = str(PurePosixPath(self.path).with_suffix(""))
        if not target:
            return ""
        return f"{base_url.rstrip('/')}/{quote(target.lstrip('/'), safe='/')}"

    def get_social(self, publisher_id: str) -> str:
        social = self.metadata.get(SOCIAL_KEY)
        if not isinstance(social, dict):
            return ""
        value = social.get(publisher_id)
        return value if isinstance(value, str) else ""

    # --- mutations (all mark the document dirty) ---

    def _require_metadata(self) -> None:
        if not self.has_metadata:
            raise DocumentError(f"{self.path or '<document>'} has no frontmatter block")

    def set_social(self, publisher_id: str, value: str) -> None:
        """Record a post locator; a non-mapping `social` value is replaced by {}."""
        self._require_metadata()
        social = self.metadata.get(SOCIAL_KEY)
        if not isinstance(social, dict):
            social = {}
            self.metadata[SOCIAL_KEY] = social
        social[publisher_id] = value
        self.dirty = True

    def set_field(self, key: str, value: Any) -> None:
        self._require_metadata()
        self.metadata[key] = value
        self.dirty = True

    def get_path(self, dotted: str, default: Any = None) -> Any:
        """Look up a dot path such as `social.bluesky`."""
        node: Any = self.metadata
        for part in dotted.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set_path(self, dotted: str, value: Any) -> None:
        """Set a dot path, creating (or replacing non-mapping) intermediate nodes."""
        self._require_metadata()
        *parents, leaf = dotted.split(".")
        node = self.metadata
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[leaf] = value
        self.dirty = True

    def delete_path(self, dotted: str) -> bool:
        """Remove a dot path; returns False if it was not present."""
        self._require_metadata()
        *parents, leaf = dotted.split(".")
        node: Any = self.metadata
        for part in parents:
            node = node.get(part) if isinstance(node, dict) else None
        if not isinstance(node, dict) or leaf not in node:
            return False
        del node[leaf]
        self.dirty = True
        return True

    def init_metadata(self) -> bool:
        """Give a document without a block an empty one; False if it already had one."""
        if self.has_metadata:
            return False
        self.has_metadata = True
        self.dirty = True
        return True

    # --- persistence ---

    def write_back(self, target: Path | None = None) -> Path:
        """Serialize and write to target (default: source_path); clears dirty on success.

        Serialization happens before the file is opened, so an encoding error
        leaves the existing file untouched.
        """
        target = Path(target) if target is not None else self.source_path
        data = serialize(self)
        with target.open("wb") as fh:
            fh.write(data)
        self.dirty = False
        return target


def load_document(path: Path, root: Path) -> Document:
    """Read and parse a file, recording its path relative to root."""
    raw = path.read_bytes()
    return parse(raw, path=path.relative_to(root).as_posix(), root=root)
