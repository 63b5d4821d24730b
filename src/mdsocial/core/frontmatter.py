"""Frontmatter codec: split, decode, and re-encode the YAML metadata block"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from mdsocial.core.errors import FrontmatterError

if TYPE_CHECKING:
    from mdsocial.core.models import Document


BOM = "\ufeff"
DELIMITER = "---"
# Opening delimiter at offset 0, optional block body, closing delimiter line.
# The lazy optional group makes `---\n---\n` an empty block rather than the
# start of a longer one.
FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(?:(.*?)\r?\n)??---[ \t]*(?:\r?\n|\Z)', re.DOTALL)

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


def _without_timestamps(resolvers: dict) -> dict:
    """Copy a resolver table, dropping the implicit timestamp resolver."""
    return {
        first: [(tag, regexp) for tag, regexp in entries if tag != _TIMESTAMP_TAG]
        for first, entries in resolvers.items()
    }


class FrontmatterLoader(yaml.SafeLoader):
    """SafeLoader that keeps dates as the strings they were written as."""
    yaml_implicit_resolvers = _without_timestamps(yaml.SafeLoader.yaml_implicit_resolvers)


class FrontmatterDumper(yaml.SafeDumper):
    """SafeDumper matching FrontmatterLoader, with anchors/aliases disabled."""
    yaml_implicit_resolvers = _without_timestamps(yaml.SafeDumper.yaml_implicit_resolvers)

    def ignore_aliases(self, data: Any) -> bool:
        return True


def load_metadata(text: str) -> dict[str, Any]:
    """Decode a metadata block into a string-keyed mapping; empty block -> {}."""
    try:
        data = yaml.load(text, Loader=FrontmatterLoader)
    except yaml.YAMLError as e:
        raise FrontmatterError(f"Invalid YAML frontmatter: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontmatterError(f"Invalid YAML frontmatter: expected a mapping, got {type(data).__name__}")
    for key in data:
        if not isinstance(key, str):
            raise FrontmatterError(f"Invalid YAML frontmatter: non-string key {key!r}")
    return data


def dump_metadata(metadata: dict[str, Any]) -> str:
    """Encode metadata in canonical form: sorted keys, block style, trailing newline."""
    try:
        return yaml.dump(
            metadata,
            Dumper=FrontmatterDumper,
            sort_keys=True,
            allow_unicode=True,
            default_flow_style=False,
        )
    except yaml.YAMLError as e:
        raise FrontmatterError(f"Cannot encode frontmatter: {e}") from e
    except RecursionError as e:
        # Aliases are never emitted, so a self-referencing value cannot be written.
        raise FrontmatterError("Cannot encode frontmatter: recursive value") from e


def dump_value(value: Any) -> str:
    """Human-readable rendering of one metadata value: plain scalars, block YAML containers."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return dump_metadata(value).rstrip("\n")
    return str(value)


def load_value(text: str) -> Any:
    """Decode a single YAML scalar or flow value, e.g. `42`, `true`, `[a, b]`."""
    try:
        return yaml.load(text, Loader=FrontmatterLoader)
    except yaml.YAMLError as e:
        raise FrontmatterError(f"Invalid YAML value {text!r}: {e}") from e


def parse(raw: bytes | str, path: str = "", root: Path | None = None) -> Document:
    """Split raw file content into a Document.

    Content without a delimited block at offset 0 (after an optional BOM) yields
    a Document with has_metadata=False and the whole text as body. Raises
    FrontmatterError when the input is not UTF-8 or the block does not decode
    to a mapping.
    """
    from mdsocial.core.models import Document

    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FrontmatterError(f"Not valid UTF-8: {e}") from e
    else:
        text = raw

    bom = text.startswith(BOM)
    if bom:
        text = text[len(BOM):]

    m = FRONTMATTER_RE.match(text)
    if not m:
        return Document(path=path, root=root, body=text, bom=bom)

    raw_block = m.group(1) or ""
    return Document(
        path=path,
        root=root,
        metadata=load_metadata(raw_block),
        body=text[m.end():],
        raw_metadata=raw_block,
        has_metadata=True,
        bom=bom,
    )


def serialize(doc: Document) -> bytes:
    """Render a Document back to bytes; the body is always emitted verbatim."""
    prefix = BOM if doc.bom else ""
    if not doc.has_metadata:
        return f"{prefix}{doc.body}".encode("utf-8")
    header = dump_metadata(doc.metadata) if doc.metadata else ""
    return f"{prefix}{DELIMITER}\n{header}{DELIMITER}\n{doc.body}".encode("utf-8")
