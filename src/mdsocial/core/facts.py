"""Publish-readiness facts derived from a Document, and the eligibility gate"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from markdown_it import MarkdownIt

from mdsocial.core.models import Document


class SkipReason(StrEnum):
    NO_METADATA    = "no metadata"
    MISSING_FIELDS = "missing required fields"
    TOO_OLD        = "too old"


@dataclass(frozen=True)
class Facts:
    title:         str
    canonical_url: str
    publish_date:  datetime | None    # None = unknown or unparseable
    description:   str
    cover_image:   str


def extract_facts(doc: Document, base_url: str) -> Facts:
    """Derive facts from metadata; missing values come back empty, never as errors."""
    return Facts(
        title=doc.title(),
        canonical_url=doc.canonical_url(base_url),
        publish_date=doc.date(),
        description=doc.description(),
        cover_image=doc.cover_image(),
    )


def check_eligibility(
    doc: Document,
    facts: Facts,
    *,
    max_age_days: int = 0,
    skip_undated: bool = False,
    now: datetime | None = None,
    ) -> SkipReason | None:
    """Return the first reason doc must be skipped, or None if it is eligible.

    Checks, in order: a metadata block exists; title and canonical URL are set;
    the publish date is within max_age_days (0 disables the age check). An
    unknown date passes unless skip_undated is set.
    """
    if not doc.has_metadata:
        return SkipReason.NO_METADATA
    if not facts.title or not facts.canonical_url:
        return SkipReason.MISSING_FIELDS
    if facts.publish_date is None:
        return SkipReason.TOO_OLD if skip_undated else None
    if max_age_days > 0:
        try:
            cutoff = (now or datetime.now(UTC)) - timedelta(days=max_age_days)
        except OverflowError:
            # Limit reaches back past datetime.min: every date is recent enough.
            return None
        if facts.publish_date < cutoff:
            return SkipReason.TOO_OLD
    return None


def _inline_text(token) -> str:
    """Plain text of an inline token: text and code spans, breaks as spaces, images dropped."""
    parts = []
    for child in token.children or []:
        if child.type in ("text", "code_inline"):
            parts.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            parts.append(" ")
    return "".join(parts)


def summarize_body(body: str, preset: str = "commonmark", limit: int = 300) -> str:
    """Plain-text rendering of the body's first paragraph, truncated to limit (0 = no limit)."""
    tokens = MarkdownIt(preset).parse(body)
    for i, tok in enumerate(tokens):
        if tok.type == "paragraph_open" and i + 1 < len(tokens):
            text = " ".join(_inline_text(tokens[i + 1]).split())
            if not text:
                continue
            if limit and len(text) > limit:
                text = text[:limit - 1].rstrip() + "…"
            return text
    return ""
