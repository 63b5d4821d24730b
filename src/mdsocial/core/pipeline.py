"""Pipeline orchestration: load, gate, process, publish, and write back each document"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from mdsocial.core.capabilities import Processor, Publisher
from mdsocial.core.errors import FrontmatterError
from mdsocial.core.facts import check_eligibility, extract_facts
from mdsocial.core.models import Document, load_document
from mdsocial.core.utils.fs import discover_files

logger = logging.getLogger(__name__)


class PipelineOptions(BaseModel):
    """Immutable run options handed to the Pipeline at construction."""
    model_config = ConfigDict(frozen=True)

    base_url:         str = ""
    extensions:       tuple[str, ...] = (".md",)
    publish_max_days: int = Field(default=0, ge=0, description="Skip posts older than this; 0 = no limit")
    skip_undated:     bool = Field(default=False, description="Treat a missing/unparseable date as too old")
    dry_run:          bool = Field(default=False, description="Run no processors or publishers; write nothing")

    @classmethod
    def from_settings(cls, settings) -> PipelineOptions:
        return cls(
            base_url=settings.base_url,
            extensions=tuple(settings.extensions),
            publish_max_days=settings.publish_max_days,
            skip_undated=settings.skip_undated,
            dry_run=settings.dry_run,
        )


class Status(StrEnum):
    SKIPPED   = "skipped"
    FAILED    = "failed"
    PUBLISHED = "published"
    UPDATED   = "updated"      # rewritten by processors only
    UNCHANGED = "unchanged"


@dataclass
class DocumentOutcome:
    path:    str
    status:  Status
    reason:  str = ""
    posts:   dict[str, str] = field(default_factory=dict)    # publisher id -> new locator
    written: bool = False


@dataclass
class BatchResult:
    total:     int = 0
    published: int = 0
    skipped:   int = 0
    failed:    int = 0
    written:   int = 0
    cancelled: bool = False
    outcomes:  list[DocumentOutcome] = field(default_factory=list)

    def record(self, outcome: DocumentOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status == Status.SKIPPED:
            self.skipped += 1
        elif outcome.status == Status.FAILED:
            self.failed += 1
        if outcome.posts:
            self.published += 1
        if outcome.written:
            self.written += 1

    def summary(self) -> str:
        return (
            f"Found {self.total} documents. "
            f"{self.published} published, {self.skipped} skipped, "
            f"{self.failed} failed, {self.written} written."
        )


class Pipeline:
    """Carries each document under a root through processors and publishers, one at a time."""

    def __init__(
        self,
        options: PipelineOptions,
        processors: Sequence[Processor] = (),
        publishers: Sequence[Publisher] = (),
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
        ):
        self.options = options
        self.processors = list(processors)
        self.publishers = list(publishers)
        self.clock = clock

    def run(self, root: Path, cancel: threading.Event | None = None) -> BatchResult:
        """Process every matching file under root. Raises NotADirectoryError if root is not a directory.

        Per-document failures are recorded in the result and never raised.
        `cancel` is checked before each document is started.
        """
        root = Path(root)
        if not root.is_dir():
            raise NotADirectoryError(f"Not a directory: {root}")

        files = discover_files(root, self.options.extensions)
        result = BatchResult(total=len(files))
        for i, path in enumerate(files):
            if cancel is not None and cancel.is_set():
                logger.warning("Cancelled after %d of %d document(s)", i, len(files))
                result.cancelled = True
                break
            result.record(self.run_document(path, root))
        return result

    def run_document(self, path: Path, root: Path) -> DocumentOutcome:
        """Carry a single file through the pipeline and report what happened to it."""
        outcome = DocumentOutcome(path.relative_to(root).as_posix(), Status.UNCHANGED)
        try:
            doc = load_document(path, root)
        except (OSError, FrontmatterError) as e:
            return self._failed(outcome, f"parse failed: {e}")

        try:
            return self._process(doc, outcome)
        except Exception as e:
            return self._failed(outcome, f"unexpected error: {e!r}")

    def _process(self, doc: Document, outcome: DocumentOutcome) -> DocumentOutcome:
        rel = outcome.path
        facts = extract_facts(doc, self.options.base_url)
        reason = check_eligibility(
            doc, facts,
            max_age_days=self.options.publish_max_days,
            skip_undated=self.options.skip_undated,
            now=self.clock(),
        )
        if reason:
            logger.info("skipped (%s): %s", reason, rel)
            outcome.status = Status.SKIPPED
            outcome.reason = str(reason)
            return outcome

        error = self._apply_steps(doc, outcome)

        # Mutations made before a failure are still persisted so a post that
        # went out is never repeated on the next run.
        if doc.dirty and not self.options.dry_run:
            try:
                doc.write_back()
                outcome.written = True
            except Exception as e:
                error = error or f"write failed: {e}"

        if error:
            return self._failed(outcome, error)
        if outcome.posts:
            outcome.status = Status.PUBLISHED
        elif outcome.written:
            outcome.status = Status.UPDATED
        return outcome

    def _apply_steps(self, doc: Document, outcome: DocumentOutcome) -> str:
        """Run processors then publishers in order; return the first failure reason, or ''."""
        for proc in self.processors:
            if self.options.dry_run:
                logger.info("[dry-run] %s not run: %s", proc.name, doc.path)
                continue
            try:
                proc.process(doc)
            except Exception as e:
                return f"{proc.name} failed: {e}"

        for pub in self.publishers:
            pid = pub.publisher_id()
            if doc.get_social(pid):
                logger.info("already published to %s: %s", pid, doc.path)
                continue
            if self.options.dry_run:
                logger.info("[dry-run] would publish to %s: %s", pid, doc.path)
                continue
            try:
                locator = pub.publish(doc)
            except Exception as e:
                return f"{pid} publish failed: {e}"
            if not locator:
                return f"{pid} publish failed: no post locator returned"
            doc.set_social(pid, locator)
            outcome.posts[pid] = locator
            logger.info("published to %s: %s -> %s", pid, doc.path, locator)
        return ""

    @staticmethod
    def _failed(outcome: DocumentOutcome, reason: str) -> DocumentOutcome:
        logger.warning("failed: %s: %s", outcome.path, reason)
        outcome.status = Status.FAILED
        outcome.reason = reason
        return outcome
