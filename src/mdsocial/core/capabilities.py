"""Base classes for the enrichment and publication steps the pipeline runs"""

from __future__ import annotations

from abc import ABC, abstractmethod

from mdsocial.core.models import Document


class Processor(ABC):
    """Enriches a document's metadata or sibling assets without publishing it.

    A processor may mutate the document through its mutation API. It signals
    failure by raising (normally ProcessingError). A processor that was
    disabled at construction must treat every call as a no-op.
    """

    name: str = "processor"

    @abstractmethod
    def process(self, doc: Document) -> None:
        """Enrich doc in place, or raise."""


class Publisher(ABC):
    """Posts a document to an external channel.

    The pipeline calls publish() only while get_social(publisher_id()) is
    empty, and records the returned locator itself; publish() must not touch
    the document's social record.
    """

    @abstractmethod
    def publisher_id(self) -> str:
        """Stable key under `social` used for de-duplication."""

    @abstractmethod
    def publish(self, doc: Document) -> str:
        """Post doc and return the external post locator, or raise PublishError."""

    def close(self) -> None:
        """Release network resources held by the publisher."""
