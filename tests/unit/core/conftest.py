"""Shared fixtures and stub collaborators for core unit tests"""

from datetime import UTC, datetime

import pytest

from mdsocial.core.capabilities import Processor, Publisher
from mdsocial.core.errors import ProcessingError, PublishError


HELLO_MD = """\
---
title: Hello
date: 2024-01-01T00:00:00Z
---
Body text."""

NOW = datetime(2024, 1, 10, tzinfo=UTC)


class StubPublisher(Publisher):
    """Records calls; returns `<prefix>/<n>` or raises when fail=True."""

    def __init__(self, pid: str = "demo", prefix: str = "at://demo/post", fail: bool = False, locator: str = None):
        self.pid = pid
        self.prefix = prefix
        self.fail = fail
        self.locator = locator
        self.calls: list[str] = []

    def publisher_id(self) -> str:
        return self.pid

    def publish(self, doc) -> str:
        self.calls.append(doc.path)
        if self.fail:
            raise PublishError("boom")
        if self.locator is not None:
            return self.locator
        return f"{self.prefix}/{len(self.calls)}"


class StubProcessor(Processor):
    """Optionally sets key=value (only when it differs) or raises when fail=True."""

    name = "stub"

    def __init__(self, key: str = None, value=None, fail: bool = False):
        self.key = key
        self.value = value
        self.fail = fail
        self.calls: list[str] = []

    def process(self, doc) -> None:
        self.calls.append(doc.path)
        if self.fail:
            raise ProcessingError("processor exploded")
        if self.key and doc.metadata.get(self.key) != self.value:
            doc.set_field(self.key, self.value)


@pytest.fixture(name="hello_md")
def hello_md_fixture():
    return HELLO_MD


@pytest.fixture(name="now")
def now_fixture():
    return NOW


@pytest.fixture(name="make_publisher")
def make_publisher_fixture():
    return StubPublisher


@pytest.fixture(name="make_processor")
def make_processor_fixture():
    return StubProcessor
