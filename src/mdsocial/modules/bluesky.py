"""Bluesky publisher: posts a link card for each document through the AT Protocol XRPC API"""

from __future__ import annotations

import logging
import mimetypes
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx

from mdsocial.core.capabilities import Publisher
from mdsocial.core.errors import ConfigurationError, ModuleSkipped, PublishError
from mdsocial.core.facts import summarize_body
from mdsocial.core.models import Document

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://bsky.social"
POST_COLLECTION = "app.bsky.feed.post"
MAX_POST_CHARS = 300


class BlueskyPublisher(Publisher):
    """Creates an `app.bsky.feed.post` with an external embed and returns its at:// URI.

    Logs in at construction; a failed login raises PublishError so the caller
    can abort before any document is touched.
    """

    def __init__(
        self,
        handle: str,
        app_password: str,
        *,
        base_url: str,
        host: str = DEFAULT_HOST,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
        image_key: str = "ogImage",
        summary_preset: str = "commonmark",
        summary_length: int = 300,
    ) -> None:
        if not handle:
            raise ModuleSkipped("no bluesky handle defined")
        if not app_password:
            raise ConfigurationError("bluesky app password required")

        self.handle = handle
        self.base_url = base_url
        self.host = (host or DEFAULT_HOST).rstrip("/")
        self.image_key = image_key
        self.summary_preset = summary_preset
        self.summary_length = summary_length
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=timeout)

        try:
            session = self._login(handle, app_password)
        except PublishError:
            self.close()
            raise
        logger.info("Logged in to %s as %s", self.host, session.get("handle", handle))

    def publisher_id(self) -> str:
        return "bluesky"

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def _login(self, handle: str, app_password: str) -> dict[str, Any]:
        session = self._xrpc(
            "POST", "com.atproto.server.createSession",
            json={"identifier": handle, "password": app_password},
        )
        try:
            self.access_jwt = session["accessJwt"]
            self.did = session["did"]
        except (KeyError, TypeError) as e:
            raise PublishError(f"unexpected createSession response: missing {e}") from e
        return session

    def _xrpc(self, method: str, nsid: str, **kwargs: Any) -> dict[str, Any]:
        """Call an XRPC endpoint and return its JSON body; all failures become PublishError."""
        url = f"{self.host}/xrpc/{nsid}"
        try:
            resp = self.client.request(method, url, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise PublishError(f"{nsid} returned {e.response.status_code}: {e.response.text[:200]}") from e
        except httpx.HTTPError as e:
            raise PublishError(f"{nsid} failed: {e}") from e
        except ValueError as e:
            raise PublishError(f"{nsid} returned invalid JSON: {e}") from e

    def _auth(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_jwt}"}

    def _upload_thumb(self, doc: Document) -> dict[str, Any] | None:
        """Upload the document's generated card image, if it has one."""
        rel = doc.string(self.image_key)
        if not rel:
            return None
        path = doc.root / rel if doc.root is not None else Path(rel)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise PublishError(f"cannot read {self.image_key} {path}: {e}") from e
        mime, _ = mimetypes.guess_type(path.name)
        headers = {**self._auth(), "Content-Type": mime or "application/octet-stream"}
        result = self._xrpc("POST", "com.atproto.repo.uploadBlob", content=data, headers=headers)
        return result.get("blob")

    def build_record(self, doc: Document, thumb: dict[str, Any] | None = None) -> dict[str, Any]:
        """Build the post record for doc."""
        title = doc.title()
        description = doc.description() or summarize_body(doc.body, self.summary_preset, self.summary_length)
        external: dict[str, Any] = {
            "uri": doc.canonical_url(self.base_url),
            "title": title,
            "description": description,
        }
        if thumb:
            external["thumb"] = thumb
        return {
            "$type": POST_COLLECTION,
            "text": title[:MAX_POST_CHARS],
            "createdAt": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "embed": {"$type": "app.bsky.embed.external", "external": external},
        }

    def publish(self, doc: Document) -> str:
        logger.info("[bluesky] posting %s", doc.path)
        record = self.build_record(doc, self._upload_thumb(doc))
        result = self._xrpc(
            "POST", "com.atproto.repo.createRecord",
            json={"repo": self.did, "collection": POST_COLLECTION, "record": record},
            headers=self._auth(),
        )
        uri = result.get("uri", "")
        if not uri:
            raise PublishError("createRecord returned no uri")
        return uri
