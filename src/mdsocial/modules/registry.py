"""Construction-time wiring of processors and publishers from Settings"""

from __future__ import annotations

import logging

from mdsocial.config import Settings
from mdsocial.core.capabilities import Processor, Publisher
from mdsocial.core.errors import ModuleSkipped
from mdsocial.modules.bluesky import BlueskyPublisher
from mdsocial.modules.og_image import OgImageProcessor

logger = logging.getLogger(__name__)


def build_processors(settings: Settings) -> list[Processor]:
    """Processors in run order. Processors that lack prerequisites disable themselves."""
    return [
        OgImageProcessor(
            settings.og_image_background,
            overwrite=settings.og_image_overwrite,
            key=settings.og_image_key,
            resvg=settings.resvg_path,
        ),
    ]


def build_publishers(settings: Settings) -> list[Publisher]:
    """Publishers in run order, omitting any that are not configured.

    Raises:
        ConfigurationError: a publisher is only partially configured.
        PublishError: a configured publisher could not log in.
    """
    publishers: list[Publisher] = []
    try:
        publishers.append(BlueskyPublisher(
            settings.bluesky_handle,
            settings.bluesky_app_password,
            base_url=settings.base_url,
            host=settings.bluesky_host,
            timeout=settings.bluesky_timeout,
            image_key=settings.og_image_key,
            summary_preset=settings.parser_config,
            summary_length=settings.summary_length,
        ))
    except ModuleSkipped as e:
        logger.warning("[module] bluesky not loaded: %s", e)
    return publishers
