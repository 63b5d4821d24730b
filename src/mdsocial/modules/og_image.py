"""Open Graph card processor: renders an SVG card beside each post and rasterizes it with resvg"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path, PurePosixPath

from jinja2 import Environment, FileSystemLoader, TemplateError

from mdsocial.core.capabilities import Processor
from mdsocial.core.errors import ProcessingError
from mdsocial.core.models import Document
from mdsocial.core.utils.dataurl import file_to_data_url

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "og-image.svg.j2"
CARD_WIDTH = 1200
CARD_HEIGHT = round(CARD_WIDTH / 1.91)


class OgImageProcessor(Processor):
    """Generate `<post>.svg` / `<post>.png` next to a post and record the PNG under `key`.

    Disabled (every call a no-op) when resvg is missing or no background is set.
    """

    name = "og-image"

    def __init__(
        self,
        background: str | Path = "",
        *,
        overwrite: bool = False,
        key: str = "ogImage",
        resvg: str = "resvg",
        template_dir: Path | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.overwrite = overwrite
        self.key = key
        self.timeout = timeout
        self.background = Path(background) if background else None
        self.resvg = shutil.which(resvg)
        self.disabled = False
        if self.resvg is None:
            logger.warning("resvg was not found, skipping og-images")
            self.disabled = True
        if self.background is None:
            logger.warning("No og-image background configured, skipping og-images")
            self.disabled = True

        env = Environment(loader=FileSystemLoader(str(template_dir or TEMPLATES_DIR)), autoescape=True)
        self.template = env.get_template(TEMPLATE_NAME)
        self._background_url: str | None = None

    def _background(self) -> str:
        if self._background_url is None:
            try:
                self._background_url = file_to_data_url(self.background)
            except OSError as e:
                raise ProcessingError(f"cannot read background image {self.background}: {e}") from e
        return self._background_url

    def render(self, doc: Document) -> str:
        """Render the card SVG for doc."""
        published = doc.date()
        try:
            return self.template.render(
                title=doc.title(),
                subtitle=published.strftime("%Y-%m-%d") if published else "",
                background=self._background(),
                width=CARD_WIDTH,
                height=CARD_HEIGHT,
            )
        except TemplateError as e:
            raise ProcessingError(f"template error: {e}") from e

    def process(self, doc: Document) -> None:
        if self.disabled:
            return
        if not doc.path:
            raise ProcessingError("document has no source path")

        stem = PurePosixPath(doc.path).with_suffix("")
        rel_png = f"{stem}.png"
        base = doc.root / stem if doc.root is not None else Path(stem)
        svg_path = base.parent / f"{base.name}.svg"
        png_path = base.parent / f"{base.name}.png"

        if not self.overwrite and doc.string(self.key) and png_path.exists():
            return

        try:
            svg_path.write_text(self.render(doc), encoding="utf-8")
        except OSError as e:
            raise ProcessingError(f"cannot write {svg_path}: {e}") from e

        try:
            subprocess.run(
                [self.resvg, str(svg_path), str(png_path)],
                check=True, capture_output=True, text=True, timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            raise ProcessingError(f"failed to convert svg to png with resvg: {e.stderr.strip() or e}") from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ProcessingError(f"failed to run resvg: {e}") from e

        if doc.string(self.key) != rel_png:
            doc.set_field(self.key, rel_png)
