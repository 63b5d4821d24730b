"""Application configuration: settings schema and mdsocial.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


CONFIG_FILE = "mdsocial.yaml"


class Settings(BaseModel):
    base_url:         str = Field(default="",       description="Site URL that slugs / relative paths are joined to")
    extensions:       list[str] = Field(default_factory=lambda: [".md"], description="Document file suffixes")
    publish_max_days: int = Field(default=0,  ge=0, description="Skip posts dated older than this; 0 = no limit")
    skip_undated:     bool = Field(default=False,   description="Skip posts whose date is missing or unparseable")
    dry_run:          bool = Field(default=False,   description="Report what would happen; no side effects")
    verbose:          bool = Field(default=False,   description="Log every skip and step")
    parser_config:    str = Field(default="commonmark", description="MarkdownIt preset used for body summaries")
    summary_length:   int = Field(default=300, ge=0, description="Max summary characters; 0 = unlimited")

    bluesky_handle:       str = Field(default="", description="Bluesky handle; empty disables the publisher")
    bluesky_app_password: str = Field(default="", description="Bluesky app password")
    bluesky_host:         str = Field(default="https://bsky.social", description="PDS base URL")
    bluesky_timeout:      float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")

    og_image_background: str = Field(default="",       description="Background image for OG cards; empty disables")
    og_image_overwrite:  bool = Field(default=False,   description="Regenerate cards that already exist")
    og_image_key:        str = Field(default="ogImage", description="Frontmatter key receiving the card path")
    resvg_path:          str = Field(default="resvg",  description="resvg executable used to rasterize SVG")

    @field_validator("extensions", mode="before")
    @classmethod
    def _split_extensions(cls, v: Any) -> Any:
        """Accept a comma-separated string (env vars) and normalise to `.ext` form."""
        if isinstance(v, str):
            v = [e.strip() for e in v.split(",") if e.strip()]
        if isinstance(v, list):
            v = [e if str(e).startswith(".") else f".{e}" for e in v]
        return v


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from mdsocial.yaml, then MDSOCIAL_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping")

    for name in Settings.model_fields:
        if val := os.getenv(f"MDSOCIAL_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
