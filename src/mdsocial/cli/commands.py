"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdsocial.config import Settings, load_config
from mdsocial.core.errors import MdSocialError
from mdsocial.core.frontmatter import dump_metadata, dump_value, load_value, parse
from mdsocial.core.models import Document
from mdsocial.core.pipeline import Pipeline, PipelineOptions
from mdsocial.modules.registry import build_processors, build_publishers


_MISSING = object()


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
        force=True,
    )


def _load(file: str) -> Document:
    """Parse a single file, exiting with an error if it cannot be read or decoded."""
    path = Path(file)
    try:
        return parse(path.read_bytes(), path=path.name, root=path.parent)
    except (OSError, MdSocialError) as e:
        _fail(f"Cannot load {file}", e)


def _save(doc: Document) -> None:
    try:
        doc.write_back()
    except (OSError, MdSocialError) as e:
        _fail(f"Cannot write {doc.source_path}", e)


def _require_frontmatter(doc: Document, file: str) -> None:
    if not doc.has_metadata:
        _fail(f"{file} has no frontmatter; run 'mdsocial init {file}' first")


def run_cmd(
    path: Annotated[str, typer.Argument(help="Directory of markdown documents")],
    base_url: Annotated[Optional[str], typer.Option("--base-url", help="Site URL joined with slug or path")] = None,
    max_days: Annotated[Optional[int], typer.Option("--publish-max-days", help="Skip posts older than N days; 0 = no limit")] = None,
    skip_undated: Annotated[Optional[bool], typer.Option("--skip-undated/--no-skip-undated", help="Skip posts without a parseable date")] = None,
    dry_run: Annotated[Optional[bool], typer.Option("--dry-run/--no-dry-run", help="Report only; run no modules, write nothing")] = None,
    verbose: Annotated[Optional[bool], typer.Option("--verbose/--no-verbose", "-v", help="Log every skip and step")] = None,
    handle: Annotated[Optional[str], typer.Option("--bluesky-handle", help="Bluesky handle")] = None,
    app_password: Annotated[Optional[str], typer.Option("--bluesky-app-password", help="Bluesky app password")] = None,
    host: Annotated[Optional[str], typer.Option("--bluesky-host", help="Bluesky PDS URL")] = None,
    background: Annotated[Optional[str], typer.Option("--og-image-background", help="Background image for OG cards")] = None,
    overwrite: Annotated[Optional[bool], typer.Option("--og-image-overwrite/--no-og-image-overwrite", help="Regenerate existing OG cards")] = None,
    ):
    """Enrich and publish every document under PATH, writing back changed frontmatter."""
    settings = _settings(overrides={
        "base_url": base_url, "publish_max_days": max_days,
        "skip_undated": skip_undated, "dry_run": dry_run, "verbose": verbose,
        "bluesky_handle": handle, "bluesky_app_password": app_password, "bluesky_host": host,
        "og_image_background": background, "og_image_overwrite": overwrite,
    })
    _configure_logging(settings.verbose)

    root = Path(path)
    if not root.is_dir():
        _fail(f"Not a directory: {root}")

    try:
        processors = build_processors(settings)
        publishers = build_publishers(settings)
    except MdSocialError as e:
        _fail("Module setup failed", e)

    pipeline = Pipeline(PipelineOptions.from_settings(settings), processors, publishers)
    try:
        result = pipeline.run(root)
    except NotADirectoryError as e:
        _fail(str(e))
    finally:
        for pub in publishers:
            pub.close()

    if settings.dry_run:
        typer.echo("Dry run: nothing was published or written.")
    typer.echo(result.summary())


def show_cmd(
    file: Annotated[str, typer.Argument(help="Markdown file")],
    ):
    """Print a file's frontmatter as canonical YAML."""
    doc = _load(file)
    if not doc.has_metadata:
        typer.echo(f"No frontmatter in {file}")
        return
    typer.echo(dump_metadata(doc.metadata).rstrip("\n"))


def get_cmd(
    file: Annotated[str, typer.Argument(help="Markdown file")],
    key: Annotated[str, typer.Argument(help="Dot path, e.g. social.bluesky")],
    ):
    """Print one frontmatter value."""
    doc = _load(file)
    value = doc.get_path(key, _MISSING)
    if value is _MISSING:
        _fail(f"Key not found: {key}")
    typer.echo(dump_value(value))


def set_cmd(
    file: Annotated[str, typer.Argument(help="Markdown file")],
    key: Annotated[str, typer.Argument(help="Dot path, e.g. social.bluesky")],
    value: Annotated[str, typer.Argument(help="YAML value, e.g. 'My Post', 42, '[go, cli]'")],
    ):
    """Set a frontmatter value and write the file back."""
    doc = _load(file)
    _require_frontmatter(doc, file)
    try:
        parsed = load_value(value)
    except MdSocialError as e:
        _fail("Invalid value", e)
    if doc.get_path(key, _MISSING) == parsed:
        typer.echo(f"unchanged: {key}")
        return
    doc.set_path(key, parsed)
    _save(doc)
    typer.echo(f"set: {key}")


def del_cmd(
    file: Annotated[str, typer.Argument(help="Markdown file")],
    key: Annotated[str, typer.Argument(help="Dot path, e.g. draft")],
    ):
    """Delete a frontmatter key and write the file back."""
    doc = _load(file)
    _require_frontmatter(doc, file)
    if not doc.delete_path(key):
        _fail(f"Key not found: {key}")
    _save(doc)
    typer.echo(f"deleted: {key}")


def init_cmd(
    file: Annotated[str, typer.Argument(help="Markdown file")],
    ):
    """Add an empty frontmatter block to a file that has none."""
    doc = _load(file)
    if not doc.init_metadata():
        typer.echo(f"{file} already has frontmatter")
        return
    _save(doc)
    typer.echo(f"initialized: {file}")
