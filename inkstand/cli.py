"""Command-line interface for Inkstand.

This module defines the CLI commands using Click framework.
It provides commands for validating content, inspecting the orderings the
renderer will use, exporting the manifest, and creating new documents.

Commands:
- check: Validate every document.
- list: Print posts in listing order.
- nav: Print pages in navigation order.
- groups: Print categories or tags with post counts.
- manifest: Write the manifest files for the renderer.
- new: Create a new post or page.
- watch: Re-check on every change.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import click
import questionary

from . import __version__
from .check import CheckReport, check_content
from .config import ConfigError, content_root, load_config, output_root
from .content import ContentError, ContentStore, LoadResult, UrlDeriver
from .frontmatter import dump_document
from .schema import LAYOUT_PAGE, LAYOUT_POST, MetadataError
from .utils import slugify


@click.group()
@click.version_option(version=__version__, prog_name="inkstand")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output")
def cli(verbose: bool):
    """Inkstand content manager for static sites."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--strict", is_flag=True, help="Treat warnings as errors")
def check(strict: bool):
    """Validate every document."""
    project_root = Path.cwd()
    config = _load_config_or_exit(project_root)
    report = check_content(content_root(project_root, config), config)
    _print_report(report, project_root)
    if report.failed(strict=strict):
        raise SystemExit(1)


@cli.command(name="list")
@click.option("--category", help="Only posts in this category")
@click.option("--tag", help="Only posts with this tag")
@click.option(
    "--limit", type=click.IntRange(min=0), required=False, help="Show at most this many posts"
)
def list_posts(category: str | None, tag: str | None, limit: int | None):
    """Print posts in listing order."""
    result = _load_or_exit(Path.cwd())
    posts = result.posts
    if category:
        posts = posts.in_category(category)
    if tag:
        posts = posts.with_tag(tag)
    listing = posts.listing()
    if limit is not None:
        listing = listing[:limit]
    for post in listing:
        marker = click.style("*", fg="cyan", bold=True) if post.pin else " "
        click.echo(f"{marker} {post.date:%Y-%m-%d %H:%M %z}  {post.identifier}  {post.title}")


@cli.command()
def nav():
    """Print pages in navigation order."""
    result = _load_or_exit(Path.cwd())
    for page in result.pages.navigation():
        order = "-" if page.order is None else str(page.order)
        icon = page.icon or ""
        click.echo(f"{order:>3}  {page.url:<20} {page.title}  {icon}".rstrip())


@cli.command()
@click.option("--tags", "show_tags", is_flag=True, help="Group by tag instead of category")
def groups(show_tags: bool):
    """Print categories or tags with post counts."""
    result = _load_or_exit(Path.cwd())
    index = result.posts.tags() if show_tags else result.posts.categories()
    for name, count in index.counts().items():
        click.echo(f"{count:>4}  {name}")


@cli.command()
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    required=False,
    help="Directory to write the manifest to (overrides inkstand.yaml)",
)
def manifest(output: Path | None):
    """Write the manifest files for the renderer."""
    project_root = Path.cwd()
    from .manifest import export_manifest

    config = _load_config_or_exit(project_root)
    target = output or output_root(project_root, config)
    try:
        written = export_manifest(content_root(project_root, config), target, config)
    except ContentError as exc:
        _print_errors(exc.errors, project_root)
        raise SystemExit(1) from None
    for path in written:
        click.echo(f"Wrote {_display_path(path, project_root)}")


@cli.command()
@click.option("--page", "is_page", is_flag=True, help="Create a page instead of a post")
@click.option("--title", help="Document title")
@click.option("--category", "categories", multiple=True, help="Post category (repeatable)")
@click.option("--tag", "tags", multiple=True, help="Post tag (repeatable)")
@click.option("--pin", is_flag=True, help="Pin the post above unpinned posts")
@click.option("--icon", help="Page navigation icon")
@click.option("--order", type=int, required=False, help="Page navigation position")
def new(
    is_page: bool,
    title: str | None,
    categories: tuple[str, ...],
    tags: tuple[str, ...],
    pin: bool,
    icon: str | None,
    order: int | None,
):
    """Create a new post or page."""
    project_root = Path.cwd()
    config = _load_config_or_exit(project_root)
    content_dir = content_root(project_root, config)

    if title is not None and not title.strip():
        raise click.BadParameter("title cannot be empty", param_hint="--title")
    if not title:
        title = questionary.text(
            "Title:",
            validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
            style=_questionary_style(),
        ).ask()
        if title is None:
            raise click.Abort()
        if not is_page and not categories:
            answer = questionary.text(
                "Categories (comma separated):", style=_questionary_style()
            ).ask()
            if answer is None:
                raise click.Abort()
            categories = tuple(_split_csv(answer))
    title = title.strip()

    layout = LAYOUT_PAGE if is_page else LAYOUT_POST
    target_dir = content_dir / _collection_dir(config, layout)
    if is_page:
        target_path = target_dir / f"{slugify(title)}.md"
        metadata: dict = {"layout": LAYOUT_PAGE, "title": title}
        if icon:
            metadata["icon"] = icon
        if order is not None:
            metadata["order"] = order
    else:
        published = datetime.now().astimezone().replace(microsecond=0)
        identifier = UrlDeriver.identifier(published, title)
        target_path = target_dir / f"{identifier}.md"
        _ensure_identifier_free(content_dir, config, identifier, project_root)
        metadata = {
            "layout": LAYOUT_POST,
            "title": title,
            "date": published.strftime("%Y-%m-%d %H:%M:%S %z"),
            "categories": list(categories),
            "tags": list(tags),
        }
        if pin:
            metadata["pin"] = True

    if target_path.exists():
        raise click.ClickException(
            f"File already exists: {_display_path(target_path, project_root)}"
        )
    target_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(dump_document(metadata, "\n"), encoding="utf-8")
    click.echo(f"Created {_display_path(target_path, project_root)}")


@cli.command()
def watch():
    """Re-check content on every change."""
    project_root = Path.cwd()
    _load_config_or_exit(project_root)
    from .watch import ContentWatcher

    def on_report(report: CheckReport) -> None:
        stamp = datetime.now().strftime("%H:%M:%S")
        click.echo(click.style(f"[{stamp}] Checked content", fg="cyan"))
        _print_report(report, project_root)

    ContentWatcher(project_root, on_report).start()


def _load_config_or_exit(project_root: Path) -> dict:
    try:
        return load_config(project_root)
    except ConfigError as exc:
        click.echo(click.style("Invalid configuration:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {exc.source_path.name}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None


def _load_or_exit(project_root: Path) -> LoadResult:
    config = _load_config_or_exit(project_root)
    try:
        return ContentStore(content_root(project_root, config), config).load(strict=True)
    except ContentError as exc:
        _print_errors(exc.errors, project_root)
        raise SystemExit(1) from None


def _ensure_identifier_free(
    content_dir: Path, config: dict, identifier: str, project_root: Path
) -> None:
    result = ContentStore(content_dir, config).load()
    for post in result.posts:
        if post.identifier == identifier:
            raise click.ClickException(
                f"A post with identifier '{identifier}' already exists: "
                f"{_display_path(post.path, project_root)}"
            )


def _collection_dir(config: dict, layout: str) -> str:
    """Return the directory new documents of a layout are created in."""
    for directory, default_layout in config.get("layouts", {}).items():
        if default_layout == layout:
            return directory
    return "_posts" if layout == LAYOUT_POST else "_tabs"


def _print_report(report: CheckReport, project_root: Path) -> None:
    if report.errors:
        _print_errors(report.errors, project_root)
    for warning in report.warnings:
        rel_path = _display_path(warning.source_path, project_root)
        click.echo(click.style(f"Warning: {rel_path}: {warning.message}", fg="yellow"), err=True)
    result = report.result
    summary = f"{len(result.posts)} posts, {len(result.pages)} pages"
    if report.errors:
        click.echo(click.style(f"{summary}; {len(report.errors)} errors", fg="red"))
    else:
        click.echo(f"{summary}; no errors")


def _print_errors(errors: list[MetadataError], project_root: Path) -> None:
    click.echo(click.style("Check failed:", fg="red", bold=True), err=True)
    for error in errors:
        rel_path = _display_path(error.source_path, project_root)
        click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {error.message}", fg="white"), err=True)


def _display_path(path: Path, project_root: Path) -> str:
    try:
        return str(path.resolve().relative_to(project_root.resolve()))
    except ValueError:
        return str(path)


def _split_csv(text: str) -> list[str]:
    return [item.strip() for item in text.split(",") if item.strip()]


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
