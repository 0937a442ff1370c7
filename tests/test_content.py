from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePosixPath

import pytest

from inkstand.config import DEFAULT_CONFIG
from inkstand.content import (
    ContentError,
    ContentStore,
    Document,
    DocumentBuilder,
    FileContentLoader,
    Page,
    Post,
    UrlDeriver,
)
from inkstand.frontmatter import FrontMatterError
from inkstand.protocols import ContentLoader, RecordBuilder

GO_TITLE = "Mastering Go Performance: A Practical Guide to Profiling"


def create_site(tmp_path: Path) -> Path:
    site = tmp_path / "site"
    (site / "_posts").mkdir(parents=True)
    (site / "_tabs").mkdir()
    (site / "_posts" / "2025-08-01-mastering-go-performance.md").write_text(
        "---\n"
        "layout: post\n"
        f'title: "{GO_TITLE}"\n'
        "date: 2025-08-01T15:02:08+02:00\n"
        "categories: [Go, Performance]\n"
        "tags: [go, pprof, profiling]\n"
        "pin: true\n"
        "---\n\nMeasure before you optimize.\n",
        encoding="utf-8",
    )
    (site / "_posts" / "2025-08-15-architecture-anti-patterns.md").write_text(
        "---\n"
        "title: Software Architecture Anti-Patterns\n"
        "date: 2025-08-15 10:30:00 +0200\n"
        "categories: [Software Architecture]\n"
        "tags: [architecture, anti-patterns]\n"
        "image: /assets/img/cover.png\n"
        "---\n\nThe big ball of mud.\n",
        encoding="utf-8",
    )
    (site / "_tabs" / "about.md").write_text(
        "---\nicon: fas fa-info-circle\norder: 4\n---\n\nHi, I write about Go.\n",
        encoding="utf-8",
    )
    (site / "_tabs" / "archives.md").write_text(
        "---\nlayout: page\nicon: fas fa-archive\norder: 3\n---\n", encoding="utf-8"
    )
    (site / ".github").mkdir()
    (site / ".github" / "notes.md").write_text("not content", encoding="utf-8")
    (site / "_site").mkdir()
    (site / "_site" / "copy.md").write_text("build output", encoding="utf-8")
    (site / "_posts" / "cover.png").write_bytes(b"\x89PNG")
    return site


def test_content_store_loads_pages_and_posts(tmp_path):
    site = create_site(tmp_path)
    result = ContentStore(site).load()
    assert result.ok
    assert len(result.documents) == 4
    assert len(result.posts) == 2
    assert len(result.pages) == 2

    go = next(p for p in result.posts if p.pin)
    assert go.title == GO_TITLE
    assert go.date == datetime(2025, 8, 1, 15, 2, 8, tzinfo=timezone(timedelta(hours=2)))
    assert go.categories == ("Go", "Performance")
    assert go.tags == ("go", "pprof", "profiling")
    assert go.identifier == "2025-08-01-mastering-go-performance-a-practical-guide-to-profiling"
    assert go.url == "/posts/2025-08-01-mastering-go-performance-a-practical-guide-to-profiling/"
    assert go.rel_path == PurePosixPath("_posts/2025-08-01-mastering-go-performance.md")
    assert go.body == "\nMeasure before you optimize.\n"
    assert go.author == ""

    arch = next(p for p in result.posts if not p.pin)
    assert arch.layout == "post"
    assert arch.date.utcoffset() == timedelta(hours=2)
    # Keys outside the schema stay available to the theme
    assert arch.metadata["image"] == "/assets/img/cover.png"

    about = next(p for p in result.pages if p.slug == "about")
    assert isinstance(about, Page)
    assert about.title == "About"
    assert about.icon == "fas fa-info-circle"
    assert about.order == 4
    assert about.url == "/about/"


def test_loader_skips_hidden_and_excluded_paths(tmp_path):
    site = create_site(tmp_path)
    files = FileContentLoader(site, ["_site"]).iter_files()
    rel = [f.relative_to(site).as_posix() for f in files]
    assert rel == [
        "_posts/2025-08-01-mastering-go-performance.md",
        "_posts/2025-08-15-architecture-anti-patterns.md",
        "_tabs/about.md",
        "_tabs/archives.md",
    ]
    assert isinstance(FileContentLoader(site), ContentLoader)
    assert isinstance(DocumentBuilder(site), RecordBuilder)


def test_loader_excludes_files_and_patterns(tmp_path):
    site = create_site(tmp_path)
    (site / "README.md").write_text("# My blog\n", encoding="utf-8")
    (site / "drafts").mkdir()
    (site / "drafts" / "idea.md").write_text("half a thought\n", encoding="utf-8")
    (site / "_tabs" / "notes.draft.md").write_text("scratch\n", encoding="utf-8")

    files = FileContentLoader(site, ["_site", "README.md", "drafts/", "*.draft.md"]).iter_files()
    rel = [f.relative_to(site).as_posix() for f in files]
    assert rel == [
        "_posts/2025-08-01-mastering-go-performance.md",
        "_posts/2025-08-15-architecture-anti-patterns.md",
        "_tabs/about.md",
        "_tabs/archives.md",
    ]


def test_default_config_skips_readme(tmp_path):
    site = create_site(tmp_path)
    (site / "README.md").write_text("# My blog\n", encoding="utf-8")
    result = ContentStore(site, DEFAULT_CONFIG).load()
    assert result.ok
    assert len(result.documents) == 4


def test_unreadable_file_is_reported(tmp_path):
    site = create_site(tmp_path)
    (site / "_posts" / "2025-08-20-latin1.md").write_bytes(
        b"---\ntitle: Caf\xe9 \xff\xfe\ndate: 2025-08-20T09:00:00+02:00\n---\n"
    )
    result = ContentStore(site).load()
    assert len(result.posts) == 2
    [error] = result.errors
    assert isinstance(error, FrontMatterError)
    assert error.source_path.name == "2025-08-20-latin1.md"
    assert error.message.startswith("cannot read file:")


def test_site_wide_author_and_custom_permalink(tmp_path):
    site = create_site(tmp_path)
    config = {
        "author": "Site Owner",
        "layouts": {"_posts": "post", "_tabs": "page"},
        "exclude": ["_site"],
        "permalink": "/:categories/:year/:month/:day/:slug/",
    }
    result = ContentStore(site, config).load()
    go = next(p for p in result.posts if p.pin)
    assert go.author == "Site Owner"
    assert go.url == (
        "/go/performance/2025/08/01/mastering-go-performance-a-practical-guide-to-profiling/"
    )


def test_load_collects_every_error(tmp_path):
    site = create_site(tmp_path)
    (site / "_posts" / "no-date.md").write_text("---\ntitle: Draft\n---\n", encoding="utf-8")
    (site / "_posts" / "naive-date.md").write_text(
        "---\ntitle: Naive\ndate: 2025-08-15\n---\n", encoding="utf-8"
    )
    (site / "_tabs" / "bare.md").write_text("# No front matter\n", encoding="utf-8")
    (site / "index.md").write_text("---\nlayout: home\n---\n", encoding="utf-8")

    result = ContentStore(site).load()
    assert not result.ok
    assert len(result.posts) == 2
    assert len(result.pages) == 2
    messages = {e.source_path.name: e.message for e in result.errors}
    assert messages == {
        "naive-date.md": "date: 2025-08-15 has no time and UTC offset",
        "no-date.md": "date: missing required field",
        "bare.md": "missing front matter block",
        "index.md": "layout: unknown layout 'home' (expected one of: page, post)",
    }
    assert isinstance(next(e for e in result.errors if e.field is None), FrontMatterError)
    assert [str(e.source_path) for e in result.errors] == sorted(
        str(e.source_path) for e in result.errors
    )

    with pytest.raises(ContentError) as exc:
        ContentStore(site).load(strict=True)
    assert len(exc.value.errors) == 4
    assert str(exc.value).startswith("4 documents failed validation:")


def test_duplicate_identifiers_and_permalinks_fail(tmp_path):
    site = create_site(tmp_path)
    (site / "_posts" / "2025-08-01-copy.md").write_text(
        f'---\ntitle: "{GO_TITLE}"\ndate: 2025-08-01T09:00:00+02:00\n---\n',
        encoding="utf-8",
    )
    (site / "_posts" / "2025-09-01-again.md").write_text(
        "---\ntitle: Software Architecture Anti-Patterns\n"
        "date: 2025-09-01T09:00:00+02:00\n---\n",
        encoding="utf-8",
    )
    config = {**DEFAULT_CONFIG, "permalink": "/posts/:slug/"}
    result = ContentStore(site, config).load()
    assert len(result.errors) == 2
    first, second = result.errors
    assert first.source_path.name == "2025-08-01-mastering-go-performance.md"
    assert first.field == "title"
    assert "duplicate identifier" in first.message
    assert "_posts/2025-08-01-copy.md" in first.message
    assert second.source_path.name == "2025-09-01-again.md"
    assert "duplicate permalink '/posts/software-architecture-anti-patterns/'" in second.message


def test_same_title_on_different_days_loads(tmp_path):
    site = tmp_path / "site"
    (site / "_posts").mkdir(parents=True)
    for day in ("01", "08"):
        (site / "_posts" / f"2025-08-{day}-notes.md").write_text(
            f"---\ntitle: Weekly Notes\ndate: 2025-08-{day}T09:00:00+02:00\n---\n",
            encoding="utf-8",
        )
    result = ContentStore(site).load()
    assert result.ok
    assert [p.url for p in result.posts.listing()] == [
        "/posts/2025-08-08-weekly-notes/",
        "/posts/2025-08-01-weekly-notes/",
    ]


def test_identifier_uses_authored_offset():
    late = datetime(2025, 8, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert UrlDeriver.identifier(late, "Late Night") == "2025-08-01-late-night"


def test_url_derivation():
    deriver = UrlDeriver("/:categories/:year/:month/:day/:slug/")
    published = datetime(2025, 8, 1, 15, 2, 8, tzinfo=timezone.utc)
    assert deriver.post_url(published, "x", ["Go", "Performance"]) == "/go/performance/2025/08/01/x/"
    assert deriver.post_url(published, "x", []) == "/2025/08/01/x/"
    assert UrlDeriver().post_url(published, "x", ["Go"]) == "/posts/2025-08-01-x/"
    assert UrlDeriver("/posts/:slug/").post_url(published, "x", ["Go"]) == "/posts/x/"
    assert UrlDeriver.page_url(PurePosixPath("_tabs/about.md")) == "/about/"
    assert UrlDeriver.page_url(PurePosixPath("index.md")) == "/"
    assert UrlDeriver.page_url(PurePosixPath("projects/Side Project.md")) == "/projects/side-project/"


def test_builder_with_custom_loader(tmp_path):
    """ContentStore works with any loader that lists files."""
    site = create_site(tmp_path)

    class OnlyAbout:
        def iter_files(self):
            return [site / "_tabs" / "about.md"]

    result = ContentStore(site, loader=OnlyAbout()).load()
    assert [p.title for p in result.pages] == ["About"]
    assert len(result.posts) == 0


def test_document_builder_read_and_build(tmp_path):
    site = create_site(tmp_path)
    builder = DocumentBuilder(site)
    document = builder.read(site / "_posts" / "2025-08-15-architecture-anti-patterns.md")
    assert isinstance(document, Document)
    assert document.rel_path == PurePosixPath("_posts/2025-08-15-architecture-anti-patterns.md")
    assert document.metadata["tags"] == ["architecture", "anti-patterns"]
    record = builder.build(document)
    assert isinstance(record, Post)
    assert record.identifier == "2025-08-15-software-architecture-anti-patterns"
