"""Inkstand content manager.

This package manages the content of a static personal site: markdown pages and
posts with a YAML front matter block. It loads the content store, enforces the
metadata schema, and derives what the external site generator needs to render
the site: the post listing (pinned posts first, newest first), the page
navigation order, category and tag groups, and stable permalinks.

The main entry point is the CLI module, which provides commands for checking
content, inspecting orderings, exporting the manifest and creating documents.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
