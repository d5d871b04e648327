"""
Documentation harvester package.

Builds an offline, navigable markdown mirror of a documentation site whose
pages are organized under a sidebar navigation tree. The pipeline discovers
the sidebar links, renders every page in a pool of browsers, converts the
rendered HTML into markdown documents with YAML frontmatter, and finally
generates a category index and a table of contents for the corpus.

Re-runs are cheap: raw pages are deduplicated by content hash and markdown
documents are only rebuilt when their raw page is newer.
"""

__version__ = "0.3.0"
