import os
import re
import json
import shutil
import hashlib
import logging

import yaml

from harvester.errors import CatalogError
from harvester.models import PageReference

logger = logging.getLogger(__name__)

FRONTMATTER_PATTERN = re.compile(r"(?s)^---\n(.*?)\n---\n(.*)$")


def save_file(path, content):
    """
    Write text content to a file, creating its folder if needed.

    Args:
        path (str): Destination path.
        content (str): The content to write.

    Returns:
        str: The path written.
    """
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return path


def read_text(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def hash_content(content):
    """Return the SHA-256 hex digest of the UTF-8 encoded content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def file_hash(path):
    """
    Hash an existing stored file.

    Returns:
        str or None: The digest, or None when the file does not exist.
    """
    if not os.path.exists(path):
        return None
    return hash_content(read_text(path))


def modified_time(path):
    """Modification time of a file, or None when it does not exist."""
    try:
        return os.path.getmtime(path)
    except OSError:
        return None


def ensure_directories(*paths):
    for path in paths:
        os.makedirs(path, exist_ok=True)


def clean_directories(*paths):
    """
    Wipe and recreate output directories.

    Returns:
        list: The directories that existed and were removed.
    """
    removed = []
    for path in paths:
        if os.path.isdir(path):
            shutil.rmtree(path)
            removed.append(path)
        os.makedirs(path, exist_ok=True)
    return removed


def save_catalog(path, references):
    """Persist page references as a JSON array."""
    content = json.dumps([ref.to_dict() for ref in references], indent=2, ensure_ascii=False)
    return save_file(path, content + "\n")


def load_catalog(path):
    """
    Load the page references written by link discovery.

    Raises:
        CatalogError: If the file is missing or not a JSON array of links.
    """
    if not os.path.exists(path):
        raise CatalogError(f"No links catalog found: {path}. Run the discover phase first.")
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return [PageReference.from_dict(item) for item in raw]
    except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
        raise CatalogError(f"Invalid links catalog {path}: {e}") from e


def split_frontmatter(raw):
    """
    Split a markdown document into its YAML frontmatter and body.

    Returns:
        tuple: (metadata dict, body). Metadata is empty when the frontmatter
        is absent or not valid YAML.
    """
    match = FRONTMATTER_PATTERN.match(raw)
    if not match:
        return {}, raw
    metadata_yaml, body = match.groups()
    try:
        metadata = yaml.safe_load(metadata_yaml) or {}
    except yaml.YAMLError:
        logger.warning("❌ Invalid YAML in frontmatter")
        return {}, body
    if not isinstance(metadata, dict):
        return {}, body
    return metadata, body


def read_frontmatter(path):
    return split_frontmatter(read_text(path))


def save_summary(path, lines):
    """Write the rendered run summary next to the target output."""
    return save_file(path, "\n".join(lines) + "\n")
