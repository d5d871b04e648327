import re
import logging

import yaml
from bs4 import BeautifulSoup
from markdownify import markdownify as md_convert

from harvester.config import EXCERPT_LENGTH
from harvester.errors import ExtractionError

logger = logging.getLogger(__name__)

# Containers tried in order; the first one with readable text wins.
CONTENT_SELECTORS = [
    "article",
    "main article",
    "[role=main] article",
    "main",
    "[role=main]",
    "div.article-content",
    "div.content",
    "div#content",
]

CHROME_SELECTORS = [
    "script", "style", "noscript", "template", "svg", "iframe", "form", "button",
    "nav", "header", "footer", "aside",
    ".navbar", ".navigation", ".sidebar", ".breadcrumbs", ".advertisement", ".ads",
]

MIN_READABLE_CHARS = 100
# never treated as cookie banners
PAGE_CONTAINERS = {"html", "body", "main", "article"}
LANGUAGE_CLASS = re.compile(r"^(?:language|lang)-([\w+#-]+)$")


def clean_cookie_content(soup):
    """
    Remove cookie consent banners from the soup.

    Elements whose id or class names mention a cookie or consent banner are
    dropped together with their content. Page-level containers are never
    dropped: sites mark consent state on <html> or <body> classes.

    Args:
        soup (BeautifulSoup): The BeautifulSoup object to clean.

    Returns:
        BeautifulSoup: The cleaned BeautifulSoup object.
    """
    cookie_keywords = ["cookie", "consent", "gdpr"]
    for tag in soup.find_all(True):
        # children of an already removed banner
        if tag.decomposed:
            continue
        if tag.name in PAGE_CONTAINERS or tag.get("role") == "main":
            continue
        names = " ".join([tag.get("id") or ""] + list(tag.get("class") or [])).lower()
        if any(kw in names for kw in cookie_keywords):
            tag.decompose()
    return soup


def strip_chrome(soup):
    for selector in CHROME_SELECTORS:
        for tag in soup.select(selector):
            tag.decompose()
    return soup


def page_title(soup):
    """Document title without the trailing site name."""
    if not soup.title:
        return ""
    title = soup.title.get_text().strip()
    return re.split(r"\s+[–|-]\s+", title)[0].strip()


def page_description(soup):
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        meta = soup.find("meta", attrs=attrs)
        if meta and meta.get("content"):
            return meta["content"].strip()
    return ""


def find_content_region(soup):
    """
    Locate the primary readable region of a page.

    Raises:
        ExtractionError: If no known content container holds enough text.
    """
    for selector in CONTENT_SELECTORS:
        candidates = soup.select(selector)
        if not candidates:
            continue
        region = max(candidates, key=lambda el: len(el.get_text(strip=True)))
        if len(region.get_text(strip=True)) >= MIN_READABLE_CHARS:
            return region
    raise ExtractionError("No readable content region found")


def make_excerpt(region, description=""):
    text = description
    if not text:
        for p in region.find_all("p"):
            text = " ".join(p.get_text().split())
            if text:
                break
    if len(text) > EXCERPT_LENGTH:
        text = text[:EXCERPT_LENGTH].rsplit(" ", 1)[0] + "..."
    return text


def code_language(el):
    """Language of a <pre> block from a 'language-*' class, or ''."""
    candidates = [el]
    code = el.find("code")
    if code is not None:
        candidates.insert(0, code)
    for node in candidates:
        for cls in node.get("class") or []:
            match = LANGUAGE_CLASS.match(cls)
            if match:
                return match.group(1)
    return ""


def html_to_markdown(html):
    """Convert cleaned HTML to markdown with fenced, language-tagged code blocks."""
    md = md_convert(
        html,
        heading_style="ATX",
        bullets="-",
        code_language_callback=code_language,
    )
    return re.sub(r"\n{3,}", "\n\n", md).strip()


def extract_article(raw_html, fallback_title=""):
    """
    Pull the readable article out of a rendered page.

    Args:
        raw_html (str): The stored page markup.
        fallback_title (str): Used when the page carries no heading or title.

    Returns:
        dict: title, excerpt, length (characters of text) and content_html.

    Raises:
        ExtractionError: If no readable content region can be identified.
    """
    soup = BeautifulSoup(raw_html, "html.parser")
    title_text = page_title(soup)
    description = page_description(soup)

    clean_cookie_content(soup)
    strip_chrome(soup)
    region = find_content_region(soup)

    h1 = region.find("h1")
    heading = " ".join(h1.get_text().split()) if h1 else ""
    title = heading or title_text or fallback_title
    if h1 is not None and heading == title:
        h1.decompose()

    return {
        "title": title,
        "excerpt": make_excerpt(region, description),
        "length": len(region.get_text(" ", strip=True)),
        "content_html": str(region),
    }


def render_document(document, markdown):
    """
    Assemble the final markdown file: frontmatter, title block, body, footer.

    Args:
        document (Document): Metadata of the converted page.
        markdown (str): The converted body.

    Returns:
        str: The complete document text.
    """
    frontmatter = yaml.safe_dump(
        document.frontmatter(), sort_keys=False, allow_unicode=True, width=1000
    )
    return (
        f"---\n{frontmatter}---\n\n"
        f"# {document.title}\n\n"
        f"> **Source:** [{document.source_url}]({document.source_url})\n"
        f">\n"
        f"> **Path:** `{document.path}`\n\n"
        f"{markdown}\n\n"
        f"---\n"
        f"*Converted from HTML on {document.converted_at}*\n"
    )


def count_words(markdown):
    return len(markdown.split())
