import logging
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from selenium.common.exceptions import TimeoutException, WebDriverException

from harvester.browser_utils import render_page
from harvester.errors import DiscoveryError
from harvester.models import PageReference

logger = logging.getLogger(__name__)


def resolve_url(href, base_url):
    """Resolve a root-relative href against the site origin."""
    if href.startswith("/"):
        return urljoin(base_url, href)
    return href


def extract_links_from_html(html, base_url):
    """
    Extract the distinct page references of a navigation region.

    Anchors with an empty href or empty display text are ignored. Two anchors
    are the same reference when both href and text are equal; the first
    occurrence wins.

    Args:
        html (str): Markup of the navigation region.
        base_url (str): Site origin for root-relative links.

    Returns:
        list: PageReference objects in document order.
    """
    soup = BeautifulSoup(html, "html.parser")
    seen = set()
    links = []
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        text = " ".join(a.get_text().split())
        if not href or not text:
            continue
        ref = PageReference(
            href=href,
            title=a.get("title", "") or "",
            text=text,
            full_url=resolve_url(href, base_url),
        )
        if ref.key in seen:
            continue
        seen.add(ref.key)
        links.append(ref)
    return links


def find_navigation(html, selector):
    soup = BeautifulSoup(html, "html.parser")
    nav = soup.select_one(selector)
    return str(nav) if nav else None


def discover_links(driver, target, settle_delay=3.0, timeout=30):
    """
    Render the navigation root of a target and collect its sidebar links.

    Args:
        driver (webdriver.Chrome): The WebDriver instance.
        target (TargetConfig): Root URL, origin and navigation selector.
        settle_delay (float): Seconds to let the client-side tree render.
        timeout (int): Navigation timeout in seconds.

    Returns:
        list: The discovered PageReference objects.

    Raises:
        DiscoveryError: On navigation failure or when the navigation region
            is missing from the rendered page.
    """
    try:
        html = render_page(driver, target.root_url, settle_delay=settle_delay, timeout=timeout)
    except TimeoutException as te:
        raise DiscoveryError(f"Timed out loading {target.root_url}: {te}") from te
    except WebDriverException as wde:
        raise DiscoveryError(f"Failed to render {target.root_url}: {wde}") from wde

    nav_html = find_navigation(html, target.nav_selector)
    if nav_html is None:
        raise DiscoveryError(
            f"Sidebar navigation '{target.nav_selector}' not found on {target.root_url}"
        )

    links = extract_links_from_html(nav_html, target.base_url)
    logger.debug(f"Extracted {len(links)} links from sidebar of {target.root_url}")
    return links
