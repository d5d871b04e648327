"""Unit tests for sidebar link discovery."""

import pytest
from selenium.common.exceptions import TimeoutException

from conftest import BASE_URL, ROOT_URL, FakeDriver, sidebar_page
from harvester.errors import DiscoveryError
from harvester.link_discoverer import discover_links, extract_links_from_html, resolve_url


class TestResolveUrl:
    def test_root_relative_is_joined_with_origin(self) -> None:
        assert resolve_url("/reference/react", BASE_URL) == BASE_URL + "/reference/react"

    def test_absolute_is_kept(self) -> None:
        assert resolve_url("https://other.dev/x", BASE_URL) == "https://other.dev/x"


class TestExtractLinks:
    def test_skips_empty_href_and_empty_text(self) -> None:
        html = (
            '<nav><a href="">Empty href</a><a href="/a"> </a>'
            '<a href="/b" title="B page">B</a><a>No href</a></nav>'
        )
        links = extract_links_from_html(html, BASE_URL)
        assert [(l.href, l.text, l.title) for l in links] == [("/b", "B", "B page")]

    def test_deduplicates_by_href_and_text(self) -> None:
        html = '<a href="/a">A</a><a href="/a">A</a><a href="/a">Alias</a>'
        links = extract_links_from_html(html, BASE_URL)
        assert [(l.href, l.text) for l in links] == [("/a", "A"), ("/a", "Alias")]

    def test_normalizes_whitespace_in_text(self) -> None:
        links = extract_links_from_html('<a href="/a">  use\n   State </a>', BASE_URL)
        assert links[0].text == "use State"
        assert links[0].full_url == BASE_URL + "/a"


class TestDiscoverLinks:
    def test_collects_links_from_rendered_navigation(self, target) -> None:
        driver = FakeDriver({ROOT_URL: sidebar_page([("/reference/core/x", "X"), ("/reference/dom/y", "Y")])})
        links = discover_links(driver, target, settle_delay=0, timeout=1)
        assert [l.full_url for l in links] == [BASE_URL + "/reference/core/x", BASE_URL + "/reference/dom/y"]
        assert driver.visited == [ROOT_URL]

    def test_missing_navigation_is_fatal(self, target) -> None:
        driver = FakeDriver({ROOT_URL: "<html><body><main>No sidebar</main></body></html>"})
        with pytest.raises(DiscoveryError, match="not found"):
            discover_links(driver, target, settle_delay=0, timeout=1)

    def test_navigation_timeout_is_not_retried(self, target) -> None:
        driver = FakeDriver({}, failures={ROOT_URL: TimeoutException("slow")})
        with pytest.raises(DiscoveryError, match="Timed out"):
            discover_links(driver, target, settle_delay=0, timeout=1)
        assert driver.visited == [ROOT_URL]
