"""Shared fixtures: fake browsers, a recording reporter and sample pages."""

import pytest
from selenium.common.exceptions import TimeoutException

from harvester.config import RunSettings, TargetConfig, TargetPaths
from harvester.logger import Reporter
from harvester.models import Chapter, PageReference

BASE_URL = "https://docs.example.com"
ROOT_URL = BASE_URL + "/reference"


class FakeDriver:
    """Stand-in for a selenium Chrome driver serving canned pages."""

    def __init__(self, pages, failures=None):
        self.pages = pages
        self.failures = failures if failures is not None else {}
        self.current_url = None
        self.visited = []
        self.closed = False

    def get(self, url):
        self.visited.append(url)
        if url in self.failures:
            raise self.failures[url]
        if url not in self.pages:
            raise TimeoutException(f"Timed out receiving message from renderer: {url}")
        self.current_url = url

    @property
    def page_source(self):
        return self.pages[self.current_url]

    def execute_script(self, script):
        return "complete"

    def set_page_load_timeout(self, seconds):
        pass

    def quit(self):
        self.closed = True


class RecordingReporter(Reporter):
    def __init__(self):
        self.events = []

    def emit(self, event, **fields):
        self.events.append((event, fields))

    def names(self):
        return [name for name, _ in self.events]

    def of(self, event):
        return [fields for name, fields in self.events if name == event]


def make_page(title, headers=(), paragraphs=2, code=None, language=None):
    """Render a documentation page with sidebar chrome around an article."""
    sections = []
    for level, text in headers:
        sections.append(f"<h{level}>{text}</h{level}>")
        for i in range(paragraphs):
            sections.append(
                f"<p>{text} explains part {i + 1} of {title} in enough words to be readable content.</p>"
            )
    if code is not None:
        cls = f' class="language-{language}"' if language else ""
        sections.append(f"<pre><code{cls}>{code}</code></pre>")
    return (
        "<html><head>"
        f"<title>{title} – Example Docs</title>"
        '<meta name="description" content="">'
        "</head><body>"
        '<nav role="navigation"><a href="/reference/core">Core</a></nav>'
        '<div id="cookie-banner"><p>We use cookies. Accept all?</p></div>'
        "<header><p>Site header</p></header>"
        "<main><article>"
        f"<h1>{title}</h1>"
        f"<p>{title} is documented on this page with an introductory paragraph that serves as the excerpt for readers browsing the index.</p>"
        + "".join(sections)
        + "</article></main>"
        "<footer><p>Copyright footer</p></footer>"
        "</body></html>"
    )


def sidebar_page(links):
    anchors = "".join(f'<li><a href="{href}" title="{text}">{text}</a></li>' for href, text in links)
    return (
        "<html><head><title>Reference</title></head><body>"
        f'<nav role="navigation"><ul>{anchors}</ul></nav>'
        "<main><p>Welcome</p></main></body></html>"
    )


@pytest.fixture
def target():
    return TargetConfig(
        name="docs",
        description="Example Docs",
        root_url=ROOT_URL,
        base_url=BASE_URL,
        chapter_mapping={
            "/reference/core": Chapter(1, "Core"),
            "/reference/dom": Chapter(2, "DOM"),
        },
        section_priority={"overview": 1, "hooks": 2},
    )


@pytest.fixture
def settings(tmp_path):
    return RunSettings(
        output_root=str(tmp_path / "out"),
        pool_size=2,
        batch_delay=0,
        nav_timeout=5,
        settle_delay=0,
        discovery_settle_delay=0,
        min_content_bytes=300,
    )


@pytest.fixture
def paths(settings, target):
    return TargetPaths.for_target(settings.output_root, target)


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def references():
    """Three pages across two chapters and two path categories."""
    return [
        PageReference("/reference/core/hooks/use-thing", "", "useThing", BASE_URL + "/reference/core/hooks/use-thing"),
        PageReference("/reference/core/apis/create-thing", "", "createThing", BASE_URL + "/reference/core/apis/create-thing"),
        PageReference("/reference/dom/hooks/use-form", "", "useForm", BASE_URL + "/reference/dom/hooks/use-form"),
    ]


@pytest.fixture
def site(references):
    """URL to rendered HTML for every sample reference plus the sidebar."""
    pages = {
        ref.full_url: make_page(
            ref.text,
            headers=[(2, "Reference"), (3, "Parameters"), (2, "Usage"), (3, "Note")],
            code="const x = 1;",
            language="js",
        )
        for ref in references
    }
    pages[ROOT_URL] = sidebar_page([(ref.href, ref.text) for ref in references])
    return pages


@pytest.fixture
def browser_factory(site):
    created = []

    def factory():
        driver = FakeDriver(site)
        created.append(driver)
        return driver

    factory.created = created
    return factory
