import time
import logging

from selenium import webdriver
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

from harvester.config import HEADLESS, NAV_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


def create_browser(headless=HEADLESS, nav_timeout=NAV_TIMEOUT):
    """
    Create and return a new Chrome browser instance.

    Uses webdriver_manager to automatically download and manage the appropriate
    ChromeDriver version for the installed Chrome browser. The page-load
    timeout is the per-navigation timeout of every render.

    Args:
        headless (bool): Run Chrome without a window.
        nav_timeout (int): Navigation timeout in seconds.

    Returns:
        webdriver.Chrome: A configured Chrome WebDriver instance.
    """
    options = webdriver.ChromeOptions()
    if headless:
        options.add_argument("--headless=new")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--window-size=1920,1080")
    options.add_argument(f"--user-agent={USER_AGENT}")
    driver = webdriver.Chrome(service=Service(ChromeDriverManager().install()), options=options)
    driver.set_page_load_timeout(nav_timeout)
    return driver


def create_browser_pool(size, factory=create_browser):
    """
    Start a fixed number of browsers.

    If one of them fails to start, the ones already running are closed
    before the error propagates.
    """
    pool = []
    try:
        for _ in range(size):
            pool.append(factory())
    except Exception:
        close_browsers(pool)
        raise
    logger.info(f"Browser pool initialized with {len(pool)} workers")
    return pool


def close_browsers(drivers):
    for driver in drivers:
        try:
            driver.quit()
        except Exception as e:
            logger.warning(f"Failed to close browser: {e}")


def wait_for_render(driver, timeout=NAV_TIMEOUT):
    """Block until the document reports readyState 'complete'."""
    WebDriverWait(driver, timeout).until(
        lambda d: d.execute_script("return document.readyState") == "complete"
    )


def render_page(driver, url, settle_delay=0.5, timeout=NAV_TIMEOUT):
    """
    Load a URL, wait for it to finish rendering and return its markup.

    Navigation timeouts are not retried; the selenium TimeoutException
    propagates to the caller.

    Args:
        driver (webdriver.Chrome): The WebDriver instance.
        url (str): The URL to load.
        settle_delay (float): Extra seconds to let client-side scripts settle.
        timeout (int): Seconds to wait for the document to complete.

    Returns:
        str: The fully rendered page source.
    """
    driver.get(url)
    wait_for_render(driver, timeout)
    if settle_delay:
        time.sleep(settle_delay)
    return driver.page_source
