"""Browser rendering built on Selenium, queried with Scrapy selectors.

Chrome executes the page's JavaScript; every query takes a snapshot of the
rendered DOM (``page_source``) and evaluates CSS selectors on it with
``scrapy.Selector``. The same element wrapper serves static HTML in tests.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from scrapy import Selector


logger = logging.getLogger(__name__)


class Element(Protocol):
    def query_selector(self, css: str) -> Optional["Element"]: ...

    def query_selector_all(self, css: str) -> List["Element"]: ...

    def text(self) -> str: ...

    def attribute(self, name: str) -> Optional[str]: ...


class Page(Protocol):
    url: str

    def wait_load(self) -> None: ...

    def query_selector_all(self, css: str) -> List[Element]: ...

    def title(self) -> str: ...

    def body_text(self) -> str: ...

    def close(self) -> None: ...


class Renderer(Protocol):
    def open_page(self, url: str) -> Page: ...


# Text nodes a user would see; inline scripts carry large JSON state.
VISIBLE_TEXT = ".//text()[not(ancestor::script) and not(ancestor::style) and not(ancestor::noscript)]"


class HtmlElement:
    """A DOM node wrapped around a ``scrapy.Selector``."""

    def __init__(self, sel: Selector) -> None:
        self._sel = sel

    def query_selector(self, css: str) -> Optional["HtmlElement"]:
        found = self._sel.css(css)
        return HtmlElement(found[0]) if found else None

    def query_selector_all(self, css: str) -> List["HtmlElement"]:
        return [HtmlElement(s) for s in self._sel.css(css)]

    def text(self) -> str:
        parts = [t.strip() for t in self._sel.xpath(VISIBLE_TEXT).getall() if t and t.strip()]
        return " ".join(parts)

    def attribute(self, name: str) -> Optional[str]:
        return self._sel.attrib.get(name)


class HtmlPage:
    """Page over a fixed HTML document."""

    def __init__(self, html: str, url: str = "about:blank") -> None:
        self.url = url
        self._html = html
        self.closed = False

    def _document(self) -> Selector:
        return Selector(text=self._html)

    def wait_load(self) -> None:
        return None

    def query_selector_all(self, css: str) -> List[HtmlElement]:
        return [HtmlElement(s) for s in self._document().css(css)]

    def title(self) -> str:
        return (self._document().css("title::text").get() or "").strip()

    def body_text(self) -> str:
        body = self._document().css("body")
        return HtmlElement(body[0]).text() if body else ""

    def close(self) -> None:
        self.closed = True


class SeleniumPage(HtmlPage):
    """A browser tab. Queries see the DOM as rendered at call time."""

    def __init__(self, driver, handle: str, home_handle: str, url: str, timeout: float) -> None:
        super().__init__("", url)
        self._driver = driver
        self._handle = handle
        self._home = home_handle
        self._timeout = timeout

    def _document(self) -> Selector:
        return Selector(text=str(self._driver.page_source))

    def wait_load(self) -> None:
        from selenium.webdriver.support.ui import WebDriverWait

        WebDriverWait(self._driver, self._timeout).until(
            lambda d: d.execute_script("return document.readyState") == "complete"
        )

    def title(self) -> str:
        return str(self._driver.title or "").strip()

    def body_text(self) -> str:
        from selenium.webdriver.common.by import By

        return str(self._driver.find_element(By.TAG_NAME, "body").text or "").strip()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._driver.switch_to.window(self._handle)
            self._driver.close()
        finally:
            self._driver.switch_to.window(self._home)


class SeleniumRenderer:
    """Owns one Chrome instance; every page opens in a fresh tab."""

    def __init__(self, headless: bool = True, timeout: float = 30.0, binary: Optional[str] = None) -> None:
        self.headless = headless
        self.timeout = timeout
        self.binary = binary
        self._driver = None
        self._home: Optional[str] = None

    def start(self) -> None:
        from selenium import webdriver
        from selenium.webdriver.chrome.options import Options

        options = Options()
        if self.headless:
            options.add_argument("--headless=new")
            options.add_argument("--no-sandbox")
        for flag in (
            "--disable-gpu",
            "--disable-dev-shm-usage",
            "--disable-extensions",
            "--no-first-run",
            "--disable-background-timer-throttling",
            "--disable-backgrounding-occluded-windows",
            "--disable-renderer-backgrounding",
        ):
            options.add_argument(flag)
        if self.binary:
            options.binary_location = self.binary
        self._driver = webdriver.Chrome(options=options)
        self._driver.set_page_load_timeout(self.timeout)
        self._home = self._driver.current_window_handle
        logger.info("Browser started successfully")

    def open_page(self, url: str) -> SeleniumPage:
        if self._driver is None or self._home is None:
            raise RuntimeError("renderer not started")
        driver = self._driver
        driver.switch_to.new_window("tab")
        page = SeleniumPage(driver, driver.current_window_handle, self._home, url, self.timeout)
        try:
            driver.get(url)
        except Exception:
            page.close()
            raise
        return page

    def close(self) -> None:
        if self._driver is not None:
            try:
                self._driver.quit()
            finally:
                self._driver = None
                self._home = None
