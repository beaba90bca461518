"""
Objetos falsos do Playwright para exercitar o extrator sem um navegador real.
"""

from typing import Any, Dict, List, Optional

import pytest


class FakeResponse:
    def __init__(self, url: str, content_type: Optional[str] = None):
        self.url = url
        self.headers = {"content-type": content_type} if content_type else {}


class FakeRequest:
    def __init__(self, url: str):
        self.url = url


class FakeRoute:
    def __init__(self, url: str):
        self.request = FakeRequest(url)
        self.aborted = False
        self.continued = False

    async def abort(self):
        self.aborted = True

    async def continue_(self):
        self.continued = True


class FakeMouse:
    def __init__(self):
        self.clicks: List[tuple] = []

    async def click(self, x, y):
        self.clicks.append((x, y))


class FakePage:
    """
    Página falsa. `responses` são emitidas durante o goto (antes do retorno),
    `late_responses` logo após o goto, simulando mídia pedida depois do
    DOMContentLoaded.
    """

    def __init__(
        self,
        responses: Optional[List[FakeResponse]] = None,
        late_responses: Optional[List[FakeResponse]] = None,
        goto_error: Optional[BaseException] = None,
        iframes: Optional[List[str]] = None,
        visible: Optional[List[str]] = None,
        missing_selectors: Optional[List[str]] = None,
    ):
        self.responses = responses or []
        self.late_responses = late_responses or []
        self.goto_error = goto_error
        self.iframes = iframes or []
        self.visible = visible or []
        self.missing_selectors = missing_selectors or []
        self.handlers: Dict[str, list] = {}
        self.events: List[str] = []
        self.goto_calls: List[Dict[str, Any]] = []
        self.routes: List[tuple] = []
        self.clicked: List[str] = []
        self.waited: List[str] = []
        self.mouse = FakeMouse()
        self.viewport_size = {"width": 1280, "height": 800}
        self.url = "about:blank"
        self.closed = False

    def on(self, event, handler):
        self.events.append(f"on:{event}")
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event, payload):
        for handler in self.handlers.get(event, []):
            handler(payload)

    async def route(self, pattern, handler):
        self.events.append("route")
        self.routes.append((pattern, handler))

    async def goto(self, url, wait_until=None, timeout=None):
        self.events.append("goto")
        self.goto_calls.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url
        for response in self.responses:
            self.emit("response", response)
        for response in self.late_responses:
            self.emit("response", response)

    async def eval_on_selector_all(self, selector, expression):
        return list(self.iframes)

    async def wait_for_selector(self, selector, state=None, timeout=None):
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError

        self.waited.append(selector)
        if selector in self.missing_selectors:
            raise PlaywrightTimeoutError(f"Timeout waiting for {selector}")
        return object()

    async def is_visible(self, selector, timeout=None):
        return selector in self.visible

    async def click(self, selector, timeout=None):
        self.clicked.append(selector)

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, page: FakePage):
        self.page = page
        self.handlers: Dict[str, list] = {}
        self.init_scripts: List[str] = []

    def on(self, event, handler):
        self.page.events.append(f"context:{event}")
        self.handlers.setdefault(event, []).append(handler)

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    async def new_page(self):
        return self.page


class FakeBrowser:
    def __init__(self, page: FakePage, close_error: Optional[BaseException] = None):
        self.page = page
        self.close_error = close_error
        self.close_count = 0
        self.context_kwargs: Optional[Dict[str, Any]] = None
        self.context: Optional[FakeContext] = None

    async def new_context(self, **kwargs):
        self.context_kwargs = kwargs
        self.context = FakeContext(self.page)
        return self.context

    async def close(self):
        self.close_count += 1
        if self.close_error is not None:
            raise self.close_error


class FakeBrowserType:
    def __init__(self, browser: FakeBrowser, launch_error: Optional[BaseException] = None):
        self.browser = browser
        self.launch_error = launch_error
        self.launch_calls: List[Dict[str, Any]] = []

    async def launch(self, **kwargs):
        self.launch_calls.append(kwargs)
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    def __init__(self, browser: FakeBrowser, launch_error: Optional[BaseException] = None):
        self.chromium = FakeBrowserType(browser, launch_error)
        self.firefox = FakeBrowserType(browser, launch_error)
        self.webkit = FakeBrowserType(browser, launch_error)


class FakePlaywrightManager:
    """Substitui `async_playwright()`: contexto assíncrono que entrega o FakePlaywright."""

    def __init__(self, playwright: FakePlaywright):
        self.playwright = playwright
        self.entered = 0
        self.exited = 0

    async def __aenter__(self):
        self.entered += 1
        return self.playwright

    async def __aexit__(self, exc_type, exc, tb):
        self.exited += 1
        return False


class FakeEnvironment:
    def __init__(self, page: FakePage, launch_error=None, close_error=None):
        self.page = page
        self.browser = FakeBrowser(page, close_error=close_error)
        self.playwright = FakePlaywright(self.browser, launch_error=launch_error)
        self.manager = FakePlaywrightManager(self.playwright)

    def factory(self):
        return self.manager

    @property
    def launch_calls(self):
        return (
            self.playwright.chromium.launch_calls
            + self.playwright.firefox.launch_calls
            + self.playwright.webkit.launch_calls
        )


@pytest.fixture
def make_env():
    def _make(page: Optional[FakePage] = None, **kwargs) -> FakeEnvironment:
        return FakeEnvironment(page or FakePage(), **kwargs)

    return _make
