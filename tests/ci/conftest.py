"""
Shared fixtures and in-memory fakes for the browser boundary.

Nothing here starts a browser: the fakes implement just enough of the
Playwright page surface for extractors, generated tools and the session
recorder to run against.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import pytest

from webmcp_extend.browser.views import AccessibilityNode, PageSnapshot
from webmcp_extend.runtime import (
	CALL_FUNCTION_SCRIPT,
	CHECK_SCRIPT,
	FILL_SCRIPT,
	READ_SCRIPT,
	RESOLVE_FUNCTION_SCRIPT,
	SELECT_SCRIPT,
	SUBMIT_SCRIPT,
	default_registry,
)
from webmcp_extend.session.views import BrowserHandle, ViewportSize

# Smallest valid PNG header is enough for the recorder, which only writes bytes to disk
FAKE_PNG = b'\x89PNG\r\n\x1a\n' + b'\x00' * 16


def make_snapshot(
	body_html: str = '',
	tree: AccessibilityNode | None = None,
	url: str = 'https://shop.example.com/',
	step_index: int = -1,
) -> PageSnapshot:
	return PageSnapshot(
		url=url,
		title='Shop',
		body_html=body_html,
		accessibility_tree=tree,
		timestamp=1_700_000_000.0,
		step_index=step_index,
	)


class FakeScriptPage:
	"""Answers page.evaluate() from a script -> result table. Exceptions in the table are raised."""

	def __init__(self, url: str, results: dict[str, Any]):
		self._url = url
		self.results = results
		self.calls: list[tuple[str, Any]] = []

	@property
	def url(self) -> str:
		return self._url

	async def evaluate(self, expression: str, arg: Any = None) -> Any:
		self.calls.append((expression, arg))
		result = self.results.get(expression)
		if isinstance(result, Exception):
			raise result
		return result


class FakeElement:
	def __init__(self, text: str | None = None, value: str = '', attributes: dict[str, str] | None = None):
		self.text = text
		self.value = value
		self.attributes = attributes or {}
		self.checked = False
		self.submitted = False
		self.clicks = 0
		self.scrolled = False

	async def click(self) -> None:
		self.clicks += 1

	async def evaluate(self, expression: str, arg: Any = None) -> Any:
		if expression in (FILL_SCRIPT, SELECT_SCRIPT):
			self.value = '' if arg is None else str(arg)
		elif expression == CHECK_SCRIPT:
			self.checked = True
		elif expression == SUBMIT_SCRIPT:
			self.submitted = True
		elif expression == READ_SCRIPT:
			if arg == 'textContent':
				return self.text
			if arg == 'value':
				return self.value
			if arg in ('innerHTML', 'outerHTML'):
				return f'<span>{self.text}</span>'
			return self.attributes.get(arg)
		else:
			raise AssertionError(f'Unexpected element script: {expression[:40]}')
		return None

	async def text_content(self) -> str | None:
		return self.text

	async def inner_html(self) -> str:
		return self.text or ''

	async def get_attribute(self, name: str) -> str | None:
		return self.attributes.get(name)

	async def scroll_into_view_if_needed(self) -> None:
		self.scrolled = True


class FakeToolPage:
	"""A page for generated tools: selector -> element, and dotted path -> Python callable."""

	def __init__(
		self,
		elements: dict[str, FakeElement] | None = None,
		functions: dict[str, Callable[..., Any]] | None = None,
		url: str = 'https://pizza.example.com/menu',
	):
		self.elements = elements or {}
		self.functions = functions or {}
		self._url = url

	@property
	def url(self) -> str:
		return self._url

	async def query_selector(self, selector: str) -> FakeElement | None:
		return self.elements.get(selector)

	async def evaluate(self, expression: str, arg: Any = None) -> Any:
		if expression == RESOLVE_FUNCTION_SCRIPT:
			return arg.removeprefix('window.') in self.functions
		if expression == CALL_FUNCTION_SCRIPT:
			return self.functions[arg['path'].removeprefix('window.')](*arg['args'])
		raise AssertionError(f'Unexpected page script: {expression[:40]}')


class FakeLocator:
	def __init__(self, page: 'FakeRecorderPage', selector: str):
		self.page = page
		self.selector = selector

	async def scroll_into_view_if_needed(self) -> None:
		self.page.require(self.selector)
		self.page.actions.append(('scroll', self.selector))


class FakeRecorderPage:
	"""Recorder page whose interactive elements are a fixed set of selectors"""

	def __init__(self, selectors: set[str], fail_navigation: bool = False):
		self.selectors = selectors
		self.fail_navigation = fail_navigation
		self.url = 'about:blank'
		self.actions: list[tuple[Any, ...]] = []
		self.screenshots = 0
		self.values: dict[str, str] = {}

	def require(self, selector: str) -> None:
		if selector not in self.selectors:
			raise TimeoutError(f'Timeout 30000ms exceeded waiting for locator({selector!r})')

	async def goto(self, url: str, wait_until: Any = None, timeout: float | None = None) -> None:
		if self.fail_navigation:
			raise RuntimeError(f'net::ERR_NAME_NOT_RESOLVED at {url}')
		self.url = url
		self.actions.append(('goto', url))

	async def click(self, selector: str) -> None:
		self.require(selector)
		self.actions.append(('click', selector))

	async def fill(self, selector: str, value: str) -> None:
		self.require(selector)
		self.values[selector] = value
		self.actions.append(('fill', selector, value))

	async def select_option(self, selector: str, value: str) -> list[str]:
		self.require(selector)
		self.values[selector] = value
		self.actions.append(('select', selector, value))
		return [value]

	async def hover(self, selector: str) -> None:
		self.require(selector)
		self.actions.append(('hover', selector))

	def locator(self, selector: str) -> FakeLocator:
		return FakeLocator(self, selector)

	async def evaluate(self, expression: str, arg: Any = None) -> Any:
		self.actions.append(('evaluate', expression))
		return None

	async def wait_for_selector(self, selector: str) -> None:
		self.require(selector)
		self.actions.append(('wait_for_selector', selector))

	async def wait_for_timeout(self, timeout: float) -> None:
		self.actions.append(('wait_for_timeout', timeout))

	async def screenshot(self, type: str = 'png', full_page: bool = False) -> bytes:
		self.screenshots += 1
		return FAKE_PNG


class FakeSessionDriver:
	"""Hands out one shared FakeRecorderPage, as if reconnecting to the same browser each time"""

	def __init__(self, page: FakeRecorderPage, terminate_error: Exception | None = None):
		self.page = page
		self.terminate_error = terminate_error
		self.launches: list[dict[str, Any]] = []
		self.connections = 0
		self.terminated: list[BrowserHandle] = []

	async def launch(self, headless: bool, viewport: ViewportSize, user_data_dir: Any) -> BrowserHandle:
		self.launches.append({'headless': headless, 'viewport': viewport, 'user_data_dir': user_data_dir})
		return BrowserHandle(cdp_url='http://127.0.0.1:9333', pid=None)

	@asynccontextmanager
	async def connect(self, cdp_url: str) -> AsyncIterator[FakeRecorderPage]:
		self.connections += 1
		yield self.page

	async def terminate(self, handle: BrowserHandle) -> None:
		self.terminated.append(handle)
		if self.terminate_error is not None:
			raise self.terminate_error


@pytest.fixture
def clean_registry():
	"""Generated tools register themselves on import; keep the default registry empty between tests."""
	default_registry.clear()
	yield default_registry
	default_registry.clear()
