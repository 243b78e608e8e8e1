"""Structural types for the browser driver boundary.

The core only needs these few calls, so a Playwright `Page` satisfies them
and tests can pass small fakes instead.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class EvaluatablePage(Protocol):
	"""Anything that can run a JavaScript function in page context and report its URL."""

	@property
	def url(self) -> str: ...

	async def evaluate(self, expression: str, arg: Any = None) -> Any: ...


class ElementHandleLike(Protocol):
	async def click(self) -> None: ...

	async def evaluate(self, expression: str, arg: Any = None) -> Any: ...

	async def text_content(self) -> str | None: ...

	async def inner_html(self) -> str: ...

	async def get_attribute(self, name: str) -> str | None: ...

	async def scroll_into_view_if_needed(self) -> None: ...


class QueryablePage(EvaluatablePage, Protocol):
	"""Page surface used by generated tools."""

	async def query_selector(self, selector: str) -> ElementHandleLike | None: ...
