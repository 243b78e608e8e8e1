from typing import Any, Literal

from pydantic import ConfigDict, Field

from webmcp_extend.views import WireModel


class Screenshot(WireModel):
	"""A captured viewport image"""

	data: str = Field(repr=False)  # base64 encoded PNG
	width: int
	height: int


class AccessibilityNode(WireModel):
	"""One node of the page's accessibility tree. Children are ordered and the tree is acyclic."""

	role: str
	name: str | None = None
	value: str | None = None
	description: str | None = None
	checked: bool | Literal['mixed'] | None = None
	disabled: bool | None = None
	expanded: bool | None = None
	focused: bool | None = None
	modal: bool | None = None
	pressed: bool | Literal['mixed'] | None = None
	selected: bool | None = None
	children: list['AccessibilityNode'] = Field(default_factory=list)


class PageSnapshot(WireModel):
	"""The state of a page at one moment. step_index is -1 for the initial load."""

	model_config = ConfigDict(frozen=True)

	url: str
	title: str
	body_html: str = Field(alias='bodyHTML')
	accessibility_tree: AccessibilityNode | None = None
	screenshot: Screenshot | None = Field(default=None, repr=False)
	timestamp: float
	step_index: int = -1


class ScenarioStep(WireModel):
	"""A scripted action the crawler runs before capturing the next snapshot"""

	action: Literal['click', 'fill', 'navigate', 'select', 'hover', 'wait']
	selector: str | None = None
	value: str | None = None
	url: str | None = None
	wait_for: str | None = None  # a selector, or "networkidle"
	description: str | None = None


class BrowserError(Exception):
	"""Base class for all browser errors"""

	message: str
	details: dict[str, Any] | None = None

	def __init__(self, message: str, details: dict[str, Any] | None = None):
		self.message = message
		super().__init__(message)
		self.details = details

	def __str__(self) -> str:
		if self.details:
			return f'{self.message} ({self.details})'
		return self.message


class SessionError(BrowserError):
	"""Error raised when an interactive session cannot be started, found or reached"""
