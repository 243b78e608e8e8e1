from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from webmcp_extend.views import WireModel

SESSION_FILE = 'session.json'
ACTION_LOG_FILE = 'action-log.json'
SCREENSHOT_FILE = 'screenshot-latest.png'
TOOLS_FILE = 'tools.json'


class SessionAction(str, Enum):
	CLICK = 'click'
	FILL = 'fill'
	SELECT = 'select'
	HOVER = 'hover'
	SCROLL = 'scroll'
	WAIT = 'wait'
	NAVIGATE = 'navigate'


class ViewportSize(BaseModel):
	width: int = 1280
	height: int = 720


class BrowserHandle(WireModel):
	"""Everything needed to find the long-lived browser process again from a later invocation"""

	cdp_url: str
	pid: int | None = None


class SessionState(WireModel):
	"""Persisted in session.json and rewritten after every operation"""

	id: str
	cdp_url: str
	browser_pid: int | None = None
	goal: str | None = None
	current_url: str
	step_count: int = 0
	started_at: float
	session_dir: str

	@property
	def handle(self) -> BrowserHandle:
		return BrowserHandle(cdp_url=self.cdp_url, pid=self.browser_pid)


class ActionLogEntry(WireModel):
	step_index: int
	action: SessionAction
	selector: str | None = None
	value: str | None = None
	url: str | None = None
	tool_name: str | None = None
	page_url: str
	screenshot_path: str
	timestamp: float
	success: bool
	error: str | None = None


class SessionStepOptions(WireModel):
	action: SessionAction
	selector: str | None = None
	value: str | None = None
	url: str | None = None
	tool_name: str | None = None


class SessionToolStep(WireModel):
	action: Literal['click', 'fill', 'select', 'hover', 'scroll']
	selector: str
	input_property: str | None = None
	static_value: str | None = None
	delay: int | None = None


class SessionToolProperty(WireModel):
	type: str = 'string'
	description: str


class SessionToolSchema(WireModel):
	type: Literal['object'] = 'object'
	properties: dict[str, SessionToolProperty] = Field(default_factory=dict)
	required: list[str] = Field(default_factory=list)


class SessionTool(WireModel):
	"""A tool derived from the tagged steps of a recorded session"""

	name: str
	steps: list[SessionToolStep] = Field(default_factory=list)
	input_schema: SessionToolSchema = Field(default_factory=SessionToolSchema)
	url_patterns: list[str] = Field(default_factory=list)


class SessionStartResult(WireModel):
	session_dir: str
	screenshot_path: str
	state: SessionState


class SessionStepResult(WireModel):
	screenshot_path: str
	entry: ActionLogEntry


class SessionScreenshotResult(WireModel):
	screenshot_path: str


class SessionCloseResult(WireModel):
	tools_path: str
	tools: list[SessionTool] = Field(default_factory=list)
