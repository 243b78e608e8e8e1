import json
import logging
import re
import time
from collections.abc import Sequence
from pathlib import Path

import anyio
from pydantic import TypeAdapter, ValidationError
from uuid_extensions import uuid7str

from webmcp_extend.browser.views import SessionError
from webmcp_extend.config import CONFIG
from webmcp_extend.session.driver import PlaywrightSessionDriver, RecorderPage, SessionDriver
from webmcp_extend.session.views import (
	ACTION_LOG_FILE,
	SCREENSHOT_FILE,
	SESSION_FILE,
	TOOLS_FILE,
	ActionLogEntry,
	SessionAction,
	SessionCloseResult,
	SessionScreenshotResult,
	SessionStartResult,
	SessionState,
	SessionStepOptions,
	SessionStepResult,
	SessionTool,
	SessionToolProperty,
	SessionToolSchema,
	SessionToolStep,
	ViewportSize,
)
from webmcp_extend.utils import time_execution_async, to_camel_case

logger = logging.getLogger(__name__)

SETTLE_DELAY_MS = 500
SCROLL_STEP_PX = 500
PROFILE_DIR = 'browser-profile'

_action_log_adapter = TypeAdapter(list[ActionLogEntry])

_NAME_ATTRIBUTE = re.compile(r'\[name=["\']?([^"\'\]]+)')
_ID = re.compile(r'#([\w-]+)')
_PLACEHOLDER_ATTRIBUTE = re.compile(r'\[placeholder=["\']?([^"\'\]]+)')


def infer_property_name(selector: str, action: str) -> str:
	"""Derive a camelCase input property name from a locator.

	Looks for a name attribute, then an id, then a placeholder, and falls back
	to `<action>Value`:

	>>> infer_property_name('input[name="first_name"]', 'fill')
	'firstName'
	>>> infer_property_name('#email-input', 'fill')
	'emailInput'
	>>> infer_property_name('.size', 'select')
	'selectValue'
	"""
	for pattern in (_NAME_ATTRIBUTE, _ID, _PLACEHOLDER_ATTRIBUTE):
		match = pattern.search(selector)
		if match:
			return to_camel_case(match.group(1))
	return f'{action}Value'


def _claim_property_name(base: str, selector: str, taken: dict[str, str]) -> str:
	"""Steps on the same locator share a property; a different locator gets `base2`, `base3`, ..."""
	candidate = base
	suffix = 2
	while candidate in taken and taken[candidate] != selector:
		candidate = f'{base}{suffix}'
		suffix += 1
	taken[candidate] = selector
	return candidate


def group_actions_into_tools(log: Sequence[ActionLogEntry]) -> list[SessionTool]:
	"""Fold the successful, tool-tagged log entries into one SessionTool per tag, in first-seen order."""
	groups: dict[str, list[ActionLogEntry]] = {}
	for entry in log:
		if not entry.tool_name or not entry.success:
			continue
		groups.setdefault(entry.tool_name, []).append(entry)

	tools = []
	for name, entries in groups.items():
		steps: list[SessionToolStep] = []
		properties: dict[str, SessionToolProperty] = {}
		required: list[str] = []
		url_patterns: list[str] = []
		property_selectors: dict[str, str] = {}

		for entry in entries:
			if entry.page_url not in url_patterns:
				url_patterns.append(entry.page_url)

			# waits and navigations only scaffold the recording
			if entry.action in (SessionAction.WAIT, SessionAction.NAVIGATE):
				continue

			step = SessionToolStep(action=entry.action.value, selector=entry.selector or '')
			if entry.action in (SessionAction.FILL, SessionAction.SELECT) and entry.value:
				selector = entry.selector or ''
				prop_name = _claim_property_name(infer_property_name(selector, entry.action.value), selector, property_selectors)
				step = step.model_copy(update={'input_property': prop_name})
				properties[prop_name] = SessionToolProperty(type='string', description=f'Value for {entry.selector}')
				if prop_name not in required:
					required.append(prop_name)
			steps.append(step)

		tools.append(
			SessionTool(
				name=name,
				steps=steps,
				input_schema=SessionToolSchema(properties=properties, required=required),
				url_patterns=url_patterns,
			)
		)
	return tools


async def execute_action(page: RecorderPage, options: SessionStepOptions) -> None:
	"""Perform one recorded action. Raises on any failure, including a missing selector or url."""
	action = options.action
	if action == SessionAction.CLICK:
		await page.click(_require_selector(options))
	elif action == SessionAction.FILL:
		await page.fill(_require_selector(options), options.value or '')
	elif action == SessionAction.SELECT:
		await page.select_option(_require_selector(options), options.value or '')
	elif action == SessionAction.HOVER:
		await page.hover(_require_selector(options))
	elif action == SessionAction.SCROLL:
		if options.selector:
			await page.locator(options.selector).scroll_into_view_if_needed()
		else:
			await page.evaluate(f'() => window.scrollBy(0, {SCROLL_STEP_PX})')
	elif action == SessionAction.WAIT:
		if options.selector:
			await page.wait_for_selector(options.selector)
		elif options.value and options.value.strip().isdigit():
			await page.wait_for_timeout(int(options.value))
	elif action == SessionAction.NAVIGATE:
		if not options.url:
			raise ValueError('Navigate requires a url')
		await page.goto(options.url, wait_until='networkidle')
	else:
		raise ValueError(f'Unknown action: {action}')


def _require_selector(options: SessionStepOptions) -> str:
	if not options.selector:
		raise ValueError(f'{options.action.value.capitalize()} requires a selector')
	return options.selector


class SessionRecorder:
	"""Records an interactive browsing session into a directory.

	Every operation reads session.json and action-log.json fresh and rewrites
	them whole, because each call may come from a separate process talking to
	the same long-lived browser. Only one writer per directory is supported;
	there is no file locking.
	"""

	def __init__(self, session_dir: str | Path | None = None, driver: SessionDriver | None = None):
		self.session_dir = Path(session_dir) if session_dir is not None else CONFIG.WEBMCP_EXTEND_SESSION_DIR
		self.driver: SessionDriver = driver or PlaywrightSessionDriver()

	@property
	def state_path(self) -> Path:
		return self.session_dir / SESSION_FILE

	@property
	def action_log_path(self) -> Path:
		return self.session_dir / ACTION_LOG_FILE

	@property
	def screenshot_path(self) -> Path:
		return self.session_dir / SCREENSHOT_FILE

	@property
	def tools_path(self) -> Path:
		return self.session_dir / TOOLS_FILE

	# Operations --------------------------------------------------------------

	@time_execution_async('--session_start')
	async def start(
		self,
		url: str,
		goal: str | None = None,
		headful: bool | None = None,
		viewport: ViewportSize | None = None,
	) -> SessionStartResult:
		try:
			await anyio.Path(self.session_dir).mkdir(parents=True, exist_ok=True)
		except OSError as e:
			raise SessionError(f'Cannot create session directory {self.session_dir}', {'error': str(e)}) from e

		headless = CONFIG.WEBMCP_EXTEND_HEADLESS if headful is None else not headful
		viewport = viewport or ViewportSize(
			width=CONFIG.WEBMCP_EXTEND_VIEWPORT_WIDTH,
			height=CONFIG.WEBMCP_EXTEND_VIEWPORT_HEIGHT,
		)
		handle = await self.driver.launch(headless=headless, viewport=viewport, user_data_dir=self.session_dir / PROFILE_DIR)

		try:
			async with self.driver.connect(handle.cdp_url) as page:
				await page.goto(url, wait_until='networkidle')
				await self._capture(page)
				current_url = page.url
		except Exception as e:
			await self.driver.terminate(handle)
			raise SessionError(f'Failed to open {url}', {'error': str(e)}) from e

		await self._write_log([])
		state = SessionState(
			id=uuid7str(),
			cdp_url=handle.cdp_url,
			browser_pid=handle.pid,
			goal=goal,
			current_url=current_url,
			step_count=0,
			started_at=time.time(),
			session_dir=str(self.session_dir),
		)
		await self._write_state(state)

		logger.info(f'🚀 Session {state.id} started at {current_url}')
		return SessionStartResult(session_dir=str(self.session_dir), screenshot_path=str(self.screenshot_path), state=state)

	@time_execution_async('--session_step')
	async def step(self, options: SessionStepOptions) -> SessionStepResult:
		state = await self._read_state()

		async with self.driver.connect(state.cdp_url) as page:
			success = True
			error = None
			try:
				await execute_action(page, options)
				await page.wait_for_timeout(SETTLE_DELAY_MS)
			except Exception as e:
				success = False
				error = str(e) or type(e).__name__
				logger.warning(f'❌ Step {state.step_count} ({options.action.value}) failed: {error}')

			await self._capture(page)
			page_url = page.url

		entry = ActionLogEntry(
			step_index=state.step_count,
			action=options.action,
			selector=options.selector,
			value=options.value,
			url=options.url,
			tool_name=options.tool_name,
			page_url=page_url,
			screenshot_path=str(self.screenshot_path),
			timestamp=time.time(),
			success=success,
			error=error,
		)

		log = await self._read_log()
		log.append(entry)
		await self._write_log(log)
		await self._write_state(state.model_copy(update={'step_count': state.step_count + 1, 'current_url': page_url}))

		if success:
			logger.info(f'✅ Step {entry.step_index}: {options.action.value} {options.selector or options.url or ""}'.rstrip())
		return SessionStepResult(screenshot_path=str(self.screenshot_path), entry=entry)

	async def screenshot(self) -> SessionScreenshotResult:
		state = await self._read_state()
		async with self.driver.connect(state.cdp_url) as page:
			await self._capture(page)
		logger.debug(f'📸 Captured {self.screenshot_path}')
		return SessionScreenshotResult(screenshot_path=str(self.screenshot_path))

	@time_execution_async('--session_close')
	async def close(self) -> SessionCloseResult:
		state = await self._read_state()

		try:
			await self.driver.terminate(state.handle)
		except Exception as e:
			logger.debug(f'Browser for session {state.id} was already gone: {type(e).__name__}: {e}')

		log = await self._read_log()
		tools = group_actions_into_tools(log)
		await self._write_json(self.tools_path, [tool.to_wire() for tool in tools])

		logger.info(f'✅ Session {state.id} closed after {state.step_count} steps, {len(tools)} tools derived')
		return SessionCloseResult(tools_path=str(self.tools_path), tools=tools)

	# Persistence -------------------------------------------------------------

	async def _capture(self, page: RecorderPage) -> Path:
		data = await page.screenshot(type='png', full_page=False)
		async with await anyio.open_file(self.screenshot_path, 'wb') as f:
			await f.write(data)
		return self.screenshot_path

	async def _read_state(self) -> SessionState:
		if not await anyio.Path(self.state_path).exists():
			raise SessionError(f'No active session found in {self.session_dir}. Start a session first.')
		async with await anyio.open_file(self.state_path, 'r', encoding='utf-8') as f:
			content = await f.read()
		try:
			return SessionState.model_validate_json(content)
		except ValidationError as e:
			raise SessionError(f'Corrupt session state in {self.state_path}', {'error': str(e)}) from e

	async def _write_state(self, state: SessionState) -> None:
		async with await anyio.open_file(self.state_path, 'w', encoding='utf-8') as f:
			await f.write(state.to_wire_json())

	async def _read_log(self) -> list[ActionLogEntry]:
		if not await anyio.Path(self.action_log_path).exists():
			return []
		async with await anyio.open_file(self.action_log_path, 'r', encoding='utf-8') as f:
			content = await f.read()
		return _action_log_adapter.validate_json(content or '[]')

	async def _write_log(self, log: Sequence[ActionLogEntry]) -> None:
		await self._write_json(self.action_log_path, [entry.to_wire() for entry in log])

	async def _write_json(self, path: Path, payload: object) -> None:
		async with await anyio.open_file(path, 'w', encoding='utf-8') as f:
			await f.write(json.dumps(payload, indent=2, ensure_ascii=False))
