import json

import pytest

from tests.ci.conftest import FAKE_PNG, FakeRecorderPage, FakeSessionDriver
from webmcp_extend.browser.views import SessionError
from webmcp_extend.session import (
	ActionLogEntry,
	SessionAction,
	SessionRecorder,
	SessionStepOptions,
	group_actions_into_tools,
)
from webmcp_extend.session.driver import PlaywrightSessionDriver, kill_process
from webmcp_extend.session.service import SETTLE_DELAY_MS, infer_property_name
from webmcp_extend.session.views import ViewportSize

START_URL = 'https://pizza.example.com/order'
FORM_SELECTORS = {'input[name="customer_name"]', '#email', '#submit'}


@pytest.fixture
def recorder_page():
	return FakeRecorderPage(FORM_SELECTORS)


@pytest.fixture
def driver(recorder_page):
	return FakeSessionDriver(recorder_page)


@pytest.fixture
def recorder(tmp_path, driver):
	return SessionRecorder(session_dir=tmp_path / 'session', driver=driver)


def log_entry(index: int, action: SessionAction, **kwargs) -> ActionLogEntry:
	defaults = {
		'page_url': START_URL,
		'screenshot_path': '/tmp/shot.png',
		'timestamp': 1_700_000_000.0 + index,
		'success': True,
	}
	return ActionLogEntry(step_index=index, action=action, **{**defaults, **kwargs})


class TestSessionLifecycle:
	async def test_start_writes_state_log_and_screenshot(self, recorder, driver):
		result = await recorder.start(START_URL, goal='Order a pizza', viewport=ViewportSize(width=800, height=600))

		assert result.state.current_url == START_URL
		assert result.state.goal == 'Order a pizza'
		assert result.state.step_count == 0
		assert recorder.screenshot_path.read_bytes() == FAKE_PNG
		assert json.loads(recorder.action_log_path.read_text()) == []
		stored = json.loads(recorder.state_path.read_text())
		assert stored['cdpUrl'] == 'http://127.0.0.1:9333'
		assert stored['id'] == result.state.id
		assert driver.launches[0]['viewport'] == ViewportSize(width=800, height=600)
		assert driver.launches[0]['headless'] is True

	async def test_headful_start(self, recorder, driver):
		await recorder.start(START_URL, headful=True)

		assert driver.launches[0]['headless'] is False

	async def test_fill_form_scenario(self, recorder, recorder_page):
		await recorder.start(START_URL, goal='Fill in the order form')

		await recorder.step(
			SessionStepOptions(action=SessionAction.FILL, selector='input[name="customer_name"]', value='Ann', tool_name='fillForm')
		)
		await recorder.step(SessionStepOptions(action=SessionAction.FILL, selector='#email', value='ann@example.com', tool_name='fillForm'))
		await recorder.step(SessionStepOptions(action=SessionAction.WAIT, value='100'))
		closed = await recorder.close()

		assert recorder_page.values == {'input[name="customer_name"]': 'Ann', '#email': 'ann@example.com'}
		(tool,) = closed.tools
		assert tool.name == 'fillForm'
		assert [step.selector for step in tool.steps] == ['input[name="customer_name"]', '#email']
		assert tool.input_schema.required == ['customerName', 'email']
		assert tool.input_schema.properties['email'].description == 'Value for #email'
		assert tool.url_patterns == [START_URL]

		written = json.loads(recorder.tools_path.read_text())
		assert written[0]['name'] == 'fillForm'
		assert written[0]['inputSchema']['required'] == ['customerName', 'email']
		assert written[0]['steps'][0]['inputProperty'] == 'customerName'

	async def test_steps_are_numbered_and_settled(self, recorder, recorder_page):
		await recorder.start(START_URL)

		first = await recorder.step(SessionStepOptions(action=SessionAction.CLICK, selector='#submit'))
		second = await recorder.step(SessionStepOptions(action=SessionAction.SCROLL))

		assert (first.entry.step_index, second.entry.step_index) == (0, 1)
		assert ('wait_for_timeout', SETTLE_DELAY_MS) in recorder_page.actions
		stored = json.loads(recorder.state_path.read_text())
		assert stored['stepCount'] == 2
		assert len(json.loads(recorder.action_log_path.read_text())) == 2

	async def test_failed_step_is_recorded(self, recorder, recorder_page):
		await recorder.start(START_URL)
		screenshots_before = recorder_page.screenshots

		result = await recorder.step(SessionStepOptions(action=SessionAction.CLICK, selector='#does-not-exist', tool_name='broken'))

		assert result.entry.success is False
		assert 'does-not-exist' in result.entry.error
		assert recorder_page.screenshots == screenshots_before + 1
		assert recorder.screenshot_path.exists()
		log = json.loads(recorder.action_log_path.read_text())
		assert log[0]['success'] is False
		assert json.loads(recorder.state_path.read_text())['stepCount'] == 1

	async def test_click_without_selector_fails(self, recorder):
		await recorder.start(START_URL)

		result = await recorder.step(SessionStepOptions(action=SessionAction.CLICK))

		assert result.entry.success is False
		assert result.entry.error == 'Click requires a selector'

	async def test_navigate_without_url_fails(self, recorder):
		await recorder.start(START_URL)

		result = await recorder.step(SessionStepOptions(action=SessionAction.NAVIGATE))

		assert result.entry.error == 'Navigate requires a url'

	async def test_failed_steps_do_not_become_tools(self, recorder):
		await recorder.start(START_URL)
		await recorder.step(SessionStepOptions(action=SessionAction.CLICK, selector='#missing', tool_name='ghost'))

		closed = await recorder.close()

		assert closed.tools == []
		assert json.loads(recorder.tools_path.read_text()) == []

	async def test_screenshot(self, recorder, recorder_page):
		await recorder.start(START_URL)

		result = await recorder.screenshot()

		assert result.screenshot_path == str(recorder.screenshot_path)
		assert recorder_page.screenshots == 2

	async def test_close_tolerates_a_dead_browser(self, tmp_path, recorder_page):
		driver = FakeSessionDriver(recorder_page, terminate_error=ConnectionError('browser already exited'))
		recorder = SessionRecorder(session_dir=tmp_path, driver=driver)
		await recorder.start(START_URL)

		closed = await recorder.close()

		assert closed.tools == []
		assert len(driver.terminated) == 1

	async def test_step_without_session(self, recorder):
		with pytest.raises(SessionError, match='Start a session first'):
			await recorder.step(SessionStepOptions(action=SessionAction.CLICK, selector='#submit'))

	async def test_close_without_session(self, recorder):
		with pytest.raises(SessionError):
			await recorder.close()

	async def test_failed_navigation_terminates_browser(self, tmp_path):
		driver = FakeSessionDriver(FakeRecorderPage(set(), fail_navigation=True))
		recorder = SessionRecorder(session_dir=tmp_path, driver=driver)

		with pytest.raises(SessionError, match='Failed to open'):
			await recorder.start('https://unreachable.invalid/')

		assert len(driver.terminated) == 1
		assert not recorder.state_path.exists()


class TestGrouping:
	def test_groups_by_tag_in_first_seen_order(self):
		log = [
			log_entry(0, SessionAction.CLICK, selector='#search', tool_name='search'),
			log_entry(1, SessionAction.FILL, selector='#email', value='a@b.c', tool_name='subscribe'),
			log_entry(2, SessionAction.FILL, selector='input[name="q"]', value='pizza', tool_name='search'),
		]

		tools = group_actions_into_tools(log)

		assert [tool.name for tool in tools] == ['search', 'subscribe']
		assert [step.action for step in tools[0].steps] == ['click', 'fill']
		assert tools[0].input_schema.required == ['q']

	def test_untagged_and_failed_entries_are_ignored(self):
		log = [
			log_entry(0, SessionAction.CLICK, selector='#a'),
			log_entry(1, SessionAction.CLICK, selector='#b', tool_name='t', success=False, error='Timeout'),
		]

		assert group_actions_into_tools(log) == []

	def test_navigation_contributes_url_but_no_step(self):
		log = [
			log_entry(0, SessionAction.NAVIGATE, url='https://pizza.example.com/cart', tool_name='checkout', page_url='https://pizza.example.com/cart'),
			log_entry(1, SessionAction.WAIT, selector='#pay', tool_name='checkout', page_url='https://pizza.example.com/cart'),
			log_entry(2, SessionAction.CLICK, selector='#pay', tool_name='checkout', page_url='https://pizza.example.com/pay'),
		]

		(tool,) = group_actions_into_tools(log)

		assert [step.selector for step in tool.steps] == ['#pay']
		assert tool.url_patterns == ['https://pizza.example.com/cart', 'https://pizza.example.com/pay']

	def test_repeated_property_is_required_once(self):
		log = [
			log_entry(0, SessionAction.FILL, selector='#email', value='a@b.c', tool_name='t'),
			log_entry(1, SessionAction.FILL, selector='#email', value='c@d.e', tool_name='t'),
		]

		(tool,) = group_actions_into_tools(log)

		assert len(tool.steps) == 2
		assert tool.input_schema.required == ['email']

	def test_distinct_fields_get_distinct_properties(self):
		log = [
			log_entry(0, SessionAction.FILL, selector='.first-name', value='Ann', tool_name='t'),
			log_entry(1, SessionAction.FILL, selector='.last-name', value='Lee', tool_name='t'),
			log_entry(2, SessionAction.FILL, selector='.first-name', value='Anna', tool_name='t'),
		]

		(tool,) = group_actions_into_tools(log)

		assert [step.input_property for step in tool.steps] == ['fillValue', 'fillValue2', 'fillValue']
		assert tool.input_schema.required == ['fillValue', 'fillValue2']
		assert tool.input_schema.properties['fillValue2'].description == 'Value for .last-name'

	def test_fill_without_value_adds_no_property(self):
		(tool,) = group_actions_into_tools([log_entry(0, SessionAction.FILL, selector='#note', tool_name='t')])

		assert tool.steps[0].input_property is None
		assert tool.input_schema.properties == {}


class TestInferPropertyName:
	@pytest.mark.parametrize(
		('selector', 'action', 'expected'),
		[
			('input[name="first_name"]', 'fill', 'firstName'),
			("input[name='zip-code']", 'fill', 'zipCode'),
			('#email-input', 'fill', 'emailInput'),
			('input[placeholder="Search pizzas"]', 'fill', 'searchPizzas'),
			('.size-picker', 'select', 'selectValue'),
		],
	)
	def test_infer_property_name(self, selector, action, expected):
		assert infer_property_name(selector, action) == expected


class ExitedProcess:
	returncode = 1

	def poll(self):
		return self.returncode


class TestPlaywrightSessionDriver:
	async def test_browser_exiting_during_startup(self):
		driver = PlaywrightSessionDriver(startup_timeout=1)

		with pytest.raises(SessionError, match='exited during startup'):
			await driver._wait_for_devtools('http://127.0.0.1:9', ExitedProcess())

	def test_kill_process_without_pid(self):
		assert kill_process(None) is False
