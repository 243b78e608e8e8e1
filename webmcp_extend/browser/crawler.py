"""
Playwright crawler that captures PageSnapshots for a scripted scenario.

This is the concrete driver for the analysis pipeline: the extractors only
ever see the snapshots and the page handle it produces.
"""

import asyncio
import base64
import logging
import time
from collections.abc import Sequence
from typing import Any

from playwright.async_api import Page, async_playwright
from pydantic import BaseModel

from webmcp_extend.browser.views import AccessibilityNode, BrowserError, PageSnapshot, ScenarioStep, Screenshot
from webmcp_extend.config import CONFIG
from webmcp_extend.utils import time_execution_async

logger = logging.getLogger(__name__)

_BOOLEAN_STATES = ('disabled', 'expanded', 'focused', 'modal', 'selected')
_TRISTATE_STATES = ('checked', 'pressed')


class CrawlOptions(BaseModel):
	headless: bool | None = None
	viewport_width: int | None = None
	viewport_height: int | None = None
	screenshots: bool = True
	timeout_ms: int | None = None
	user_agent: str | None = None


def _ax_value(field: dict[str, Any] | None) -> Any:
	if not field:
		return None
	return field.get('value')


def _tristate(value: Any) -> bool | str | None:
	if value in (True, 'true'):
		return True
	if value in (False, 'false'):
		return False
	if value == 'mixed':
		return 'mixed'
	return None


def build_accessibility_tree(nodes: Sequence[dict[str, Any]]) -> AccessibilityNode | None:
	"""Rebuild a tree from the flat CDP Accessibility.getFullAXTree node list.

	Ignored nodes are dropped and their children hoisted into the parent.
	"""
	if not nodes:
		return None

	by_id = {node['nodeId']: node for node in nodes if 'nodeId' in node}
	root = next((node for node in nodes if not node.get('parentId')), nodes[0])

	def convert(node: dict[str, Any]) -> list[AccessibilityNode]:
		children: list[AccessibilityNode] = []
		for child_id in node.get('childIds', []):
			child = by_id.get(child_id)
			if child is not None:
				children.extend(convert(child))

		if node.get('ignored'):
			return children

		states: dict[str, Any] = {}
		for prop in node.get('properties', []):
			name = prop.get('name')
			value = _ax_value(prop.get('value'))
			if name in _BOOLEAN_STATES and isinstance(value, bool):
				states[name] = value
			elif name in _TRISTATE_STATES:
				states[name] = _tristate(value)

		value = _ax_value(node.get('value'))
		return [
			AccessibilityNode(
				role=str(_ax_value(node.get('role')) or 'generic'),
				name=_ax_value(node.get('name')) or None,
				value=str(value) if value not in (None, '') else None,
				description=_ax_value(node.get('description')) or None,
				children=children,
				**states,
			)
		]

	converted = convert(root)
	if len(converted) == 1:
		return converted[0]
	return AccessibilityNode(role='RootWebArea', children=converted)


async def capture_accessibility_tree(page: Page) -> AccessibilityNode | None:
	try:
		cdp_session = await page.context.new_cdp_session(page)
		try:
			result = await cdp_session.send('Accessibility.getFullAXTree')
		finally:
			await cdp_session.detach()
	except Exception as e:
		logger.debug(f'Accessibility tree unavailable for {page.url}: {type(e).__name__}: {e}')
		return None
	return build_accessibility_tree(result.get('nodes', []))


async def capture_screenshot(page: Page) -> Screenshot:
	data = await page.screenshot(type='png', full_page=False)
	viewport = page.viewport_size or {}
	return Screenshot(
		data=base64.b64encode(data).decode('ascii'),
		width=viewport.get('width', CONFIG.WEBMCP_EXTEND_VIEWPORT_WIDTH),
		height=viewport.get('height', CONFIG.WEBMCP_EXTEND_VIEWPORT_HEIGHT),
	)


async def capture_snapshot(page: Page, step_index: int = -1, include_screenshot: bool = True) -> PageSnapshot:
	"""Capture url, title, body markup, accessibility tree and optionally a screenshot."""
	title, body_html, accessibility_tree, screenshot = await asyncio.gather(
		page.title(),
		page.evaluate("() => document.body ? document.body.outerHTML : ''"),
		capture_accessibility_tree(page),
		capture_screenshot(page) if include_screenshot else asyncio.sleep(0, result=None),
	)
	return PageSnapshot(
		url=page.url,
		title=title,
		body_html=body_html or '',
		accessibility_tree=accessibility_tree,
		screenshot=screenshot,
		timestamp=time.time(),
		step_index=step_index,
	)


async def execute_scenario_step(page: Page, step: ScenarioStep) -> None:
	if step.action == 'navigate':
		if not step.url:
			raise BrowserError('Navigate step requires a url')
		await page.goto(step.url, wait_until='networkidle')
	elif step.action in ('click', 'fill', 'select', 'hover'):
		if not step.selector:
			raise BrowserError(f'{step.action.capitalize()} step requires a selector')
		if step.action == 'click':
			await page.click(step.selector)
		elif step.action == 'fill':
			await page.fill(step.selector, step.value or '')
		elif step.action == 'select':
			await page.select_option(step.selector, step.value or '')
		else:
			await page.hover(step.selector)
	elif step.action == 'wait':
		if step.selector:
			await page.wait_for_selector(step.selector)
		elif step.value and step.value.strip().isdigit():
			await page.wait_for_timeout(int(step.value))

	if step.wait_for == 'networkidle':
		await page.wait_for_load_state('networkidle')
	elif step.wait_for:
		await page.wait_for_selector(step.wait_for)


@time_execution_async('--crawl_site')
async def crawl_site(
	url: str,
	steps: Sequence[ScenarioStep] = (),
	options: CrawlOptions | None = None,
) -> list[PageSnapshot]:
	"""Load `url`, run each scenario step, and return one snapshot per stage (initial load first)."""
	options = options or CrawlOptions()
	headless = CONFIG.WEBMCP_EXTEND_HEADLESS if options.headless is None else options.headless
	viewport = {
		'width': options.viewport_width or CONFIG.WEBMCP_EXTEND_VIEWPORT_WIDTH,
		'height': options.viewport_height or CONFIG.WEBMCP_EXTEND_VIEWPORT_HEIGHT,
	}
	snapshots: list[PageSnapshot] = []

	async with async_playwright() as playwright:
		browser = await playwright.chromium.launch(headless=headless)
		try:
			context_kwargs: dict[str, Any] = {'viewport': viewport}
			if options.user_agent:
				context_kwargs['user_agent'] = options.user_agent
			context = await browser.new_context(**context_kwargs)
			page = await context.new_page()
			page.set_default_timeout(options.timeout_ms or CONFIG.WEBMCP_EXTEND_NAVIGATION_TIMEOUT_MS)

			logger.info(f'🚀 Crawling {url} with {len(steps)} scenario steps')
			await page.goto(url, wait_until='networkidle')
			snapshots.append(await capture_snapshot(page, -1, options.screenshots))

			for index, step in enumerate(steps):
				logger.debug(f'Scenario step {index}: {step.description or step.action}')
				await execute_scenario_step(page, step)
				snapshots.append(await capture_snapshot(page, index, options.screenshots))
		finally:
			await browser.close()

	logger.info(f'📸 Captured {len(snapshots)} snapshots from {url}')
	return snapshots
