"""
Browser process management for interactive sessions.

A session outlives any single start/step/close invocation, so the browser runs
as its own detached process with the DevTools protocol on a local port. Each
invocation reconnects through that port, does its work, and disconnects.
"""

import asyncio
import logging
import socket
import subprocess
import time
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from pathlib import Path
from typing import Any, Protocol

import httpx
import psutil
from playwright.async_api import async_playwright

from webmcp_extend.browser.views import SessionError
from webmcp_extend.config import CONFIG
from webmcp_extend.session.views import BrowserHandle, ViewportSize

logger = logging.getLogger(__name__)


class RecorderLocator(Protocol):
	async def scroll_into_view_if_needed(self) -> None: ...


class RecorderPage(Protocol):
	"""The page operations the recorder performs. A Playwright Page satisfies it."""

	@property
	def url(self) -> str: ...

	async def goto(self, url: str, wait_until: Any = None, timeout: float | None = None) -> Any: ...

	async def click(self, selector: str) -> None: ...

	async def fill(self, selector: str, value: str) -> None: ...

	async def select_option(self, selector: str, value: str) -> Any: ...

	async def hover(self, selector: str) -> None: ...

	def locator(self, selector: str) -> RecorderLocator: ...

	async def evaluate(self, expression: str, arg: Any = None) -> Any: ...

	async def wait_for_selector(self, selector: str) -> Any: ...

	async def wait_for_timeout(self, timeout: float) -> None: ...

	async def screenshot(self, type: str = 'png', full_page: bool = False) -> bytes: ...


class SessionDriver(Protocol):
	async def launch(self, headless: bool, viewport: ViewportSize, user_data_dir: Path) -> BrowserHandle: ...

	def connect(self, cdp_url: str) -> AbstractAsyncContextManager[RecorderPage]: ...

	async def terminate(self, handle: BrowserHandle) -> None: ...


def _find_free_port() -> int:
	with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
		sock.bind(('127.0.0.1', 0))
		return sock.getsockname()[1]


def kill_process(pid: int | None, timeout: float = 5.0) -> bool:
	"""Terminate the browser process tree. Returns False if the process was already gone."""
	if pid is None:
		return False
	try:
		process = psutil.Process(pid)
		children = process.children(recursive=True)
	except psutil.NoSuchProcess:
		return False

	for proc in [process, *children]:
		try:
			proc.terminate()
		except psutil.NoSuchProcess:
			pass
	_, alive = psutil.wait_procs([process, *children], timeout=timeout)
	for proc in alive:
		try:
			proc.kill()
		except psutil.NoSuchProcess:
			pass
	return True


class PlaywrightSessionDriver:
	"""Runs Playwright's bundled Chromium as a detached process and talks to it over CDP"""

	def __init__(self, startup_timeout: float | None = None):
		self.startup_timeout = startup_timeout or CONFIG.WEBMCP_EXTEND_BROWSER_STARTUP_TIMEOUT

	async def launch(self, headless: bool, viewport: ViewportSize, user_data_dir: Path) -> BrowserHandle:
		playwright = await async_playwright().start()
		try:
			executable = playwright.chromium.executable_path
		finally:
			await playwright.stop()

		port = _find_free_port()
		args = [
			executable,
			f'--remote-debugging-port={port}',
			f'--user-data-dir={user_data_dir}',
			f'--window-size={viewport.width},{viewport.height}',
			'--no-first-run',
			'--no-default-browser-check',
			'--disable-background-networking',
		]
		if headless:
			args.append('--headless=new')
		args.append('about:blank')

		try:
			process = subprocess.Popen(
				args,
				stdout=subprocess.DEVNULL,
				stderr=subprocess.DEVNULL,
				start_new_session=True,
			)
		except OSError as e:
			raise SessionError(f'Could not start browser at {executable}', {'error': str(e)}) from e

		cdp_url = f'http://127.0.0.1:{port}'
		try:
			await self._wait_for_devtools(cdp_url, process)
		except Exception:
			kill_process(process.pid)
			raise

		logger.info(f'🚀 Browser started (pid {process.pid}) with DevTools at {cdp_url}')
		return BrowserHandle(cdp_url=cdp_url, pid=process.pid)

	async def _wait_for_devtools(self, cdp_url: str, process: subprocess.Popen) -> None:
		deadline = time.monotonic() + self.startup_timeout
		async with httpx.AsyncClient() as client:
			while True:
				if process.poll() is not None:
					raise SessionError('Browser exited during startup', {'returncode': process.returncode})
				try:
					response = await client.get(f'{cdp_url}/json/version', timeout=1.0)
					if response.status_code == 200 and response.json().get('webSocketDebuggerUrl'):
						return
				except httpx.HTTPError:
					# not listening yet
					pass
				if time.monotonic() > deadline:
					raise SessionError(f'Browser DevTools did not come up within {self.startup_timeout}s', {'cdp_url': cdp_url})
				await asyncio.sleep(0.1)

	@asynccontextmanager
	async def connect(self, cdp_url: str) -> AsyncIterator[RecorderPage]:
		playwright = await async_playwright().start()
		try:
			try:
				browser = await playwright.chromium.connect_over_cdp(cdp_url)
			except Exception as e:
				raise SessionError(f'Could not reconnect to the session browser at {cdp_url}', {'error': str(e)}) from e

			try:
				context = browser.contexts[0] if browser.contexts else await browser.new_context()
				page = context.pages[0] if context.pages else await context.new_page()
				page.set_default_navigation_timeout(CONFIG.WEBMCP_EXTEND_NAVIGATION_TIMEOUT_MS)
				yield page
			finally:
				# closing a CDP-attached browser only disconnects; the process keeps running
				await browser.close()
		finally:
			await playwright.stop()

	async def terminate(self, handle: BrowserHandle) -> None:
		try:
			playwright = await async_playwright().start()
			try:
				browser = await playwright.chromium.connect_over_cdp(handle.cdp_url)
				cdp_session = await browser.new_browser_cdp_session()
				await cdp_session.send('Browser.close')
			finally:
				await playwright.stop()
		except Exception as e:
			logger.debug(f'CDP shutdown of {handle.cdp_url} failed, browser may already be closed: {type(e).__name__}: {e}')

		if handle.pid is not None and psutil.pid_exists(handle.pid):
			if kill_process(handle.pid):
				logger.debug(f'Killed browser process {handle.pid}')
