"""Configuration for webmcp-extend, read from the environment (and .env) on access."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
	value = os.getenv(name)
	if value is None or value == '':
		return default
	return value.strip().lower()[:1] in ('t', 'y', '1')


def _env_int(name: str, default: int) -> int:
	value = os.getenv(name)
	if not value:
		return default
	try:
		return int(value)
	except ValueError:
		return default


class Config:
	"""Lazily evaluated settings. Every property re-reads its variable so tests can monkeypatch os.environ."""

	@property
	def WEBMCP_EXTEND_LOGGING_LEVEL(self) -> str:
		return os.getenv('WEBMCP_EXTEND_LOGGING_LEVEL', 'info').lower()

	@property
	def WEBMCP_EXTEND_SETUP_LOGGING(self) -> bool:
		return _env_bool('WEBMCP_EXTEND_SETUP_LOGGING', True)

	@property
	def WEBMCP_EXTEND_HEADLESS(self) -> bool:
		return _env_bool('WEBMCP_EXTEND_HEADLESS', True)

	@property
	def WEBMCP_EXTEND_VIEWPORT_WIDTH(self) -> int:
		return _env_int('WEBMCP_EXTEND_VIEWPORT_WIDTH', 1280)

	@property
	def WEBMCP_EXTEND_VIEWPORT_HEIGHT(self) -> int:
		return _env_int('WEBMCP_EXTEND_VIEWPORT_HEIGHT', 720)

	@property
	def WEBMCP_EXTEND_NAVIGATION_TIMEOUT_MS(self) -> int:
		return _env_int('WEBMCP_EXTEND_NAVIGATION_TIMEOUT_MS', 30_000)

	@property
	def WEBMCP_EXTEND_BROWSER_STARTUP_TIMEOUT(self) -> int:
		return _env_int('WEBMCP_EXTEND_BROWSER_STARTUP_TIMEOUT', 15)

	@property
	def WEBMCP_EXTEND_SESSION_DIR(self) -> Path:
		return Path(os.getenv('WEBMCP_EXTEND_SESSION_DIR', './session')).expanduser()


CONFIG = Config()
