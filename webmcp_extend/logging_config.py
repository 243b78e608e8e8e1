import logging
import sys

from webmcp_extend.config import CONFIG

_LEVELS = {
	'debug': logging.DEBUG,
	'info': logging.INFO,
	'warning': logging.WARNING,
	'error': logging.ERROR,
}


def setup_logging(level: str | None = None) -> logging.Logger:
	"""Attach a single stream handler to the `webmcp_extend` logger. Safe to call more than once."""
	log_level = _LEVELS.get((level or CONFIG.WEBMCP_EXTEND_LOGGING_LEVEL).lower(), logging.INFO)

	package_logger = logging.getLogger('webmcp_extend')
	package_logger.setLevel(log_level)
	package_logger.propagate = False

	if not any(getattr(handler, '_webmcp_extend', False) for handler in package_logger.handlers):
		handler = logging.StreamHandler(sys.stderr)
		handler.setFormatter(logging.Formatter('%(levelname)-8s [%(name)s] %(message)s'))
		handler._webmcp_extend = True  # type: ignore[attr-defined]
		package_logger.addHandler(handler)

	for handler in package_logger.handlers:
		handler.setLevel(log_level)

	# third-party loggers are noisy at INFO
	for third_party in ('httpx', 'httpcore', 'asyncio'):
		logging.getLogger(third_party).setLevel(logging.WARNING)

	return package_logger
