import asyncio
import logging
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from webmcp_extend.browser.types import EvaluatablePage
from webmcp_extend.js.scripts import (
	EVENT_HANDLER_ATTRIBUTES,
	EXPOSED_API_NAMES,
	EXTRACT_DATA_LAYERS_SCRIPT,
	EXTRACT_EVENT_HANDLERS_SCRIPT,
	EXTRACT_EXPOSED_APIS_SCRIPT,
	EXTRACT_GLOBALS_SCRIPT,
	GLOBAL_DENY_LIST,
	MAX_ELEMENT_TEXT,
	MAX_EVENT_HANDLERS,
	MAX_GLOBALS,
	MAX_HANDLER_CODE,
	MAX_METHODS,
	MAX_SOURCE_PREFIX,
)
from webmcp_extend.js.views import DataLayerEntry, EventHandlerEntry, ExposedAPIEntry, GlobalEntry, JSAnalysis
from webmcp_extend.utils import time_execution_async

logger = logging.getLogger(__name__)

_global_entry_adapter: TypeAdapter[Any] = TypeAdapter(GlobalEntry)


def _validate_rows(rows: Any, validate, scan: str) -> list:
	"""Validate each raw row on its own; rows that do not fit the model are skipped."""
	if not isinstance(rows, list):
		if rows is not None:
			logger.debug(f'{scan} scan returned {type(rows).__name__}, expected a list')
		return []

	entries = []
	for index, row in enumerate(rows):
		try:
			entries.append(validate(row))
		except ValidationError as e:
			logger.debug(f'Skipping {scan} row {index}: {e.error_count()} validation error(s)')
	return entries


def _model_validator(model: type[BaseModel]):
	return model.model_validate


async def _run_scan(page: EvaluatablePage, scan: str, script: str, arg: Any = None) -> Any:
	try:
		if arg is None:
			return await page.evaluate(script)
		return await page.evaluate(script, arg)
	except Exception as e:
		logger.warning(f'⚠️ {scan} scan failed on {_page_url(page)}: {type(e).__name__}: {e}')
		return None


def _page_url(page: EvaluatablePage) -> str:
	try:
		url = page.url
	except Exception:
		return ''
	# some page wrappers expose url() as a method
	if callable(url):
		url = url()
	return url if isinstance(url, str) else ''


async def extract_globals(page: EvaluatablePage) -> list[GlobalEntry]:
	rows = await _run_scan(
		page,
		'globals',
		EXTRACT_GLOBALS_SCRIPT,
		{
			'denyList': list(GLOBAL_DENY_LIST),
			'maxGlobals': MAX_GLOBALS,
			'maxMethods': MAX_METHODS,
			'maxSource': MAX_SOURCE_PREFIX,
		},
	)
	return _validate_rows(rows, _global_entry_adapter.validate_python, 'globals')[:MAX_GLOBALS]


async def extract_data_layers(page: EvaluatablePage) -> list[DataLayerEntry]:
	rows = await _run_scan(page, 'data layer', EXTRACT_DATA_LAYERS_SCRIPT)
	return _validate_rows(rows, _model_validator(DataLayerEntry), 'data layer')


async def extract_event_handlers(page: EvaluatablePage) -> list[EventHandlerEntry]:
	rows = await _run_scan(
		page,
		'event handler',
		EXTRACT_EVENT_HANDLERS_SCRIPT,
		{
			'attributes': list(EVENT_HANDLER_ATTRIBUTES),
			'maxEntries': MAX_EVENT_HANDLERS,
			'maxCode': MAX_HANDLER_CODE,
			'maxText': MAX_ELEMENT_TEXT,
		},
	)
	return _validate_rows(rows, _model_validator(EventHandlerEntry), 'event handler')[:MAX_EVENT_HANDLERS]


async def extract_exposed_apis(page: EvaluatablePage) -> list[ExposedAPIEntry]:
	rows = await _run_scan(
		page,
		'exposed API',
		EXTRACT_EXPOSED_APIS_SCRIPT,
		{'names': list(EXPOSED_API_NAMES), 'maxMethods': MAX_METHODS, 'maxSource': MAX_SOURCE_PREFIX},
	)
	entries = _validate_rows(rows, _model_validator(ExposedAPIEntry), 'exposed API')
	return [entry.model_copy(update={'methods': entry.methods[:MAX_METHODS]}) for entry in entries if entry.methods]


@time_execution_async('--extract_js')
async def extract_js(page: EvaluatablePage) -> JSAnalysis:
	"""Catalog the globals, data layers, inline handlers and API objects a live page exposes.

	The four scans run concurrently and independently: a scan that fails
	contributes an empty list and never affects the others.
	"""
	url = _page_url(page)
	globals_, data_layers, event_handlers, exposed_apis = await asyncio.gather(
		extract_globals(page),
		extract_data_layers(page),
		extract_event_handlers(page),
		extract_exposed_apis(page),
	)

	logger.debug(
		f'JS surface of {url}: {len(globals_)} globals, {len(data_layers)} data layers, '
		f'{len(event_handlers)} handlers, {len(exposed_apis)} APIs'
	)
	return JSAnalysis(
		url=url,
		globals=globals_,
		data_layers=data_layers,
		event_handlers=event_handlers,
		exposed_apis=exposed_apis,
	)
