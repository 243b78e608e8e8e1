import logging
from collections.abc import Awaitable, Callable
from fnmatch import fnmatchcase
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from webmcp_extend.runtime.views import ToolAnnotations, ToolNotFoundError, ToolResult

logger = logging.getLogger(__name__)

ExecuteFunc = Callable[[Any, Any], Awaitable[ToolResult]]


class Tool(BaseModel):
	"""A loadable tool: metadata, a parameter model, and the coroutine that runs it against a page"""

	model_config = ConfigDict(arbitrary_types_allowed=True)

	name: str
	description: str
	param_model: type[BaseModel]
	execute: ExecuteFunc
	annotations: ToolAnnotations | None = None
	url_pattern: str | None = None

	def input_schema(self) -> dict[str, Any]:
		return self.param_model.model_json_schema(by_alias=True)

	def applies_to(self, url: str) -> bool:
		if not self.url_pattern:
			return True
		return fnmatchcase(url, self.url_pattern)

	def register(self, registry: 'ToolRegistry | None' = None) -> 'Tool':
		(registry or default_registry).register(self)
		return self


class ToolRegistry:
	"""Holds tools by name and dispatches validated calls to them"""

	def __init__(self):
		self.tools: dict[str, Tool] = {}

	def register(self, tool: Tool) -> None:
		if tool.name in self.tools:
			logger.debug(f'Replacing registered tool {tool.name}')
		self.tools[tool.name] = tool

	def unregister(self, name: str) -> None:
		self.tools.pop(name, None)

	def get(self, name: str) -> Tool | None:
		return self.tools.get(name)

	def names(self) -> list[str]:
		return list(self.tools)

	def tools_for_url(self, url: str) -> list[Tool]:
		return [tool for tool in self.tools.values() if tool.applies_to(url)]

	async def call(self, name: str, raw_params: dict[str, Any] | None, page: Any) -> ToolResult:
		"""Validate `raw_params` against the tool's model and run it on `page`.

		Raises ToolNotFoundError for an unknown name and ValueError for invalid
		parameters. Failures inside the tool come back as error results.
		"""
		tool = self.get(name)
		if tool is None:
			raise ToolNotFoundError(name)

		try:
			params = tool.param_model.model_validate(raw_params or {})
		except ValidationError as e:
			raise ValueError(f'Invalid parameters for tool {name}: {e}') from e

		logger.debug(f'Calling tool {name} with {params.model_dump(exclude_none=True)}')
		result = await tool.execute(params, page)
		if result.is_error:
			logger.warning(f'⚠️ Tool {name} returned an error: {result.text}')
		return result

	def clear(self) -> None:
		self.tools.clear()


default_registry = ToolRegistry()


def define_tool(
	name: str,
	description: str,
	param_model: type[BaseModel],
	execute: ExecuteFunc,
	annotations: ToolAnnotations | None = None,
	url_pattern: str | None = None,
) -> Tool:
	return Tool(
		name=name,
		description=description,
		param_model=param_model,
		execute=execute,
		annotations=annotations,
		url_pattern=url_pattern,
	)
