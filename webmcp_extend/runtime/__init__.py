from webmcp_extend.runtime.registry import Tool, ToolRegistry, default_registry, define_tool
from webmcp_extend.runtime.scripts import (
	CALL_FUNCTION_SCRIPT,
	CHECK_SCRIPT,
	FILL_SCRIPT,
	READ_SCRIPT,
	RESOLVE_FUNCTION_SCRIPT,
	SELECT_SCRIPT,
	SUBMIT_SCRIPT,
)
from webmcp_extend.runtime.views import ElementNotFoundError, ToolAnnotations, ToolNotFoundError, ToolParams, ToolResult

__all__ = [
	'Tool',
	'ToolRegistry',
	'default_registry',
	'define_tool',
	'ToolResult',
	'ToolAnnotations',
	'ToolParams',
	'ElementNotFoundError',
	'ToolNotFoundError',
	'RESOLVE_FUNCTION_SCRIPT',
	'CALL_FUNCTION_SCRIPT',
	'FILL_SCRIPT',
	'SELECT_SCRIPT',
	'CHECK_SCRIPT',
	'SUBMIT_SCRIPT',
	'READ_SCRIPT',
]
