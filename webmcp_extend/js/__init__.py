from webmcp_extend.js.service import extract_js
from webmcp_extend.js.views import (
	DataLayerEntry,
	EventHandlerEntry,
	ExposedAPIEntry,
	ExposedMethod,
	FunctionGlobal,
	GlobalEntry,
	JSAnalysis,
	ObjectGlobal,
)

__all__ = [
	'DataLayerEntry',
	'EventHandlerEntry',
	'ExposedAPIEntry',
	'ExposedMethod',
	'FunctionGlobal',
	'GlobalEntry',
	'JSAnalysis',
	'ObjectGlobal',
	'extract_js',
]
