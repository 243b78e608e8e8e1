from webmcp_extend.dom.service import DomExtractor, extract_dom
from webmcp_extend.dom.views import ActionHint, DOMAnalysis, InteractiveElement, MergePriority, Region, RegionType, SelectOption

__all__ = [
	'ActionHint',
	'DOMAnalysis',
	'DomExtractor',
	'InteractiveElement',
	'MergePriority',
	'Region',
	'RegionType',
	'SelectOption',
	'extract_dom',
]
