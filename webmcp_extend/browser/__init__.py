from webmcp_extend.browser.types import ElementHandleLike, EvaluatablePage, QueryablePage
from webmcp_extend.browser.views import (
	AccessibilityNode,
	BrowserError,
	PageSnapshot,
	ScenarioStep,
	Screenshot,
	SessionError,
)

__all__ = [
	'AccessibilityNode',
	'BrowserError',
	'ElementHandleLike',
	'EvaluatablePage',
	'PageSnapshot',
	'QueryablePage',
	'ScenarioStep',
	'Screenshot',
	'SessionError',
]
