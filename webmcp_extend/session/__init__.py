from webmcp_extend.session.convert import convert_session_tools_to_proposals
from webmcp_extend.session.driver import PlaywrightSessionDriver, RecorderPage, SessionDriver
from webmcp_extend.session.service import SessionRecorder, group_actions_into_tools, infer_property_name
from webmcp_extend.session.views import (
	ActionLogEntry,
	BrowserHandle,
	SessionAction,
	SessionState,
	SessionStepOptions,
	SessionTool,
	SessionToolStep,
	ViewportSize,
)

__all__ = [
	'ActionLogEntry',
	'BrowserHandle',
	'PlaywrightSessionDriver',
	'RecorderPage',
	'SessionAction',
	'SessionDriver',
	'SessionRecorder',
	'SessionState',
	'SessionStepOptions',
	'SessionTool',
	'SessionToolStep',
	'ViewportSize',
	'convert_session_tools_to_proposals',
	'group_actions_into_tools',
	'infer_property_name',
]
