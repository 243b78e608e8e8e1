from collections.abc import Sequence

from webmcp_extend.proposals.views import DOMAction, DOMActionStep, ToolInputProperty, ToolInputSchema, ToolProposal
from webmcp_extend.session.views import SessionTool

SESSION_TOOL_DESCRIPTION = 'Tool discovered during interactive session'
_SCHEMA_TYPES = ('string', 'number', 'integer', 'boolean', 'array', 'object')


def convert_session_tools_to_proposals(tools: Sequence[SessionTool]) -> list[ToolProposal]:
	"""Turn recorded session tools into dom-action proposals ready for code generation.

	Hover steps are dropped because DOM action steps have no hover. The first
	recorded page URL becomes the proposal's URL pattern.
	"""
	proposals = []
	for tool in tools:
		steps = [
			DOMActionStep(
				action=step.action,
				selector=step.selector,
				input_property=step.input_property,
				static_value=step.static_value,
				delay=step.delay,
			)
			for step in tool.steps
			if step.action != 'hover'
		]
		properties = {
			name: ToolInputProperty(type=prop.type if prop.type in _SCHEMA_TYPES else 'string', description=prop.description)
			for name, prop in tool.input_schema.properties.items()
		}
		proposals.append(
			ToolProposal(
				name=tool.name,
				description=SESSION_TOOL_DESCRIPTION,
				input_schema=ToolInputSchema(properties=properties, required=list(tool.input_schema.required)),
				action_type='dom-action',
				action_details=DOMAction(steps=steps),
				url_pattern=tool.url_patterns[0] if tool.url_patterns else None,
			)
		)
	return proposals
