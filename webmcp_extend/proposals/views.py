from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from webmcp_extend.browser.views import PageSnapshot
from webmcp_extend.dom.views import DOMAnalysis
from webmcp_extend.js.views import JSAnalysis
from webmcp_extend.views import WireModel

ActionType = Literal['js-call', 'dom-action']
ReturnType = Literal['void', 'string', 'object', 'array', 'boolean', 'number']
DOMStepAction = Literal['click', 'fill', 'select', 'check', 'submit', 'scroll', 'read']


class ToolInputProperty(WireModel):
	"""One property of a tool's JSON-Schema-like input"""

	type: Literal['string', 'number', 'integer', 'boolean', 'array', 'object']
	description: str = ''
	enum: list[str] | None = None
	default: Any = None
	minimum: float | None = None
	maximum: float | None = None
	items: 'ToolInputProperty | None' = None


class ToolInputSchema(WireModel):
	type: Literal['object'] = 'object'
	properties: dict[str, ToolInputProperty] = Field(default_factory=dict)
	required: list[str] = Field(default_factory=list)


class JSCallAction(WireModel):
	"""Call a page-global function; arg_mapping lists schema properties in positional order"""

	function_path: str
	arg_mapping: list[str] = Field(default_factory=list)
	return_type: ReturnType | None = None


class DOMActionStep(WireModel):
	action: DOMStepAction
	selector: str
	input_property: str | None = None
	static_value: str | None = None
	delay: int | None = Field(default=None, ge=0, description='Milliseconds to wait after the step')
	read_attribute: str | None = None  # textContent, value, innerHTML, outerHTML or any attribute name
	description: str | None = None


class DOMAction(WireModel):
	steps: list[DOMActionStep]


ACTION_DETAIL_MODELS: dict[str, type[BaseModel]] = {
	'js-call': JSCallAction,
	'dom-action': DOMAction,
}


class ToolProposalAnnotations(WireModel):
	read_only_hint: bool | None = None
	destructive_hint: bool | None = None
	confirmation_hint: bool | None = None
	open_world_hint: bool | None = None


class ToolProposal(WireModel):
	"""The contract between tool synthesis and code generation.

	`action_type` selects the shape of `action_details`: a JSCallAction for
	'js-call' and a DOMAction for 'dom-action'. A payload whose details do not
	fit its declared type fails validation.
	"""

	name: str = Field(min_length=1)
	description: str
	input_schema: ToolInputSchema = Field(default_factory=ToolInputSchema)
	action_type: ActionType
	action_details: JSCallAction | DOMAction
	annotations: ToolProposalAnnotations | None = None
	url_pattern: str | None = None

	@field_validator('action_details', mode='before')
	@classmethod
	def validate_details_for_action_type(cls, value: Any, info: ValidationInfo) -> Any:
		model = ACTION_DETAIL_MODELS.get(info.data.get('action_type', ''))
		if model is None or isinstance(value, BaseModel):
			return value
		return model.model_validate(value)

	@model_validator(mode='after')
	def check_details_match_action_type(self) -> 'ToolProposal':
		expected = ACTION_DETAIL_MODELS[self.action_type]
		if not isinstance(self.action_details, expected):
			raise ValueError(f'action_type {self.action_type!r} requires {expected.__name__} details')
		return self


class SiteAnalysis(WireModel):
	"""Everything one scan produced, plus the prompt rendered from it"""

	target_url: str
	scenario: str | None = None
	snapshots: list[PageSnapshot] = Field(default_factory=list)
	dom_analyses: list[DOMAnalysis] = Field(default_factory=list)
	js_analyses: list[JSAnalysis] = Field(default_factory=list)
	proposal_prompt: str = ''
	timestamp: float


class ProposalParseError(Exception):
	"""Base class for errors decoding an agent's proposal reply"""


class ProposalDecodeError(ProposalParseError):
	"""The reply payload is not valid JSON"""


class ProposalShapeError(ProposalParseError):
	"""The decoded value is not a list of proposals, or one of them is invalid"""
