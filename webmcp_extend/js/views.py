from typing import Annotated, Literal

from pydantic import Field

from webmcp_extend.views import WireModel


class FunctionGlobal(WireModel):
	"""A callable on window, with parameter names read from its source text"""

	kind: Literal['function'] = 'function'
	path: str
	params: list[str] | None = None


class ObjectGlobal(WireModel):
	"""A plain object on window exposing at least one callable member"""

	kind: Literal['object'] = 'object'
	path: str
	methods: list[str] = Field(min_length=1)


GlobalEntry = Annotated[FunctionGlobal | ObjectGlobal, Field(discriminator='kind')]


class DataLayerEntry(WireModel):
	path: str
	framework: Literal['gtm', 'next', 'nuxt', 'redux', 'custom']
	keys: list[str] = Field(default_factory=list)
	shape: Literal['array', 'object']


class EventHandlerEntry(WireModel):
	selector: str
	event: str
	handler_code: str
	element_text: str | None = None


class ExposedMethod(WireModel):
	name: str
	params: list[str] | None = None


class ExposedAPIEntry(WireModel):
	path: str
	methods: list[ExposedMethod] = Field(default_factory=list)


class JSAnalysis(WireModel):
	"""Best-effort catalog of what a page exposes to scripts. False positives are fine; omissions are not."""

	url: str
	globals: list[GlobalEntry] = Field(default_factory=list)
	data_layers: list[DataLayerEntry] = Field(default_factory=list)
	event_handlers: list[EventHandlerEntry] = Field(default_factory=list)
	exposed_apis: list[ExposedAPIEntry] = Field(default_factory=list, alias='exposedAPIs')
