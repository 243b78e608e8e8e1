from enum import Enum

from pydantic import ConfigDict, Field

from webmcp_extend.views import WireModel


class RegionType(str, Enum):
	NAV = 'nav'
	MAIN = 'main'
	SIDEBAR = 'sidebar'
	FORM = 'form'
	DIALOG = 'dialog'
	FOOTER = 'footer'
	HEADER = 'header'
	SECTION = 'section'
	UNKNOWN = 'unknown'


class ActionHint(str, Enum):
	NAVIGATION = 'navigation'
	SUBMISSION = 'submission'
	TOGGLE = 'toggle'
	INPUT = 'input'
	SELECTION = 'selection'
	TRIGGER = 'trigger'
	DESTRUCTIVE = 'destructive'


class MergePriority(str, Enum):
	"""Which extraction pass wins when both describe the same element"""

	TREE = 'tree'
	MARKUP = 'markup'


class SelectOption(WireModel):
	value: str
	text: str


class InteractiveElement(WireModel):
	"""An interactive DOM element that could become a tool action.

	`selector` is the load-bearing field: every element in a DOMAnalysis carries
	a locator that re-selects it. Instances are never mutated after creation.
	"""

	model_config = ConfigDict(frozen=True)

	tag: str
	type: str | None = None
	selector: str
	aria_label: str | None = None
	label: str | None = None
	text: str | None = None
	name: str | None = None
	id: str | None = None
	placeholder: str | None = None
	href: str | None = None
	form_action: str | None = None
	required: bool | None = None
	options: list[SelectOption] | None = None
	data_attributes: dict[str, str] | None = None
	role: str | None = None
	action_hint: ActionHint | None = None


class Region(WireModel):
	"""A semantic area of the page and the interactive elements inside it"""

	type: RegionType
	selector: str
	label: str | None = None
	interactive_elements: list[InteractiveElement] = Field(default_factory=list)


class DOMAnalysis(WireModel):
	url: str
	regions: list[Region] = Field(default_factory=list)
	total_interactive_elements: int = 0
