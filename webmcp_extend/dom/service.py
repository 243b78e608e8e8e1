import logging
from dataclasses import dataclass, field

from webmcp_extend.browser.views import AccessibilityNode, PageSnapshot
from webmcp_extend.dom.markup import LANDMARK_ROLES, MarkupElement, extract_from_html, refine_action_hint
from webmcp_extend.dom.views import ActionHint, DOMAnalysis, InteractiveElement, MergePriority, Region, RegionType
from webmcp_extend.utils import css_string, time_execution_sync

logger = logging.getLogger(__name__)

INTERACTIVE_ROLES = {
	'button',
	'link',
	'textbox',
	'checkbox',
	'radio',
	'combobox',
	'listbox',
	'menuitem',
	'menuitemcheckbox',
	'menuitemradio',
	'option',
	'searchbox',
	'slider',
	'spinbutton',
	'switch',
	'tab',
	'treeitem',
}

ROLE_TAGS = {
	'button': 'button',
	'link': 'a',
	'textbox': 'input',
	'checkbox': 'input',
	'radio': 'input',
	'combobox': 'select',
	'listbox': 'select',
	'searchbox': 'input',
	'slider': 'input',
	'spinbutton': 'input',
	'switch': 'input',
	'tab': 'button',
	'menuitem': 'button',
}

ROLE_ACTION_HINTS = {
	'button': ActionHint.TRIGGER,
	'link': ActionHint.NAVIGATION,
	'textbox': ActionHint.INPUT,
	'checkbox': ActionHint.TOGGLE,
	'radio': ActionHint.SELECTION,
	'combobox': ActionHint.SELECTION,
	'listbox': ActionHint.SELECTION,
	'searchbox': ActionHint.INPUT,
	'slider': ActionHint.INPUT,
	'spinbutton': ActionHint.INPUT,
	'switch': ActionHint.TOGGLE,
	'tab': ActionHint.NAVIGATION,
	'menuitem': ActionHint.TRIGGER,
}

LANDMARK_REGION_TYPES = {
	'banner': RegionType.HEADER,
	'navigation': RegionType.NAV,
	'main': RegionType.MAIN,
	'contentinfo': RegionType.FOOTER,
	'complementary': RegionType.SIDEBAR,
	'form': RegionType.FORM,
	'region': RegionType.SECTION,
	'dialog': RegionType.DIALOG,
	'alertdialog': RegionType.DIALOG,
}

LANDMARK_TAGS = {
	'banner': 'header',
	'navigation': 'nav',
	'main': 'main',
	'contentinfo': 'footer',
	'complementary': 'aside',
	'form': 'form',
	'dialog': 'dialog',
}

# Fields a tree element may borrow from its markup twin
_FILLABLE_FIELDS = (
	'type',
	'aria_label',
	'label',
	'text',
	'name',
	'id',
	'placeholder',
	'href',
	'form_action',
	'required',
	'options',
	'data_attributes',
	'role',
	'action_hint',
)

LandmarkKey = tuple[str, str | None]


@dataclass
class _TreeElement:
	element: InteractiveElement
	role: str
	name: str | None
	landmark: LandmarkKey | None


@dataclass
class _RegionBucket:
	region: Region
	elements: list[InteractiveElement] = field(default_factory=list)


def role_to_tag(role: str) -> str:
	return ROLE_TAGS.get(role, 'div')


def build_region_selector(role: str, label: str | None) -> str:
	tag = LANDMARK_TAGS.get(role, 'section')
	if label:
		return f'[role="{role}"][aria-label="{css_string(label)}"], {tag}'
	return f'[role="{role}"], {tag}'


def build_element_selector(role: str, name: str | None) -> str:
	tag = role_to_tag(role)
	if name:
		escaped = css_string(name)
		return f'{tag}[aria-label="{escaped}"], {tag}:has-text("{escaped}")'
	return f'{tag}[role="{role}"]'


def flatten_accessibility_tree(
	node: AccessibilityNode,
	landmark: LandmarkKey | None = None,
) -> list[_TreeElement]:
	"""Depth-first walk collecting interactive nodes with the landmark that encloses them."""
	elements: list[_TreeElement] = []

	if node.role in INTERACTIVE_ROLES:
		name = node.name or None
		hint = refine_action_hint(ROLE_ACTION_HINTS.get(node.role, ActionHint.TRIGGER), name)
		element = InteractiveElement(
			tag=role_to_tag(node.role),
			selector=build_element_selector(node.role, name),
			aria_label=name,
			text=name,
			role=node.role,
			action_hint=hint,
		)
		elements.append(_TreeElement(element=element, role=node.role, name=name, landmark=landmark))

	child_landmark = (node.role, node.name or None) if node.role in LANDMARK_ROLES else landmark
	for child in node.children:
		elements.extend(flatten_accessibility_tree(child, child_landmark))

	return elements


def _normalize_name(name: str | None) -> str | None:
	if not name:
		return None
	collapsed = ' '.join(name.split())
	return collapsed.casefold() or None


class DomExtractor:
	"""Turns a PageSnapshot into regions of interactive elements.

	Two passes feed the result: the accessibility tree (semantic, grouped by
	landmark) and the raw body markup (catches elements the tree misses).
	Elements both passes describe are merged into one entry.
	"""

	def __init__(self, merge_priority: MergePriority = MergePriority.TREE):
		self.merge_priority = merge_priority

	@time_execution_sync('--extract_dom')
	def extract(self, snapshot: PageSnapshot) -> DOMAnalysis:
		buckets: dict[LandmarkKey | None, _RegionBucket] = {}
		seen_selectors: set[str] = set()
		# (role, normalized name) -> tree elements waiting for a markup twin
		unpaired: dict[tuple[str, str], list[tuple[LandmarkKey | None, int]]] = {}

		if snapshot.accessibility_tree is not None:
			for tree_element in flatten_accessibility_tree(snapshot.accessibility_tree):
				if tree_element.element.selector in seen_selectors:
					continue
				seen_selectors.add(tree_element.element.selector)

				bucket = self._bucket_for(buckets, tree_element.landmark)
				bucket.elements.append(tree_element.element)

				name = _normalize_name(tree_element.name)
				if name:
					unpaired.setdefault((tree_element.role, name), []).append(
						(tree_element.landmark, len(bucket.elements) - 1)
					)

		markup_elements = extract_from_html(snapshot.body_html)
		merged = 0
		for markup in markup_elements:
			if markup.element.selector in seen_selectors:
				continue

			twin = self._pop_twin(unpaired, markup)
			if twin is not None:
				landmark, index = twin
				bucket = buckets[landmark]
				bucket.elements[index] = self._merge(bucket.elements[index], markup.element)
				seen_selectors.add(markup.element.selector)
				merged += 1
				continue

			key = markup.landmark if markup.landmark in buckets else None
			self._bucket_for(buckets, key).elements.append(markup.element)
			seen_selectors.add(markup.element.selector)

		regions = [
			bucket.region.model_copy(update={'interactive_elements': bucket.elements}) for bucket in buckets.values()
		]
		total = sum(len(region.interactive_elements) for region in regions)
		logger.debug(
			f'Extracted {total} interactive elements in {len(regions)} regions from {snapshot.url} '
			f'({len(markup_elements)} from markup, {merged} merged)'
		)
		return DOMAnalysis(url=snapshot.url, regions=regions, total_interactive_elements=total)

	@staticmethod
	def _bucket_for(buckets: dict[LandmarkKey | None, _RegionBucket], key: LandmarkKey | None) -> _RegionBucket:
		bucket = buckets.get(key)
		if bucket is not None:
			return bucket

		if key is None:
			region = Region(type=RegionType.UNKNOWN, selector='body')
		else:
			role, label = key
			region = Region(
				type=LANDMARK_REGION_TYPES.get(role, RegionType.UNKNOWN),
				selector=build_region_selector(role, label),
				label=label,
			)
		bucket = _RegionBucket(region=region)
		buckets[key] = bucket
		return bucket

	@staticmethod
	def _pop_twin(
		unpaired: dict[tuple[str, str], list[tuple[LandmarkKey | None, int]]],
		markup: MarkupElement,
	) -> tuple[LandmarkKey | None, int] | None:
		name = _normalize_name(markup.accessible_name)
		if not markup.role or not name:
			return None
		candidates = unpaired.get((markup.role, name))
		if not candidates:
			return None
		return candidates.pop(0)

	def _merge(self, tree_element: InteractiveElement, markup_element: InteractiveElement) -> InteractiveElement:
		if self.merge_priority == MergePriority.MARKUP:
			return markup_element

		updates = {}
		for name in _FILLABLE_FIELDS:
			if getattr(tree_element, name) is None and getattr(markup_element, name) is not None:
				updates[name] = getattr(markup_element, name)
		# markup knows submit buttons and destructive labels better than the role map does
		if markup_element.action_hint in (ActionHint.SUBMISSION, ActionHint.DESTRUCTIVE):
			updates['action_hint'] = markup_element.action_hint
		return tree_element.model_copy(update=updates) if updates else tree_element


def extract_dom(snapshot: PageSnapshot, merge_priority: MergePriority = MergePriority.TREE) -> DOMAnalysis:
	"""Extract interactive elements from a snapshot, grouped by semantic region."""
	return DomExtractor(merge_priority=merge_priority).extract(snapshot)
