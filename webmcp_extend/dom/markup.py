"""
Markup pass of the DOM extractor.

Scans the raw body HTML for elements the accessibility tree tends to miss
(inline handlers, links without roles, unnamed inputs) and turns each one into
an InteractiveElement with a locator built from its most stable attribute.
"""

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from webmcp_extend.dom.views import ActionHint, InteractiveElement, SelectOption
from webmcp_extend.utils import css_string

logger = logging.getLogger(__name__)

INLINE_HANDLER_ATTRIBUTES = (
	'onclick',
	'onsubmit',
	'onchange',
	'oninput',
	'onfocus',
	'onblur',
	'onkeydown',
	'onkeyup',
)

MAX_TEXT_SELECTOR_LENGTH = 50

# Implicit ARIA roles for the landmark elements we group by
LANDMARK_TAG_ROLES = {
	'header': 'banner',
	'nav': 'navigation',
	'main': 'main',
	'footer': 'contentinfo',
	'aside': 'complementary',
	'form': 'form',
	'dialog': 'dialog',
	'section': 'region',
}

LANDMARK_ROLES = {
	'banner',
	'navigation',
	'main',
	'contentinfo',
	'complementary',
	'form',
	'region',
	'dialog',
	'alertdialog',
}

INPUT_TYPE_ROLES = {
	'checkbox': 'checkbox',
	'radio': 'radio',
	'submit': 'button',
	'button': 'button',
	'reset': 'button',
	'image': 'button',
	'range': 'slider',
	'number': 'spinbutton',
	'search': 'searchbox',
	'text': 'textbox',
	'email': 'textbox',
	'tel': 'textbox',
	'url': 'textbox',
	'password': 'textbox',
}

_DESTRUCTIVE_WORDS = re.compile(r'\b(delete|remove|discard|clear)\b', re.IGNORECASE)


@dataclass(frozen=True)
class MarkupElement:
	"""An element found in markup, plus what the merge step needs to pair it with the tree pass"""

	element: InteractiveElement
	role: str | None
	accessible_name: str | None
	landmark: tuple[str, str | None] | None


def refine_action_hint(hint: ActionHint, name: str | None) -> ActionHint:
	"""Triggers whose label reads as delete/remove/discard/clear are destructive."""
	if hint == ActionHint.TRIGGER and name and _DESTRUCTIVE_WORDS.search(name):
		return ActionHint.DESTRUCTIVE
	return hint


def infer_tag_action_hint(tag: str, type_: str | None, role: str | None = None) -> ActionHint:
	if role in ('switch', 'checkbox'):
		return ActionHint.TOGGLE
	if tag == 'a':
		return ActionHint.NAVIGATION
	if tag == 'button':
		return ActionHint.SUBMISSION if type_ == 'submit' else ActionHint.TRIGGER
	if tag == 'input':
		if type_ in ('checkbox', 'radio'):
			return ActionHint.TOGGLE
		if type_ == 'submit':
			return ActionHint.SUBMISSION
		if type_ in ('button', 'reset', 'image'):
			return ActionHint.TRIGGER
		return ActionHint.INPUT
	if tag == 'select' or role in ('listbox', 'combobox'):
		return ActionHint.SELECTION
	if tag == 'textarea':
		return ActionHint.INPUT
	return ActionHint.TRIGGER


def extract_from_html(body_html: str) -> list[MarkupElement]:
	"""Return every locatable interactive element in document order. Never raises on bad markup."""
	if not body_html or not body_html.strip():
		return []

	try:
		soup = BeautifulSoup(body_html, 'html.parser')
	except Exception as e:
		logger.debug(f'Could not parse body markup: {e}')
		return []

	label_for: dict[str, str] = {}
	for label in soup.find_all('label'):
		target = label.get('for')
		text = _collapse(label.get_text(' ', strip=True))
		if isinstance(target, str) and target and text:
			label_for.setdefault(target, text)

	elements: list[MarkupElement] = []
	for tag in soup.find_all(True):
		if not _is_candidate(tag):
			continue
		try:
			element = _parse_element(tag, label_for)
		except Exception as e:
			# one odd element never costs the rest of the pass
			logger.debug(f'Skipping <{tag.name}> during markup extraction: {e}')
			continue
		if element is not None:
			elements.append(element)

	return elements


def _is_candidate(tag: Tag) -> bool:
	name = tag.name
	if name == 'button' or name == 'select' or name == 'textarea':
		return True
	if name == 'input':
		return _attr(tag, 'type', '').lower() != 'hidden'
	if name == 'a':
		if tag.has_attr('onclick'):
			return True
		href = _attr(tag, 'href')
		return href is not None and not href.startswith('#') and not href.startswith('javascript:void')
	return any(tag.has_attr(handler) for handler in INLINE_HANDLER_ATTRIBUTES)


def _parse_element(tag: Tag, label_for: dict[str, str]) -> MarkupElement | None:
	tag_name = tag.name
	element_id = _attr(tag, 'id')
	name = _attr(tag, 'name')
	type_ = _attr(tag, 'type')
	type_ = type_.lower() if type_ else None
	aria_label = _attr(tag, 'aria-label')
	placeholder = _attr(tag, 'placeholder')
	explicit_role = _attr(tag, 'role')

	text: str | None = None
	if tag_name not in ('input', 'select', 'textarea'):
		text = _collapse(tag.get_text(' ', strip=True)) or None

	if element_id:
		selector = f'#{element_id}'
	elif name:
		selector = f'{tag_name}[name="{css_string(name)}"]'
	elif aria_label:
		selector = f'{tag_name}[aria-label="{css_string(aria_label)}"]'
	elif placeholder:
		selector = f'{tag_name}[placeholder="{css_string(placeholder)}"]'
	elif text:
		selector = f'{tag_name}:has-text("{css_string(text[:MAX_TEXT_SELECTOR_LENGTH])}")'
	else:
		# nothing stable to re-target this element with
		return None

	label = None
	if element_id and element_id in label_for:
		label = label_for[element_id]
	else:
		wrapping = tag.find_parent('label')
		if wrapping is not None:
			label = _collapse(wrapping.get_text(' ', strip=True)) or None

	data_attributes = {
		key[len('data-') :]: _stringify(value) for key, value in tag.attrs.items() if key.startswith('data-')
	}

	options = None
	if tag_name == 'select':
		options = [
			SelectOption(value=_attr(option, 'value', _collapse(option.get_text(' ', strip=True))) or '', text=_collapse(option.get_text(' ', strip=True)))
			for option in tag.find_all('option')
		] or None

	form_action = _attr(tag, 'formaction')
	if form_action is None and type_ == 'submit':
		form = tag.find_parent('form')
		if form is not None:
			form_action = _attr(form, 'action')

	role = explicit_role or _implicit_role(tag, type_)
	accessible_name = aria_label or label or text or (_attr(tag, 'value') if type_ in ('submit', 'button', 'reset') else None) or placeholder or _attr(tag, 'title')

	action_hint = refine_action_hint(infer_tag_action_hint(tag_name, type_, explicit_role), accessible_name)

	element = InteractiveElement(
		tag=tag_name,
		type=type_,
		selector=selector,
		aria_label=aria_label,
		label=label,
		text=text,
		name=name,
		id=element_id,
		placeholder=placeholder,
		href=_attr(tag, 'href'),
		form_action=form_action,
		required=True if tag.has_attr('required') else None,
		options=options,
		data_attributes=data_attributes or None,
		role=explicit_role,
		action_hint=action_hint,
	)
	return MarkupElement(element=element, role=role, accessible_name=accessible_name, landmark=_enclosing_landmark(tag))


def _implicit_role(tag: Tag, type_: str | None) -> str | None:
	if tag.name == 'button':
		return 'button'
	if tag.name == 'a':
		return 'link' if tag.has_attr('href') else None
	if tag.name == 'input':
		return INPUT_TYPE_ROLES.get(type_ or 'text')
	if tag.name == 'select':
		size = _attr(tag, 'size', '1')
		multi_row = tag.has_attr('multiple') or (size.isdigit() and int(size) > 1)
		return 'listbox' if multi_row else 'combobox'
	if tag.name == 'textarea':
		return 'textbox'
	return None


def _enclosing_landmark(tag: Tag) -> tuple[str, str | None] | None:
	for parent in tag.parents:
		if not isinstance(parent, Tag) or parent.name in ('[document]', 'body', 'html'):
			continue
		role = _attr(parent, 'role') or LANDMARK_TAG_ROLES.get(parent.name)
		if role not in LANDMARK_ROLES:
			continue
		label = _attr(parent, 'aria-label')
		# unnamed <section> elements are not exposed as regions
		if role == 'region' and not label and not parent.has_attr('role'):
			continue
		return role, label
	return None


def _attr(tag: Tag, name: str, default: str | None = None) -> str | None:
	value = tag.get(name)
	if value is None:
		return default
	return _stringify(value)


def _stringify(value: object) -> str:
	# multi-valued attributes such as class come back as lists
	if isinstance(value, list):
		return ' '.join(str(v) for v in value)
	return str(value)


def _collapse(text: str) -> str:
	return ' '.join(text.split())
