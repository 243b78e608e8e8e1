import pytest

from tests.ci.conftest import make_snapshot
from webmcp_extend.browser.views import AccessibilityNode
from webmcp_extend.dom import extract_dom
from webmcp_extend.dom.markup import extract_from_html
from webmcp_extend.dom.service import build_element_selector, build_region_selector
from webmcp_extend.dom.views import ActionHint, MergePriority, RegionType


def shop_tree() -> AccessibilityNode:
	return AccessibilityNode(
		role='RootWebArea',
		name='Shop',
		children=[
			AccessibilityNode(
				role='navigation',
				name='Primary',
				children=[AccessibilityNode(role='link', name='Home')],
			),
			AccessibilityNode(
				role='main',
				children=[
					AccessibilityNode(role='textbox', name='Search'),
					AccessibilityNode(role='button', name='Add to cart'),
				],
			),
		],
	)


SHOP_HTML = """
<nav aria-label="Primary">
	<a href="/">Home</a>
	<a href="/about">About</a>
</nav>
<main>
	<input type="text" name="q" placeholder="Search">
	<button id="add-btn" data-sku="pz-1">Add to cart</button>
	<input type="hidden" name="csrf" value="abc123">
</main>
<div onclick="openChat()">Chat</div>
"""


@pytest.fixture
def shop_snapshot():
	return make_snapshot(body_html=SHOP_HTML, tree=shop_tree())


class TestEmptyAndDegenerateInput:
	def test_empty_snapshot_has_no_regions(self):
		analysis = extract_dom(make_snapshot())

		assert analysis.url == 'https://shop.example.com/'
		assert analysis.regions == []
		assert analysis.total_interactive_elements == 0

	def test_malformed_markup_does_not_raise(self):
		analysis = extract_dom(make_snapshot(body_html='<div><button>Ok</div><p <<< <select'))

		assert analysis.total_interactive_elements >= 0

	def test_element_without_locator_is_dropped(self):
		assert extract_from_html('<button></button>') == []


class TestMarkupPass:
	def test_id_only_element_gets_id_selector(self):
		analysis = extract_dom(make_snapshot(body_html='<input id="email">'))

		assert analysis.total_interactive_elements == 1
		region = analysis.regions[0]
		assert region.type == RegionType.UNKNOWN
		assert region.selector == 'body'
		element = region.interactive_elements[0]
		assert element.selector == '#email'
		assert element.action_hint == ActionHint.INPUT

	def test_locator_preference_order(self):
		html = """
		<input name="first_name" placeholder="First">
		<button aria-label="Close dialog">x</button>
		<textarea placeholder="Your message"></textarea>
		<button>Checkout now</button>
		"""
		selectors = [markup.element.selector for markup in extract_from_html(html)]

		assert selectors == [
			'input[name="first_name"]',
			'button[aria-label="Close dialog"]',
			'textarea[placeholder="Your message"]',
			'button:has-text("Checkout now")',
		]

	def test_hidden_inputs_and_fragment_links_are_skipped(self):
		html = '<input type="hidden" name="token"><a href="#top">Top</a><a href="javascript:void(0)">Noop</a>'

		assert extract_from_html(html) == []

	def test_labels_options_and_form_action(self):
		html = """
		<form action="/orders">
			<label for="size">Pizza size</label>
			<select id="size" name="size" required>
				<option value="s">Small</option>
				<option value="l">Large</option>
			</select>
			<label>Gift wrap <input type="checkbox" name="gift"></label>
			<button type="submit">Place order</button>
		</form>
		"""
		elements = {markup.element.selector: markup.element for markup in extract_from_html(html)}

		size = elements['#size']
		assert size.label == 'Pizza size'
		assert size.required is True
		assert [(option.value, option.text) for option in size.options] == [('s', 'Small'), ('l', 'Large')]
		assert size.action_hint == ActionHint.SELECTION

		gift = elements['input[name="gift"]']
		assert gift.label == 'Gift wrap'
		assert gift.action_hint == ActionHint.TOGGLE

		submit = elements['button:has-text("Place order")']
		assert submit.form_action == '/orders'
		assert submit.action_hint == ActionHint.SUBMISSION

	def test_destructive_trigger(self):
		(markup,) = extract_from_html('<button class="danger">Delete account</button>')

		assert markup.element.action_hint == ActionHint.DESTRUCTIVE

	def test_data_attributes_and_inline_handlers(self):
		(markup,) = extract_from_html('<span id="fav" data-item-id="42" onclick="toggleFav(42)">Favourite</span>')

		assert markup.element.selector == '#fav'
		assert markup.element.data_attributes == {'item-id': '42'}
		assert markup.element.action_hint == ActionHint.TRIGGER

	def test_quotes_in_text_are_escaped(self):
		(markup,) = extract_from_html('<button>Say "hi"</button>')

		assert markup.element.selector == 'button:has-text("Say \\"hi\\"")'


class TestTreePassAndMerge:
	def test_regions_follow_landmarks(self, shop_snapshot):
		analysis = extract_dom(shop_snapshot)

		assert [region.type for region in analysis.regions] == [RegionType.NAV, RegionType.MAIN, RegionType.UNKNOWN]
		nav, main, unknown = analysis.regions
		assert nav.label == 'Primary'
		assert nav.selector == '[role="navigation"][aria-label="Primary"], nav'
		assert main.selector == '[role="main"], main'
		assert [element.text for element in nav.interactive_elements] == ['Home', 'About']
		assert [element.selector for element in unknown.interactive_elements] == ['div:has-text("Chat")']

	def test_same_element_from_both_passes_appears_once(self, shop_snapshot):
		analysis = extract_dom(shop_snapshot)

		main = analysis.regions[1]
		buttons = [element for element in main.interactive_elements if element.role == 'button']
		assert len(buttons) == 1
		# nav: Home, About / main: Search, Add to cart / unknown: Chat
		assert analysis.total_interactive_elements == 5

	def test_tree_priority_keeps_tree_locator_and_fills_gaps(self, shop_snapshot):
		analysis = extract_dom(shop_snapshot)

		search, add = analysis.regions[1].interactive_elements
		assert add.selector == build_element_selector('button', 'Add to cart')
		assert add.id == 'add-btn'
		assert add.data_attributes == {'sku': 'pz-1'}
		assert search.name == 'q'
		assert search.placeholder == 'Search'

	def test_markup_priority_keeps_markup_locator(self, shop_snapshot):
		analysis = extract_dom(shop_snapshot, merge_priority=MergePriority.MARKUP)

		search, add = analysis.regions[1].interactive_elements
		assert add.selector == '#add-btn'
		assert search.selector == 'input[name="q"]'
		assert analysis.total_interactive_elements == 5

	def test_every_element_has_a_selector(self, shop_snapshot):
		analysis = extract_dom(shop_snapshot)

		for region in analysis.regions:
			assert region.selector
			for element in region.interactive_elements:
				assert element.selector

	def test_extraction_is_deterministic(self, shop_snapshot):
		first = extract_dom(shop_snapshot)
		second = extract_dom(shop_snapshot)

		assert first.model_dump() == second.model_dump()

	def test_duplicate_tree_nodes_collapse(self):
		tree = AccessibilityNode(
			role='RootWebArea',
			children=[AccessibilityNode(role='button', name='Buy'), AccessibilityNode(role='button', name='Buy')],
		)
		analysis = extract_dom(make_snapshot(tree=tree))

		assert analysis.total_interactive_elements == 1

	def test_destructive_tree_button(self):
		tree = AccessibilityNode(role='RootWebArea', children=[AccessibilityNode(role='button', name='Remove item')])
		analysis = extract_dom(make_snapshot(tree=tree))

		assert analysis.regions[0].interactive_elements[0].action_hint == ActionHint.DESTRUCTIVE


class TestSelectorBuilders:
	def test_region_selector(self):
		assert build_region_selector('banner', None) == '[role="banner"], header'
		assert build_region_selector('region', 'Deals') == '[role="region"][aria-label="Deals"], section'

	def test_element_selector(self):
		assert build_element_selector('link', 'Home') == 'a[aria-label="Home"], a:has-text("Home")'
		assert build_element_selector('checkbox', None) == 'input[role="checkbox"]'
		assert build_element_selector('treeitem', 'Node') == 'div[aria-label="Node"], div:has-text("Node")'
