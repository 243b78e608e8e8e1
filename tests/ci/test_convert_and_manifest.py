from webmcp_extend.generator import generate_tool_files, generate_tool_manifest, to_match_pattern
from webmcp_extend.generator.manifest import tool_file_path
from webmcp_extend.proposals import DOMAction, ToolProposal
from webmcp_extend.session import SessionTool, SessionToolStep, convert_session_tools_to_proposals
from webmcp_extend.session.convert import SESSION_TOOL_DESCRIPTION
from webmcp_extend.session.views import SessionToolProperty, SessionToolSchema


def fill_form_tool() -> SessionTool:
	return SessionTool(
		name='fillForm',
		steps=[
			SessionToolStep(action='hover', selector='#menu'),
			SessionToolStep(action='fill', selector='#email', input_property='email'),
			SessionToolStep(action='click', selector='#submit', delay=200),
		],
		input_schema=SessionToolSchema(
			properties={'email': SessionToolProperty(description='Value for #email')},
			required=['email'],
		),
		url_patterns=['https://pizza.example.com/order', 'https://pizza.example.com/thanks'],
	)


def js_proposal(name: str, url_pattern: str | None = None) -> ToolProposal:
	return ToolProposal.model_validate(
		{
			'name': name,
			'description': f'{name} tool',
			'actionType': 'js-call',
			'actionDetails': {'functionPath': f'window.{name}'},
			'urlPattern': url_pattern,
		}
	)


class TestConvertSessionTools:
	def test_hover_steps_are_dropped(self):
		(proposal,) = convert_session_tools_to_proposals([fill_form_tool()])

		assert proposal.action_type == 'dom-action'
		assert isinstance(proposal.action_details, DOMAction)
		assert [step.action for step in proposal.action_details.steps] == ['fill', 'click']
		assert proposal.action_details.steps[0].input_property == 'email'
		assert proposal.action_details.steps[1].delay == 200

	def test_description_schema_and_url(self):
		(proposal,) = convert_session_tools_to_proposals([fill_form_tool()])

		assert proposal.description == SESSION_TOOL_DESCRIPTION
		assert proposal.url_pattern == 'https://pizza.example.com/order'
		assert proposal.input_schema.required == ['email']
		assert proposal.input_schema.properties['email'].type == 'string'

	def test_tool_without_urls(self):
		(proposal,) = convert_session_tools_to_proposals([SessionTool(name='noop')])

		assert proposal.url_pattern is None
		assert proposal.action_details.steps == []

	def test_converted_tools_generate(self):
		files = generate_tool_files(convert_session_tools_to_proposals([fill_form_tool()]))

		assert [file.path for file in files] == ['tools/fillForm.py']
		assert "raise ElementNotFoundError('#email')" in files[0].content
		assert 'hover' not in files[0].content


class TestManifest:
	def test_groups_files_by_pattern(self):
		proposals = [
			js_proposal('getMenu', 'https://pizza.example.com/*'),
			js_proposal('addToCart', 'https://pizza.example.com/*'),
			js_proposal('getWeather'),
		]

		manifest = generate_tool_manifest(proposals, extension_name='pizza-tools', version='1.2.0')

		assert manifest.patterns == {
			'https://pizza.example.com/*': ['tools/getMenu.py', 'tools/addToCart.py'],
			'<all_urls>': ['tools/getWeather.py'],
		}
		assert manifest.tool_names == ['getMenu', 'addToCart', 'getWeather']
		assert manifest.extension_name == 'pizza-tools'
		assert manifest.version == '1.2.0'
		assert manifest.to_wire()['toolNames'] == ['getMenu', 'addToCart', 'getWeather']

	def test_empty_manifest(self):
		manifest = generate_tool_manifest([])

		assert manifest.patterns == {}
		assert manifest.extension_name == 'webmcp-extend-tools'

	def test_to_match_pattern(self):
		assert to_match_pattern('https://example.com/*') == 'https://example.com/*'
		assert to_match_pattern('*://example.com/*') == '*://example.com/*'
		assert to_match_pattern('<all_urls>') == '<all_urls>'
		assert to_match_pattern('example.com') == '*://example.com/*'

	def test_tool_file_path_stays_inside_tools(self):
		assert tool_file_path('getMenu') == 'tools/getMenu.py'
		assert tool_file_path('../x') == 'tools/.._x.py'
		assert tool_file_path('a/b') == 'tools/a_b.py'
		assert tool_file_path('c:\\d e') == 'tools/c__d_e.py'
