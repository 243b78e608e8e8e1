"""
Renders the analysis of a site into a prompt for an external reasoning agent.

Nothing here calls a model; the caller hands the prompt to whatever agent it
orchestrates and feeds the reply back through `parse_tool_proposals`.
"""

import logging
import time
from collections.abc import Sequence
from datetime import datetime, timezone

from webmcp_extend.browser.views import PageSnapshot
from webmcp_extend.dom.service import extract_dom
from webmcp_extend.dom.views import DOMAnalysis, InteractiveElement, MergePriority
from webmcp_extend.js.views import FunctionGlobal, JSAnalysis
from webmcp_extend.proposals.views import SiteAnalysis

logger = logging.getLogger(__name__)

DEFAULT_SCENARIO = 'General site interaction'

INSTRUCTIONS = """## Instructions

Based on the DOM and JS analysis above, propose a set of WebMCP tool definitions that would allow an AI agent to interact with this website.

### Guidelines

1. **Prefer JS calls over DOM actions**: If a function like `window.addToCart(id, qty)` exists, create a tool that calls it directly rather than clicking buttons.

2. **Group related actions**: A form with name, email, and submit should be ONE tool (e.g., `submitContactForm`) that fills all fields and submits, not separate tools per field.

3. **Include read-only tools**: If there's data to read (cart contents, search results, menu items), create getter tools with `readOnlyHint: true`.

4. **Name tools descriptively**: Use camelCase names that describe the action: `searchProducts`, `addToCart`, `getCartTotal`, `submitCheckout`.

5. **Set annotations correctly:**
   - `readOnlyHint: true` for tools that only read data (getMenu, getCart, searchResults)
   - `destructiveHint: true` for tools that delete or irreversibly modify data (clearCart, deleteAccount)
   - `confirmationHint: true` for tools that involve purchases, submissions, or significant actions (checkout, submitOrder)

6. **Define input schemas precisely**: Use appropriate types, add descriptions, set required fields, use enums where options are known.

7. **Action type selection:**
   - `js-call` when a global function or API method is detected that performs the action directly
   - `dom-action` when no JS API exists and the tool must interact with DOM elements (click, fill, select)

8. **URL patterns**: If tools only apply to certain pages, set `urlPattern` (e.g., `"https://example.com/products/*"`).
"""

OUTPUT_SCHEMA = """## Output Format

Respond with a JSON array of tool proposals. Each proposal should follow this schema:

```json
[
  {
    "name": "toolName",
    "description": "What this tool does",
    "inputSchema": {
      "type": "object",
      "properties": {
        "paramName": {
          "type": "string",
          "description": "What this parameter is for"
        }
      },
      "required": ["paramName"]
    },
    "actionType": "js-call",
    "actionDetails": {
      "functionPath": "window.someFunction",
      "argMapping": ["paramName"],
      "returnType": "object"
    },
    "annotations": {
      "readOnlyHint": false,
      "destructiveHint": false,
      "confirmationHint": false
    },
    "urlPattern": "https://example.com/*"
  },
  {
    "name": "anotherTool",
    "description": "Another tool using DOM actions",
    "inputSchema": {
      "type": "object",
      "properties": {
        "query": {
          "type": "string",
          "description": "Search query"
        }
      },
      "required": ["query"]
    },
    "actionType": "dom-action",
    "actionDetails": {
      "steps": [
        {
          "action": "fill",
          "selector": "input[name='search']",
          "inputProperty": "query"
        },
        {
          "action": "click",
          "selector": "button[type='submit']"
        },
        {
          "action": "read",
          "selector": ".search-results",
          "readAttribute": "textContent",
          "delay": 1000
        }
      ]
    },
    "annotations": {
      "readOnlyHint": true
    }
  }
]
```

Propose tools that cover the described scenario. Aim for 3-10 tools that give an agent comprehensive control over the key user flows on the site.
"""


def format_timestamp(timestamp: float) -> str:
	"""ISO-8601 in UTC with millisecond precision, e.g. 2024-01-01T00:00:00.000Z"""
	moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
	return moment.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _describe_element(element: InteractiveElement) -> str:
	attrs = [
		element.tag,
		f'type="{element.type}"' if element.type else None,
		f'aria-label="{element.aria_label}"' if element.aria_label else None,
		f'text="{element.text[:60]}"' if element.text else None,
		f'name="{element.name}"' if element.name else None,
		f'id="{element.id}"' if element.id else None,
		f'href="{element.href}"' if element.href else None,
		f'placeholder="{element.placeholder}"' if element.placeholder else None,
		f'[{element.action_hint.value}]' if element.action_hint else None,
	]
	return ' '.join(attr for attr in attrs if attr)


def format_dom_section(analyses: Sequence[DOMAnalysis]) -> str:
	if not analyses:
		return '## DOM Analysis\n\nNo DOM analysis available.\n'

	parts = ['## DOM Analysis\n']
	for analysis in analyses:
		parts.append(f'### Page: {analysis.url}')
		parts.append(f'Total interactive elements: {analysis.total_interactive_elements}\n')

		for region in analysis.regions:
			label = f' ({region.label})' if region.label else ''
			parts.append(f'#### Region: {region.type.value}{label}')
			parts.append(f'Selector: `{region.selector}`')
			parts.append(f'Elements: {len(region.interactive_elements)}\n')

			for element in region.interactive_elements:
				parts.append(f'- `{element.selector}`: {_describe_element(element)}')
				if element.options:
					options = ', '.join(f'{option.value}="{option.text}"' for option in element.options)
					parts.append(f'  Options: {options}')
			parts.append('')

	return '\n'.join(parts)


def format_js_section(analyses: Sequence[JSAnalysis]) -> str:
	if not analyses:
		return '## JS Surface\n\nNo JS analysis available.\n'

	parts = ['## JS Surface\n']
	for analysis in analyses:
		parts.append(f'### Page: {analysis.url}\n')

		if analysis.globals:
			parts.append('#### Global Functions & Objects\n')
			for entry in analysis.globals:
				if isinstance(entry, FunctionGlobal):
					params = ', '.join(entry.params or [])
					parts.append(f'- `{entry.path}({params})`: function')
				else:
					parts.append(f'- `{entry.path}`: object with methods: {", ".join(entry.methods)}')
			parts.append('')

		if analysis.data_layers:
			parts.append('#### Data Layers\n')
			for layer in analysis.data_layers:
				parts.append(f'- `{layer.path}` ({layer.framework}, {layer.shape}): keys: {", ".join(layer.keys)}')
			parts.append('')

		if analysis.event_handlers:
			parts.append('#### Inline Event Handlers\n')
			for handler in analysis.event_handlers:
				text = f' ("{handler.element_text[:40]}")' if handler.element_text else ''
				parts.append(f'- `{handler.selector}` on{handler.event}: `{handler.handler_code[:80]}`{text}')
			parts.append('')

		if analysis.exposed_apis:
			parts.append('#### Exposed APIs\n')
			for api in analysis.exposed_apis:
				parts.append(f'- `{api.path}`:')
				for method in api.methods:
					params = ', '.join(method.params or [])
					parts.append(f'  - `.{method.name}({params})`')
			parts.append('')

	return '\n'.join(parts)


def build_tool_proposal_prompt(analysis: SiteAnalysis) -> str:
	"""Render the proposal request: context header, DOM section, JS section, instructions, output format."""
	header = (
		'# WebMCP Tool Proposal Request\n'
		'\n'
		'You are analyzing a website to propose WebMCP tool definitions that will let an AI agent interact with it.\n'
		'\n'
		f'**Target URL:** {analysis.target_url}\n'
		f'**Scenario:** {analysis.scenario or DEFAULT_SCENARIO}\n'
		f'**Pages analyzed:** {len(analysis.snapshots)}\n'
		f'**Analysis timestamp:** {format_timestamp(analysis.timestamp)}\n'
	)
	sections = [
		header,
		format_dom_section(analysis.dom_analyses),
		format_js_section(analysis.js_analyses),
		INSTRUCTIONS,
		OUTPUT_SCHEMA,
	]
	return '\n'.join(sections)


def build_site_analysis(
	target_url: str,
	snapshots: Sequence[PageSnapshot],
	js_analyses: Sequence[JSAnalysis] = (),
	scenario: str | None = None,
	timestamp: float | None = None,
	merge_priority: MergePriority = MergePriority.TREE,
) -> SiteAnalysis:
	"""Run DOM extraction over each snapshot and assemble the analysis with its rendered prompt."""
	dom_analyses = [extract_dom(snapshot, merge_priority=merge_priority) for snapshot in snapshots]
	analysis = SiteAnalysis(
		target_url=target_url,
		scenario=scenario,
		snapshots=list(snapshots),
		dom_analyses=dom_analyses,
		js_analyses=list(js_analyses),
		timestamp=time.time() if timestamp is None else timestamp,
	)
	prompt = build_tool_proposal_prompt(analysis)
	logger.info(
		f'📝 Built proposal prompt for {target_url}: {len(snapshots)} pages, '
		f'{sum(a.total_interactive_elements for a in dom_analyses)} interactive elements'
	)
	return analysis.model_copy(update={'proposal_prompt': prompt})
