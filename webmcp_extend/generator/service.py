"""
Tool code generator.

Each ToolProposal becomes one self-contained Python module that declares a
pydantic parameter model, an async `execute(params, page)` coroutine and a
`define_tool(...)` call registering the tool with the runtime. Output is a pure
function of the proposal list: the same input always yields byte-identical
files in the same order.
"""

import keyword
import logging
import re
from collections.abc import Sequence

from pydantic import BaseModel

from webmcp_extend.generator.manifest import tool_file_path
from webmcp_extend.generator.views import GeneratedFile
from webmcp_extend.proposals.views import DOMAction, DOMActionStep, JSCallAction, ToolInputProperty, ToolProposal
from webmcp_extend.utils import time_execution_sync, to_camel_case

logger = logging.getLogger(__name__)

INDENT = '\t'
SUCCESS_TEXT = 'Action completed successfully'
NO_CONTENT_TEXT = 'No content found'
DEFAULT_READ_ATTRIBUTE = 'textContent'

_ANNOTATION_FIELDS = ('read_only_hint', 'destructive_hint', 'confirmation_hint', 'open_world_hint')


def python_identifier(name: str) -> str:
	"""A valid, non-reserved Python field name for a schema property."""
	ident = re.sub(r'\W', '_', name)
	if not ident or ident[0].isdigit() or ident.startswith('_') or ident.startswith('model_'):
		ident = f'field_{ident}'
	if keyword.iskeyword(ident) or hasattr(BaseModel, ident):
		ident = f'{ident}_'
	return ident


def params_class_name(tool_name: str) -> str:
	camel = re.sub(r'\W', '_', to_camel_case(tool_name))
	if not camel or camel[0].isdigit():
		camel = f'Tool{camel}'
	return f'{camel[:1].upper()}{camel[1:]}Params'


class _ModuleWriter:
	"""Accumulates the lines and imports of one generated module"""

	def __init__(self, proposal: ToolProposal):
		self.proposal = proposal
		self.lines: list[str] = []
		self.typing_imports: set[str] = set()
		self.runtime_imports: set[str] = {'ToolParams', 'ToolResult', 'define_tool'}
		self.uses_field = False
		self.uses_asyncio = False
		self.field_names = self._assign_field_names()

	def _assign_field_names(self) -> dict[str, str]:
		names: dict[str, str] = {}
		taken: set[str] = set()
		for prop_name in self.proposal.input_schema.properties:
			ident = python_identifier(prop_name)
			candidate, suffix = ident, 2
			while candidate in taken:
				candidate = f'{ident}_{suffix}'
				suffix += 1
			taken.add(candidate)
			names[prop_name] = candidate
		return names

	def emit(self, line: str = '', depth: int = 0) -> None:
		self.lines.append(f'{INDENT * depth}{line}' if line else '')

	# Parameter model ---------------------------------------------------------

	def type_expression(self, prop: ToolInputProperty) -> str:
		if prop.type == 'string':
			if prop.enum:
				self.typing_imports.add('Literal')
				return f'Literal[{", ".join(repr(value) for value in prop.enum)}]'
			return 'str'
		if prop.type == 'number':
			return 'float'
		if prop.type == 'integer':
			return 'int'
		if prop.type == 'boolean':
			return 'bool'
		if prop.type == 'array':
			if prop.items is not None:
				return f'list[{self.type_expression(prop.items)}]'
			self.typing_imports.add('Any')
			return 'list[Any]'
		self.typing_imports.add('Any')
		return 'dict[str, Any]'

	def write_params_model(self, class_name: str) -> None:
		schema = self.proposal.input_schema
		required = set(schema.required)

		self.emit(f'class {class_name}(ToolParams):')
		if not schema.properties:
			self.emit('pass', 1)
			return

		for prop_name, prop in schema.properties.items():
			ident = self.field_names[prop_name]
			annotation = self.type_expression(prop)
			args: list[str] = []
			if prop_name not in required:
				annotation = f'{annotation} | None'
				args.append(f'default={prop.default!r}')
			if ident != prop_name:
				args.append(f'alias={prop_name!r}')
			if prop.description:
				args.append(f'description={prop.description!r}')
			if prop.type in ('number', 'integer'):
				if prop.minimum is not None:
					args.append(f'ge={prop.minimum!r}')
				if prop.maximum is not None:
					args.append(f'le={prop.maximum!r}')

			if args:
				self.uses_field = True
				self.emit(f'{ident}: {annotation} = Field({", ".join(args)})', 1)
			else:
				self.emit(f'{ident}: {annotation}', 1)

	# Execute bodies ----------------------------------------------------------

	def value_expression(self, input_property: str | None, static_value: str | None) -> str:
		if input_property and input_property in self.field_names:
			return f'params.{self.field_names[input_property]}'
		if static_value is not None:
			return repr(static_value)
		return repr('')

	def write_js_call_body(self, action: JSCallAction) -> None:
		path = action.function_path
		args = ', '.join(
			f'params.{self.field_names[arg]}' if arg in self.field_names else 'None' for arg in action.arg_mapping
		)
		call_arg = f"{{'path': {path!r}, 'args': [{args}]}}"
		self.runtime_imports.update({'RESOLVE_FUNCTION_SCRIPT', 'CALL_FUNCTION_SCRIPT'})

		self.emit('try:', 1)
		self.emit(f'if not await page.evaluate(RESOLVE_FUNCTION_SCRIPT, {path!r}):', 2)
		self.emit(f'return ToolResult.error_result({f"Error: {path} is not available on this page"!r})', 3)
		if action.return_type == 'void':
			self.emit(f'await page.evaluate(CALL_FUNCTION_SCRIPT, {call_arg})', 2)
			self.emit(f'return ToolResult.text_result({SUCCESS_TEXT!r})', 2)
		else:
			self.emit(f'result = await page.evaluate(CALL_FUNCTION_SCRIPT, {call_arg})', 2)
			self.emit('return ToolResult.json_result(result)', 2)
		self.emit('except Exception as e:', 1)
		self.emit(f'return ToolResult.error_result({f"Error calling {path}: "!r} + str(e))', 2)

	def write_dom_step(self, step: DOMActionStep, index: int) -> None:
		element = f'el_{index}'
		label = ' '.join((step.description or step.action).split())
		self.emit(f'# Step {index + 1}: {label}', 2)
		self.emit(f'{element} = await page.query_selector({step.selector!r})', 2)

		if step.action == 'read':
			attribute = step.read_attribute or DEFAULT_READ_ATTRIBUTE
			self.runtime_imports.add('READ_SCRIPT')
			self.emit(
				f'result_{index} = await {element}.evaluate(READ_SCRIPT, {attribute!r}) if {element} is not None else None',
				2,
			)
		else:
			self.runtime_imports.add('ElementNotFoundError')
			self.emit(f'if {element} is None:', 2)
			self.emit(f'raise ElementNotFoundError({step.selector!r})', 3)

			if step.action == 'click':
				self.emit(f'await {element}.click()', 2)
			elif step.action == 'fill':
				self.runtime_imports.add('FILL_SCRIPT')
				value = self.value_expression(step.input_property, step.static_value)
				self.emit(f'await {element}.evaluate(FILL_SCRIPT, {value})', 2)
			elif step.action == 'select':
				self.runtime_imports.add('SELECT_SCRIPT')
				value = self.value_expression(step.input_property, step.static_value)
				self.emit(f'await {element}.evaluate(SELECT_SCRIPT, {value})', 2)
			elif step.action == 'check':
				self.runtime_imports.add('CHECK_SCRIPT')
				self.emit(f'await {element}.evaluate(CHECK_SCRIPT)', 2)
			elif step.action == 'submit':
				self.runtime_imports.add('SUBMIT_SCRIPT')
				self.emit(f'await {element}.evaluate(SUBMIT_SCRIPT)', 2)
			elif step.action == 'scroll':
				self.emit(f'await {element}.scroll_into_view_if_needed()', 2)

		if step.delay:
			self.uses_asyncio = True
			self.emit(f'await asyncio.sleep({step.delay / 1000!r})', 2)

	def write_dom_action_body(self, action: DOMAction) -> None:
		self.emit('try:', 1)
		for index, step in enumerate(action.steps):
			self.write_dom_step(step, index)

		last = len(action.steps) - 1
		if action.steps and action.steps[last].action == 'read':
			self.emit(
				f'return ToolResult.text_result(str(result_{last}) if result_{last} is not None else {NO_CONTENT_TEXT!r})',
				2,
			)
		else:
			self.emit(f'return ToolResult.text_result({SUCCESS_TEXT!r})', 2)
		self.emit('except Exception as e:', 1)
		self.emit("return ToolResult.error_result(f'Error: {e}')", 2)

	# Registration ------------------------------------------------------------

	def write_definition(self, class_name: str) -> None:
		proposal = self.proposal
		self.emit('tool = define_tool(')
		self.emit(f'name={proposal.name!r},', 1)
		self.emit(f'description={proposal.description!r},', 1)
		self.emit(f'param_model={class_name},', 1)
		self.emit('execute=execute,', 1)

		if proposal.annotations is not None:
			hints = [
				f'{field}={getattr(proposal.annotations, field)!r}'
				for field in _ANNOTATION_FIELDS
				if getattr(proposal.annotations, field) is not None
			]
			if hints:
				self.runtime_imports.add('ToolAnnotations')
				self.emit(f'annotations=ToolAnnotations({", ".join(hints)}),', 1)

		if proposal.url_pattern:
			self.emit(f'url_pattern={proposal.url_pattern!r},', 1)
		self.emit(')')
		self.emit()
		self.emit('# Register the tool when this module is loaded')
		self.emit('tool.register()')

	def render(self) -> str:
		proposal = self.proposal
		class_name = params_class_name(proposal.name)

		self.write_params_model(class_name)
		self.emit()
		self.emit()
		self.emit(f'async def execute(params: {class_name}, page: QueryablePage) -> ToolResult:')
		if isinstance(proposal.action_details, JSCallAction):
			self.write_js_call_body(proposal.action_details)
		else:
			self.write_dom_action_body(proposal.action_details)
		self.emit()
		self.emit()
		self.write_definition(class_name)

		body = self.lines
		self.lines = []
		self.emit(f'# Generated by webmcp-extend for tool {proposal.name!r}. Regenerate rather than edit.')
		if self.uses_asyncio:
			self.emit('import asyncio')
		if self.typing_imports:
			self.emit(f'from typing import {", ".join(sorted(self.typing_imports))}')
		self.emit()
		if self.uses_field:
			self.emit('from pydantic import Field')
			self.emit()
		self.emit('from webmcp_extend.browser.types import QueryablePage')
		self.emit(f'from webmcp_extend.runtime import {", ".join(sorted(self.runtime_imports))}')
		self.emit()
		self.emit()
		return '\n'.join(self.lines + body) + '\n'


def generate_tool_file(proposal: ToolProposal) -> str:
	return _ModuleWriter(proposal).render()


@time_execution_sync('--generate_tool_files')
def generate_tool_files(proposals: Sequence[ToolProposal]) -> list[GeneratedFile]:
	"""One module per proposal, `tools/<name>.py`, in input order."""
	files = [GeneratedFile(path=tool_file_path(proposal.name), content=generate_tool_file(proposal)) for proposal in proposals]
	logger.debug(f'Generated {len(files)} tool modules')
	return files
