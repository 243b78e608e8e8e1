import json
from typing import Any

from pydantic import BaseModel, ConfigDict

from webmcp_extend.views import WireModel


class ToolResult(BaseModel):
	"""What a tool returns to its host: a text payload, optional structured data, and an error flag"""

	text: str | None = None
	data: Any = None
	is_error: bool = False

	@classmethod
	def text_result(cls, text: str) -> 'ToolResult':
		return cls(text=text)

	@classmethod
	def json_result(cls, data: Any) -> 'ToolResult':
		return cls(text=json.dumps(data, indent=2, ensure_ascii=False, default=str), data=data)

	@classmethod
	def error_result(cls, message: str) -> 'ToolResult':
		return cls(text=message, is_error=True)


class ToolAnnotations(WireModel):
	read_only_hint: bool | None = None
	destructive_hint: bool | None = None
	confirmation_hint: bool | None = None
	open_world_hint: bool | None = None


class ToolParams(BaseModel):
	"""Base for generated parameter models. Fields accept either their Python name or the original property name."""

	model_config = ConfigDict(extra='ignore', validate_by_name=True, validate_by_alias=True)


class ElementNotFoundError(LookupError):
	def __init__(self, selector: str):
		self.selector = selector
		super().__init__(f'Element not found: {selector}')


class ToolNotFoundError(KeyError):
	def __str__(self) -> str:
		return f'Tool {self.args[0]} not found'
