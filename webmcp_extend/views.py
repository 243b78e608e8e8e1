from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
	"""Base for models that travel as JSON: camelCase on the wire, snake_case in Python."""

	model_config = ConfigDict(
		alias_generator=to_camel,
		validate_by_name=True,
		validate_by_alias=True,
	)

	def to_wire(self) -> dict[str, Any]:
		return self.model_dump(mode='json', by_alias=True, exclude_none=True)

	def to_wire_json(self, indent: int | None = 2) -> str:
		return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
