from pydantic import Field

from webmcp_extend.views import WireModel


class GeneratedFile(WireModel):
	"""A generated source file, relative to the output directory"""

	path: str
	content: str


class ToolManifest(WireModel):
	"""Which tool files load on which URL match patterns"""

	patterns: dict[str, list[str]] = Field(default_factory=dict)
	tool_names: list[str] = Field(default_factory=list)
	extension_name: str
	version: str = '0.1.0'
