from webmcp_extend.generator.manifest import generate_tool_manifest, to_match_pattern
from webmcp_extend.generator.service import generate_tool_files
from webmcp_extend.generator.views import GeneratedFile, ToolManifest

__all__ = [
	'GeneratedFile',
	'ToolManifest',
	'generate_tool_files',
	'generate_tool_manifest',
	'to_match_pattern',
]
