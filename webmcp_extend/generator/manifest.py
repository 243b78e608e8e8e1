import re
from collections.abc import Sequence

from webmcp_extend.generator.views import ToolManifest
from webmcp_extend.proposals.views import ToolProposal

DEFAULT_EXTENSION_NAME = 'webmcp-extend-tools'
ALL_URLS = '<all_urls>'

_SCHEME_PATTERN = re.compile(r'^(https?|\*)://')
_UNSAFE_PATH_CHARS = re.compile(r'[^\w.-]')


def tool_file_path(name: str) -> str:
	"""Tools live flat under tools/; separators and other unsafe characters in the name become underscores."""
	safe_name = _UNSAFE_PATH_CHARS.sub('_', name)
	return f'tools/{safe_name}.py'


def generate_tool_manifest(
	proposals: Sequence[ToolProposal],
	extension_name: str = DEFAULT_EXTENSION_NAME,
	version: str = '0.1.0',
	default_pattern: str = ALL_URLS,
) -> ToolManifest:
	"""Group tool file paths by the URL pattern they apply to, in proposal order."""
	patterns: dict[str, list[str]] = {}
	tool_names: list[str] = []

	for proposal in proposals:
		pattern = proposal.url_pattern or default_pattern
		patterns.setdefault(pattern, []).append(tool_file_path(proposal.name))
		tool_names.append(proposal.name)

	return ToolManifest(patterns=patterns, tool_names=tool_names, extension_name=extension_name, version=version)


def to_match_pattern(url_pattern: str) -> str:
	"""Turn a glob-style URL pattern into a browser extension match pattern.

	>>> to_match_pattern('https://example.com/*')
	'https://example.com/*'
	>>> to_match_pattern('example.com')
	'*://example.com/*'
	"""
	if _SCHEME_PATTERN.match(url_pattern) or url_pattern == ALL_URLS:
		return url_pattern
	if '://' not in url_pattern:
		return f'*://{url_pattern}/*'
	return url_pattern
