from webmcp_extend.config import CONFIG
from webmcp_extend.logging_config import setup_logging

if CONFIG.WEBMCP_EXTEND_SETUP_LOGGING:
	setup_logging()

from webmcp_extend.browser.crawler import CrawlOptions, capture_snapshot, crawl_site  # noqa: E402
from webmcp_extend.browser.views import BrowserError, PageSnapshot, ScenarioStep, SessionError  # noqa: E402
from webmcp_extend.dom import DOMAnalysis, DomExtractor, MergePriority, extract_dom  # noqa: E402
from webmcp_extend.generator import GeneratedFile, ToolManifest, generate_tool_files, generate_tool_manifest  # noqa: E402
from webmcp_extend.js import JSAnalysis, extract_js  # noqa: E402
from webmcp_extend.proposals import (  # noqa: E402
	ProposalDecodeError,
	ProposalParseError,
	ProposalShapeError,
	SiteAnalysis,
	ToolProposal,
	build_site_analysis,
	build_tool_proposal_prompt,
	parse_tool_proposals,
)
from webmcp_extend.session import (  # noqa: E402
	SessionRecorder,
	SessionStepOptions,
	convert_session_tools_to_proposals,
	group_actions_into_tools,
)

__all__ = [
	'BrowserError',
	'CrawlOptions',
	'DOMAnalysis',
	'DomExtractor',
	'GeneratedFile',
	'JSAnalysis',
	'MergePriority',
	'PageSnapshot',
	'ProposalDecodeError',
	'ProposalParseError',
	'ProposalShapeError',
	'ScenarioStep',
	'SessionError',
	'SessionRecorder',
	'SessionStepOptions',
	'SiteAnalysis',
	'ToolManifest',
	'ToolProposal',
	'build_site_analysis',
	'build_tool_proposal_prompt',
	'capture_snapshot',
	'convert_session_tools_to_proposals',
	'crawl_site',
	'extract_dom',
	'extract_js',
	'generate_tool_files',
	'generate_tool_manifest',
	'group_actions_into_tools',
	'parse_tool_proposals',
	'setup_logging',
]
