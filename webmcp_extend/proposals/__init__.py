from webmcp_extend.proposals.prompt import build_site_analysis, build_tool_proposal_prompt
from webmcp_extend.proposals.service import parse_tool_proposals
from webmcp_extend.proposals.views import (
	DOMAction,
	DOMActionStep,
	JSCallAction,
	ProposalDecodeError,
	ProposalParseError,
	ProposalShapeError,
	SiteAnalysis,
	ToolInputProperty,
	ToolInputSchema,
	ToolProposal,
	ToolProposalAnnotations,
)

__all__ = [
	'DOMAction',
	'DOMActionStep',
	'JSCallAction',
	'ProposalDecodeError',
	'ProposalParseError',
	'ProposalShapeError',
	'SiteAnalysis',
	'ToolInputProperty',
	'ToolInputSchema',
	'ToolProposal',
	'ToolProposalAnnotations',
	'build_site_analysis',
	'build_tool_proposal_prompt',
	'parse_tool_proposals',
]
