import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from webmcp_extend.proposals.views import ProposalDecodeError, ProposalShapeError, ToolProposal

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r'```(?:json)?\s*\n?([\s\S]*?)```')


def extract_payload(text: str) -> str:
	"""The first fenced block's body if there is one, else the whole reply."""
	match = _FENCE_PATTERN.search(text)
	if match:
		return match.group(1).strip()
	return text.strip()


def parse_tool_proposals(text: str) -> list[ToolProposal]:
	"""Decode an agent reply into validated proposals.

	Accepts a bare JSON list or an object of the form {"tools": [...]}, either
	on its own or inside a ``` / ```json fence.

	Raises:
		ProposalDecodeError: the payload is not valid JSON.
		ProposalShapeError: the value has the wrong shape, or an item fails validation.
	"""
	payload = extract_payload(text)
	try:
		decoded: Any = json.loads(payload)
	except json.JSONDecodeError as e:
		raise ProposalDecodeError(f'Failed to parse tool proposals: {e}') from e

	if isinstance(decoded, dict) and isinstance(decoded.get('tools'), list):
		items = decoded['tools']
	elif isinstance(decoded, list):
		items = decoded
	else:
		raise ProposalShapeError(
			f'Failed to parse tool proposals: expected an array of tool proposals or {{"tools": [...]}}, '
			f'got {type(decoded).__name__}'
		)

	proposals = []
	for index, item in enumerate(items):
		try:
			proposals.append(ToolProposal.model_validate(item))
		except ValidationError as e:
			raise ProposalShapeError(f'Invalid tool proposal at index {index}: {e}') from e

	logger.debug(f'Parsed {len(proposals)} tool proposals')
	return proposals
