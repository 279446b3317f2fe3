from typing import Iterable, List, Sequence

from devhub.db.enums import Category, HubEvent, SubmissionStatus, TransactionType
from devhub.db.schemas.submission import SubmissionRequest
from devhub.db.schemas.team_member import TeamMemberInput
from devhub.services.errors import (
	InvalidCategoriesError,
	InvalidEventError,
	InvalidTeamMembersError,
)

ALLOWED_CATEGORIES = frozenset(c.value for c in Category)
ALLOWED_EVENTS = frozenset(e.value for e in HubEvent)
ALLOWED_STATUSES = frozenset(s.value for s in SubmissionStatus)
ALLOWED_TRANSACTION_TYPES = frozenset(t.value for t in TransactionType)


def validate_categories(categories: Iterable[str]) -> bool:
	return all(category in ALLOWED_CATEGORIES for category in categories)


def validate_event(event: str) -> bool:
	return event in ALLOWED_EVENTS


def validate_status(status: str) -> bool:
	return status in ALLOWED_STATUSES


def validate_transaction_type(tx_type: str) -> bool:
	return tx_type in ALLOWED_TRANSACTION_TYPES


def validate_team_members(members: Sequence[TeamMemberInput]) -> bool:
	return all(member.name and member.twitter for member in members)


def remove_empty(values: Iterable[str]) -> List[str]:
	"""Trim every entry and drop the blank ones."""
	return [v.strip() for v in values if v and v.strip()]


def validate_submission(request: SubmissionRequest) -> None:
	"""
	Run the intake rules in order and raise the first failure.
	At least one category and one team member are required.
	"""
	if not request.categories or not validate_categories(request.categories):
		raise InvalidCategoriesError()
	if not validate_event(request.event):
		raise InvalidEventError()
	if not request.team_members or not validate_team_members(request.team_members):
		raise InvalidTeamMembersError()
