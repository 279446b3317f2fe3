import secrets
import string
from datetime import datetime
from typing import Optional

from devhub.utils.clock import UtcClock, epoch_millis

SUBMISSION_ID_PREFIX = "SUB"
SUBMISSION_ID_ALPHABET = string.ascii_uppercase + string.digits
SUBMISSION_ID_HASH_LENGTH = 6
MIN_TIMESTAMP_LENGTH = 10


def random_hash(length: int = SUBMISSION_ID_HASH_LENGTH) -> str:
	return "".join(secrets.choice(SUBMISSION_ID_ALPHABET) for _ in range(length))


def generate_submission_id(at: Optional[datetime] = None) -> str:
	"""
	Build `SUB-<epoch millis>-<6 chars A-Z0-9>`, e.g. `SUB-1749035470531-4W6UZJ`.

	Uniqueness rests on millisecond granularity plus a 36^6 random space;
	the store's primary key rejects the (negligible) collision.
	"""
	millis = epoch_millis(at if at is not None else UtcClock().now())
	return f"{SUBMISSION_ID_PREFIX}-{millis}-{random_hash()}"


def is_valid_submission_id(value: str) -> bool:
	"""Loose format gate: three dash-separated parts, `SUB`, >= 10 chars, exactly 6 chars."""
	if not isinstance(value, str):
		return False
	parts = value.split("-")
	if len(parts) != 3:
		return False
	prefix, timestamp, suffix = parts
	if prefix != SUBMISSION_ID_PREFIX:
		return False
	if len(timestamp) < MIN_TIMESTAMP_LENGTH:
		return False
	return len(suffix) == SUBMISSION_ID_HASH_LENGTH
