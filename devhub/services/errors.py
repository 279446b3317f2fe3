"""
Error taxonomy of the submission workflow.

Every error carries a machine readable ``code`` so the boundary layer can map
it to a response without parsing messages. Validation and duplicate errors are
recoverable by the caller; not-found errors are terminal for the request;
deserialization and internal errors abort the operation and are never retried
by the services.
"""
import logging
from contextlib import contextmanager
from typing import Any, ClassVar, Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class DevHubError(Exception):
	code: ClassVar[str] = "DEVHUB_ERROR"
	default_message: ClassVar[str] = "Unexpected error"

	def __init__(self, message: Optional[str] = None, **details: Any) -> None:
		self.message = message or self.default_message
		self.details = details
		super().__init__(self.message)

	def to_dict(self) -> dict[str, Any]:
		body: dict[str, Any] = {"code": self.code, "message": self.message}
		if self.details:
			body["details"] = self.details
		return body


# --- validation ---

class ValidationError(DevHubError, ValueError):
	code = "VALIDATION_ERROR"
	default_message = "Invalid submission data"

class InvalidCategoriesError(ValidationError):
	code = "INVALID_CATEGORIES"
	default_message = "Invalid categories provided"

class InvalidEventError(ValidationError):
	code = "INVALID_EVENT"
	default_message = "Invalid event provided"

class InvalidTeamMembersError(ValidationError):
	code = "INVALID_TEAM_MEMBERS"
	default_message = "All team members must have name and twitter"

class InvalidStatusError(ValidationError):
	code = "INVALID_STATUS"
	default_message = "Invalid submission status"

class InvalidSubmissionIdError(ValidationError):
	code = "INVALID_SUBMISSION_ID"
	default_message = "Invalid submission ID format. Expected format: SUB-{timestamp}-{hash}"


# --- duplicates ---

class DuplicateError(DevHubError):
	code = "DUPLICATE"
	default_message = "Duplicate entry"

class DuplicateProjectNameError(DuplicateError):
	code = "DUPLICATE_PROJECT_NAME"
	default_message = "A project with this name already exists"

class DuplicateSubmissionError(DuplicateError):
	code = "DUPLICATE_SUBMISSION"
	default_message = "A submission with this project name already exists"


# --- lookups ---

class NotFoundError(DevHubError, LookupError):
	code = "NOT_FOUND"
	default_message = "Not found"

class SubmissionNotFoundError(NotFoundError):
	code = "SUBMISSION_NOT_FOUND"
	default_message = "Submission not found"

class ProjectNotFoundError(NotFoundError):
	code = "PROJECT_NOT_FOUND"
	default_message = "Project not found"


# --- failures ---

class DeserializationError(DevHubError):
	code = "DESERIALIZATION_ERROR"
	default_message = "Stored team member data is corrupt"

class InternalError(DevHubError):
	code = "INTERNAL_ERROR"
	default_message = "Internal error"


@contextmanager
def storage_errors(operation: str, *, on_integrity: Optional[type[DevHubError]] = None) -> Iterator[None]:
	"""
	Translate SQLAlchemy failures raised inside the block.

	A unique-constraint violation becomes `on_integrity` when given; anything
	else the store raises becomes InternalError. Domain errors pass through.
	"""
	try:
		yield
	except IntegrityError as exc:
		if on_integrity is not None:
			logger.warning("Constraint violation during %s: %s", operation, exc.orig)
			raise on_integrity() from exc
		logger.exception("Integrity failure during %s", operation)
		raise InternalError(f"Failed to {operation}") from exc
	except SQLAlchemyError as exc:
		logger.exception("Storage failure during %s", operation)
		raise InternalError(f"Failed to {operation}") from exc
