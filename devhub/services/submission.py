import logging
import math
from typing import Self, ClassVar, Optional, Sequence, List

from pydantic import ValidationError as PydanticValidationError

from devhub.config import Settings
from devhub.db.database import DataBase
from devhub.db.enums import SubmissionStatus, SubmissionSortField, SortDirection
from devhub.db.schemas.project import Pagination, ProjectCreate, ProjectRead
from devhub.db.schemas.submission import (
	SubmissionCreate,
	SubmissionDetail,
	SubmissionPage,
	SubmissionRead,
	SubmissionRequest,
	SubmissionReview,
	SubmitAck,
	ReviewAck,
)
from devhub.db.schemas.team_member import TeamMemberInput, TeamMemberList
from devhub.i18n import Localizer
from devhub.services.audit_log import instrument_service_class
from devhub.services.errors import (
	DeserializationError,
	DuplicateProjectNameError,
	DuplicateSubmissionError,
	InvalidStatusError,
	InternalError,
	InvalidSubmissionIdError,
	SubmissionNotFoundError,
	ValidationError,
	storage_errors,
)
from devhub.services.identifiers import generate_submission_id, is_valid_submission_id
from devhub.services.validation import remove_empty, validate_status, validate_submission
from devhub.utils.clock import Clock, UtcClock

logger = logging.getLogger(__name__)


def encode_team_members(members: Sequence[TeamMemberInput]) -> str:
	return TeamMemberList.dump_json(list(members)).decode("utf-8")


def decode_team_members(raw: Optional[str]) -> List[TeamMemberInput]:
	"""Parse the stored team payload; DeserializationError when it is corrupt."""
	if not raw:
		return []
	try:
		return TeamMemberList.validate_json(raw)
	except PydanticValidationError as exc:
		raise DeserializationError(errors=exc.error_count()) from exc


def ensure_submission_id(submission_id: str) -> None:
	if not is_valid_submission_id(submission_id):
		raise InvalidSubmissionIdError()


class SubmissionService:
	"""
	Submission lifecycle: intake, lookups and the review state machine.

	pending -> under_review -> approved | rejected | requires_changes, with no
	restriction on which status may follow which. The first approval promotes
	the submission into a published project.
	"""
	_instance: ClassVar[Optional["SubmissionService"]] = None

	def __new__(cls, *args, **kwargs) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self, clock: Optional[Clock] = None, localizer: Optional[Localizer] = None) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database = DataBase()
		self._settings = Settings()
		self._clock: Clock = clock or UtcClock()
		self._lz = localizer or Localizer()
		self._initialized = True

	# -------------
	# Intake
	# -------------
	async def submit(self, request: SubmissionRequest) -> SubmitAck:
		try:
			validate_submission(request)
		except ValidationError as exc:
			logger.warning("Submission %r rejected: %s", request.project_name, exc.code)
			raise

		with storage_errors("check duplicates"):
			if await self._database.get_project_by_name(request.project_name) is not None:
				raise DuplicateProjectNameError()
			if await self._database.get_submission_by_project_name(request.project_name) is not None:
				raise DuplicateSubmissionError()

		now = self._clock.now()
		submission_id = generate_submission_id(now)
		payload = SubmissionCreate(
			id=submission_id,
			project_name=request.project_name,
			description=request.description,
			photo_link=request.photo_link,
			event=request.event,
			categories=list(request.categories),
			team_members=encode_team_members(request.team_members),
			github_link=request.github_link,
			website_link=request.website_link,
			play_link=request.play_link,
			how_to_play=request.how_to_play,
			additional_notes=request.additional_notes,
			status=SubmissionStatus.PENDING,
			submitted_at=now,
		)
		try:
			with storage_errors("create submission", on_integrity=DuplicateSubmissionError):
				created = await self._database.create_submission(payload)
		except DuplicateSubmissionError as exc:
			# the other unique key is the generated id; a collision there is not a duplicate
			with storage_errors("check duplicates"):
				taken = await self._database.get_submission_by_project_name(request.project_name)
			if taken is None:
				logger.error("Generated submission id %s collided with an existing one", submission_id)
				raise InternalError("Failed to create submission") from exc
			raise

		logger.info("Submission %s created for project %r", created.id, created.project_name)
		return SubmitAck(
			submission_id=created.id,
			message=self._lz.get("submission.submitted.message"),
			estimated_review_time=self._lz.get("submission.submitted.estimated_review_time"),
			next_steps=[
				self._lz.get("submission.submitted.next_steps.review"),
				self._lz.get("submission.submitted.next_steps.email"),
				self._lz.get("submission.submitted.next_steps.track", submission_id=created.id),
			],
		)

	# -------------
	# Reads
	# -------------
	async def get_submission(self, submission_id: str) -> SubmissionDetail:
		ensure_submission_id(submission_id)
		with storage_errors("retrieve submission"):
			submission = await self._database.get_submission_by_id(submission_id)
			if submission is None:
				raise SubmissionNotFoundError()
			project = await self._database.get_project_by_id(submission.approved_project_id)
		return self._detail(submission, project)

	async def list_submissions(
		self,
		page: int = 1,
		limit: Optional[int] = None,
		status: SubmissionStatus | str | None = None,
		sort_by: SubmissionSortField | str | None = None,
		sort_direction: SortDirection | str | None = None,
	) -> SubmissionPage:
		page = page if page and page > 0 else 1
		limit = limit if limit and limit > 0 else self._settings.default_page_size
		limit = min(limit, self._settings.max_page_size)
		if status is not None and status != "" and not validate_status(str(status)):
			raise InvalidStatusError()
		status_filter = SubmissionStatus(status) if status else None

		with storage_errors("retrieve submissions"):
			items, total = await self._database.list_submissions_page(
				limit=limit,
				offset=(page - 1) * limit,
				status=status_filter,
				sort_by=self._sort_field(sort_by),
				direction=self._sort_direction(sort_direction),
			)
			projects = await self._database.get_projects_by_ids([s.approved_project_id for s in items])
			stats = await self._database.submission_status_stats()

		return SubmissionPage(
			submissions=[self._detail(s, projects.get(s.approved_project_id)) for s in items],
			pagination=Pagination(
				page=page,
				limit=limit,
				total=total,
				total_pages=math.ceil(total / limit) if limit else 0,
			),
			stats=stats,
		)

	# -------------
	# Review
	# -------------
	async def review(
		self,
		submission_id: str,
		status: SubmissionStatus | str,
		feedback: Optional[str] = None,
		changes_requested: Optional[Sequence[str]] = None,
		reviewer_id: Optional[int] = None,
	) -> ReviewAck:
		"""
		Apply a review decision.

		Status, feedback, requested changes and reviewer are overwritten (last
		writer wins). `review_started_at` is stamped on the first entry into
		under_review only; `reviewed_at` on every decision. The first approval of
		a submission without a linked project promotes it; promotion and the
		status change are written in one transaction, so a failed promotion
		leaves the submission untouched.
		"""
		if not validate_status(str(status)):
			raise InvalidStatusError()
		ensure_submission_id(submission_id)
		new_status = SubmissionStatus(status)

		with storage_errors("retrieve submission"):
			current = await self._database.get_submission_by_id(submission_id)
		if current is None:
			raise SubmissionNotFoundError()

		previous_status = current.status
		now = self._clock.now()
		review = SubmissionReview(
			id=current.id,
			status=new_status,
			feedback=feedback,
			changes_requested=remove_empty(changes_requested) if changes_requested is not None else None,
			reviewer_id=reviewer_id,
		)
		if new_status == SubmissionStatus.UNDER_REVIEW and current.review_started_at is None:
			review.review_started_at = now
		if new_status in SubmissionStatus.decisions():
			review.reviewed_at = now
		if (
			new_status == SubmissionStatus.APPROVED
			and previous_status != SubmissionStatus.APPROVED
			and current.approved_project_id is None
		):
			review.promotion = self._project_from_submission(current)
			review.published_at = now

		with storage_errors("update submission", on_integrity=DuplicateProjectNameError):
			try:
				updated, project = await self._database.apply_review(review)
			except LookupError as exc:
				raise SubmissionNotFoundError() from exc

		logger.info(
			"Submission %s: %s -> %s by reviewer %s",
			updated.id, previous_status.value, updated.status.value, reviewer_id,
		)
		if project is not None:
			logger.info("Submission %s promoted to project %s (%r)", updated.id, project.id, project.name)
		elif review.promotion is not None:
			logger.warning("Submission %s was already promoted by a concurrent review", updated.id)

		return ReviewAck(
			submission_id=updated.id,
			previous_status=previous_status,
			new_status=updated.status,
			project_id=updated.approved_project_id,
			promoted=project is not None,
			message=self._lz.get("submission.reviewed.message"),
		)

	# -------------
	# Helpers
	# -------------
	@staticmethod
	def _project_from_submission(submission: SubmissionRead) -> ProjectCreate:
		return ProjectCreate(
			name=submission.project_name,
			logo=submission.photo_link,
			description=submission.description,
			categories=list(submission.categories),
			event=submission.event,
			award="",
			likes=0,
			comments=0,
			how_to_play=submission.how_to_play,
			play_url=submission.play_link,
			github_url=submission.github_link,
			website_url=submission.website_link,
			submission_id=submission.id,
			team_members=decode_team_members(submission.team_members),
		)

	@staticmethod
	def _detail(submission: SubmissionRead, project: Optional[ProjectRead]) -> SubmissionDetail:
		try:
			team = decode_team_members(submission.team_members)
		except DeserializationError:
			logger.warning("Submission %s has a corrupt team payload", submission.id)
			team = []

		timeline = {"submitted": submission.submitted_at}
		if submission.review_started_at is not None:
			timeline["review_started"] = submission.review_started_at
		if submission.reviewed_at is not None:
			timeline["review_completed"] = submission.reviewed_at
		if submission.published_at is not None:
			timeline["published"] = submission.published_at

		return SubmissionDetail(
			**submission.model_dump(),
			team=team,
			project=project,
			timeline=timeline,
		)

	@staticmethod
	def _sort_field(value: SubmissionSortField | str | None) -> SubmissionSortField:
		if not value:
			return SubmissionSortField.SUBMITTED_AT
		try:
			return SubmissionSortField(str(value).lower())
		except ValueError:
			logger.debug("Unknown submission sort field %r; using submitted_at", value)
			return SubmissionSortField.SUBMITTED_AT

	@staticmethod
	def _sort_direction(value: SortDirection | str | None) -> SortDirection:
		if not value:
			return SortDirection.DESC
		try:
			return SortDirection(str(value).lower())
		except ValueError:
			return SortDirection.DESC


instrument_service_class(
	SubmissionService,
	prefix="services.submission",
	exclude=("get_submission", "list_submissions"),
	actor_fields=("reviewer_id",),
)
