import logging
from typing import ClassVar, Iterable, Mapping, Optional, Self

from devhub.db.database import DataBase
from devhub.db.schemas.project import ProjectExtrasUpdate, ProjectRead
from devhub.db.schemas.submission import ExtrasAck
from devhub.db.schemas.team_member import TeamPhoto
from devhub.i18n import Localizer
from devhub.services.audit_log import instrument_service_class
from devhub.services.errors import ProjectNotFoundError, SubmissionNotFoundError, storage_errors
from devhub.services.submission import ensure_submission_id
from devhub.utils.sentinels import MISSING, Missing

logger = logging.getLogger(__name__)


def photo_lookup(team_photos: Iterable[TeamPhoto | Mapping[str, str]]) -> dict[str, str]:
	"""
	Build member name -> photo url. Later entries override earlier ones;
	entries missing the member name or the url are skipped.
	"""
	lookup: dict[str, str] = {}
	for entry in team_photos:
		photo = entry if isinstance(entry, TeamPhoto) else TeamPhoto.model_validate(entry)
		if photo.member_name and photo.photo_url:
			lookup[photo.member_name] = photo.photo_url
	return lookup


def member_images(project: ProjectRead, lookup: Mapping[str, str]) -> dict[int, str]:
	# members are matched by display name; every member sharing a name gets the url
	return {m.id: lookup[m.name] for m in project.team_members if m.name in lookup}


class ProjectExtrasService:
	"""Post-approval patches (award, team member photos) on published projects."""

	_instance: ClassVar[Optional["ProjectExtrasService"]] = None

	def __new__(cls, *args, **kwargs) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self, localizer: Optional[Localizer] = None) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database = DataBase()
		self._lz = localizer or Localizer()
		self._initialized = True

	async def update_extras(
		self,
		submission_id: str,
		award: str | Missing = MISSING,
		team_photos: Optional[Iterable[TeamPhoto | Mapping[str, str]]] = None,
		reviewer_id: Optional[int] = None,
	) -> ExtrasAck:
		ensure_submission_id(submission_id)
		with storage_errors("retrieve submission"):
			submission = await self._database.get_submission_by_id(submission_id)
			if submission is None:
				raise SubmissionNotFoundError()
			if submission.approved_project_id is None:
				raise ProjectNotFoundError("Project not found - submission may not be approved yet")
			project = await self._database.get_project_by_id(submission.approved_project_id)
		if project is None:
			raise ProjectNotFoundError()

		images = member_images(project, photo_lookup(team_photos or []))
		update = ProjectExtrasUpdate(id=project.id, member_images=images)
		if award is not None and not isinstance(award, Missing):
			update.award = award

		with storage_errors("update project extras"):
			try:
				updated = await self._database.update_project_extras(update)
			except LookupError as exc:
				raise ProjectNotFoundError() from exc

		logger.info(
			"Project %s extras updated by %s: award=%s photos=%d",
			updated.id, reviewer_id, "set" if not isinstance(update.award, Missing) else "-", len(images),
		)
		return ExtrasAck(
			submission_id=submission_id,
			project_id=updated.id,
			updated_members=len(images),
			message=self._lz.get("submission.extras.message"),
		)


instrument_service_class(ProjectExtrasService, prefix="services.project_extras", actor_fields=("reviewer_id",))
