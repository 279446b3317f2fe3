import logging
import math
from typing import ClassVar, Optional, Self, Sequence

from devhub.config import Settings
from devhub.db.database import DataBase
from devhub.db.enums import ProjectSortField, SortDirection
from devhub.db.schemas.project import Pagination, ProjectPage, ProjectRead
from devhub.services.audit_log import instrument_service_class
from devhub.services.errors import ProjectNotFoundError, storage_errors

logger = logging.getLogger(__name__)


class ProjectService:
	"""
	Read path over published projects plus the like counter.

	Strict rule: this service does **not** touch SQLAlchemy sessions or models.
	It only calls the DataBase facade and returns DTOs.
	"""

	_instance: ClassVar[Optional["ProjectService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database: DataBase = DataBase()
		self._settings = Settings()
		self._initialized = True

	async def get_project(self, project_id: int) -> ProjectRead:
		with storage_errors("retrieve project"):
			project = await self._database.get_project_by_id(project_id)
		if project is None:
			raise ProjectNotFoundError()
		return project

	async def list_projects(
		self,
		page: int = 1,
		limit: Optional[int] = None,
		categories: Sequence[str] | None = None,
		event: str | None = None,
		award: str | None = None,
		search: str | None = None,
		sort_by: ProjectSortField | str | None = None,
		sort_direction: SortDirection | str | None = None,
	) -> ProjectPage:
		page = page if page and page > 0 else 1
		limit = limit if limit and limit > 0 else self._settings.default_page_size
		limit = min(limit, self._settings.max_page_size)

		with storage_errors("retrieve projects"):
			items, total = await self._database.list_projects_page(
				limit=limit,
				offset=(page - 1) * limit,
				categories=categories,
				event=event,
				award=award,
				search=search.strip() if search else None,
				sort_by=self._sort_field(sort_by),
				direction=self._sort_direction(sort_direction),
			)
			filters = await self._database.list_project_filter_options()

		return ProjectPage(
			projects=items,
			pagination=Pagination(
				page=page,
				limit=limit,
				total=total,
				total_pages=math.ceil(total / limit) if limit else 0,
			),
			filters=filters,
		)

	async def like_project(self, project_id: int) -> int:
		"""Increment the like counter atomically; returns the new count."""
		await self.get_project(project_id)
		with storage_errors("like project"):
			try:
				likes = await self._database.increment_project_likes(project_id)
			except LookupError as exc:
				raise ProjectNotFoundError() from exc
		logger.debug("Project %s liked (%d)", project_id, likes)
		return likes

	@staticmethod
	def _sort_field(value: ProjectSortField | str | None) -> ProjectSortField:
		try:
			return ProjectSortField(str(value).lower()) if value else ProjectSortField.CREATED_AT
		except ValueError:
			return ProjectSortField.CREATED_AT

	@staticmethod
	def _sort_direction(value: SortDirection | str | None) -> SortDirection:
		try:
			return SortDirection(str(value).lower()) if value else SortDirection.DESC
		except ValueError:
			return SortDirection.DESC


instrument_service_class(ProjectService, prefix="services.project", exclude=("get_project", "list_projects"))
