# db/database.py
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, ClassVar, Self, Any, List, Tuple, Sequence

from sqlalchemy import select, func, update, or_
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import selectinload

from devhub.config import Settings
from devhub.db.enums import SubmissionStatus, SortDirection, SubmissionSortField, ProjectSortField
from devhub.db.models._base import Base
from devhub.db.models.submission import Submission
from devhub.db.models.project import Project
from devhub.db.models.team_member import TeamMember
from devhub.db.models.admin_user import AdminUser
from devhub.db.models.audit_log import AuditLog
from devhub.db.schemas.submission import SubmissionCreate, SubmissionRead, SubmissionReview
from devhub.db.schemas.project import ProjectCreate, ProjectRead, ProjectExtrasUpdate, ProjectFilterOptions
from devhub.db.schemas.admin_user import AdminUserCreate, AdminUserRead
from devhub.db.schemas.audit_log import AuditLogCreate, AuditLogRead
from devhub.utils.sentinels import provided


class DataBase():
    """
    Async SQLAlchemy database singleton.
    Usage:
        db = DataBase()  # same instance everywhere
        async with db.session() as s:
            ...

    Every public method opens its own session (one transaction) and returns
    pydantic DTOs; ORM objects never leave this module. Missing rows raise
    LookupError, unique-constraint violations propagate as IntegrityError.
    """
    _instance: ClassVar[Optional["DataBase"]] = None

    def __new__(cls, *args: Any, **kwargs: Any) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)

        return cls._instance

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None) -> None:
        if getattr(self, "_initialized", False):
            return

        settings = Settings()
        url = url or settings.database_url
        echo = settings.db_echo if echo is None else echo
        self._engine: AsyncEngine = create_async_engine(url, echo=echo, pool_pre_ping=True)
        self._sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self._engine,
            expire_on_commit=False,
            autoflush=False,
        )

        self._initialized = True

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provides an AsyncSession with safe commit/rollback semantics.
        """
        session: AsyncSession = self._sessionmaker()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # --- schema management helpers ---

    async def create_all(self) -> None:
        """
        Create tables based on Base metadata. Use only in dev/tests; prefer Alembic in prod.
        """
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    # ---------- Submission: reads ----------

    async def get_submission_by_id(self, sub_id: str) -> Optional[SubmissionRead]:
        """
        Fetch a single submission by id.
        """
        if not sub_id:
            return None
        async with self.session() as s:
            db_obj = await s.get(Submission, sub_id)
            return SubmissionRead.model_validate(db_obj) if db_obj else None

    async def get_submission_by_project_name(self, project_name: str) -> Optional[SubmissionRead]:
        """Exact-match lookup used by the duplicate check at intake."""
        if not project_name:
            return None
        async with self.session() as s:
            stmt = select(Submission).where(Submission.project_name == project_name)
            row = (await s.execute(stmt)).scalar_one_or_none()
        return SubmissionRead.model_validate(row) if row is not None else None

    async def list_submissions_page(
        self,
        *,
        limit: int,
        offset: int,
        status: SubmissionStatus | None = None,
        sort_by: SubmissionSortField = SubmissionSortField.SUBMITTED_AT,
        direction: SortDirection = SortDirection.DESC,
    ) -> Tuple[list[SubmissionRead], int]:
        """
        Paginated submissions listing optionally filtered by status.
        Sort column comes from a whitelist enum; id breaks ties.
        """
        limit = max(0, int(limit))
        offset = max(0, int(offset))
        column = getattr(Submission, SubmissionSortField(sort_by).value)
        ordering = (
            (column.asc(), Submission.id.asc())
            if direction == SortDirection.ASC
            else (column.desc(), Submission.id.desc())
        )

        async with self.session() as s:
            total_stmt = select(func.count(Submission.id))
            items_stmt = select(Submission).order_by(*ordering).limit(limit).offset(offset)
            if status is not None:
                total_stmt = total_stmt.where(Submission.status == status)
                items_stmt = items_stmt.where(Submission.status == status)

            total = int((await s.execute(total_stmt)).scalar_one())
            if limit == 0:
                return [], total

            rows = (await s.execute(items_stmt)).scalars().all()

        return [SubmissionRead.model_validate(r) for r in rows], total

    async def count_submissions(self, status: SubmissionStatus | None = None) -> int:
        async with self.session() as s:
            stmt = select(func.count(Submission.id))
            if status is not None:
                stmt = stmt.where(Submission.status == status)
            return int((await s.execute(stmt)).scalar_one() or 0)

    async def submission_status_stats(self) -> dict[str, int]:
        """
        Histogram of submissions per status: one COUNT per status value,
        zero entries included.
        """
        stats: dict[str, int] = {}
        for status in SubmissionStatus:
            stats[status.value] = await self.count_submissions(status)
        return stats

    # ---------- Submission: writes ----------

    async def create_submission(self, data: SubmissionCreate) -> SubmissionRead:
        """
        Insert a new submission row.
        Raises IntegrityError when the id or project name is already taken.
        """
        async with self.session() as s:
            db_obj = Submission(
                id=data.id,
                project_name=data.project_name,
                description=data.description,
                photo_link=data.photo_link,
                event=data.event,
                categories=list(data.categories),
                team_members=data.team_members,
                github_link=data.github_link,
                website_link=data.website_link,
                play_link=data.play_link,
                how_to_play=data.how_to_play,
                additional_notes=data.additional_notes,
                status=data.status,
                submitted_at=data.submitted_at,
            )
            s.add(db_obj)
            await s.flush()
            await s.refresh(db_obj)
            return SubmissionRead.model_validate(db_obj)

    async def apply_review(self, review: SubmissionReview) -> Tuple[SubmissionRead, Optional[ProjectRead]]:
        """
        Persist a review transition, and the promotion it carries, in one transaction.

        Promotion first claims the submission with a conditional UPDATE
        (`approved_project_id IS NULL AND published_at IS NULL`). When another
        reviewer already claimed it the promotion is skipped and only the review
        fields are written; otherwise the project and its team members are
        inserted and linked back to the submission.

        Returns:
            (submission snapshot, newly created project or None)

        Raises:
            LookupError: submission does not exist.
            IntegrityError: project name already taken; nothing is written.
        """
        async with self.session() as s:
            db_obj = await s.get(Submission, review.id)
            if db_obj is None:
                raise LookupError("Submission not found.")

            db_obj.status = review.status
            db_obj.feedback = review.feedback
            db_obj.changes_requested = list(review.changes_requested) if review.changes_requested is not None else None
            db_obj.reviewer_id = review.reviewer_id
            if provided(review.review_started_at):
                db_obj.review_started_at = review.review_started_at
            if provided(review.reviewed_at):
                db_obj.reviewed_at = review.reviewed_at

            project_id: Optional[int] = None
            if review.promotion is not None:
                claim = await s.execute(
                    update(Submission)
                    .where(
                        Submission.id == review.id,
                        Submission.approved_project_id.is_(None),
                        Submission.published_at.is_(None),
                    )
                    .values(published_at=review.published_at)
                    .execution_options(synchronize_session=False)
                )
                if claim.rowcount == 1:
                    project = self._project_from_payload(review.promotion)
                    s.add(project)
                    await s.flush()
                    project_id = project.id
                    db_obj.approved_project_id = project.id
                    db_obj.published_at = review.published_at

            await s.flush()
            await s.refresh(db_obj)
            submission = SubmissionRead.model_validate(db_obj)
            created = await self._load_project(s, project_id) if project_id is not None else None

        return submission, (ProjectRead.model_validate(created) if created is not None else None)

    # ---------- Project: reads ----------

    async def get_project_by_id(self, project_id: int) -> Optional[ProjectRead]:
        """Fetch a project with its team members."""
        if project_id is None:
            return None
        async with self.session() as s:
            row = await self._load_project(s, project_id)
        return ProjectRead.model_validate(row) if row is not None else None

    async def get_projects_by_ids(self, project_ids: Sequence[int]) -> dict[int, ProjectRead]:
        """Bulk fetch {project_id: project} in one round trip; unknown ids are absent."""
        keys = {pid for pid in project_ids if pid is not None}
        if not keys:
            return {}
        async with self.session() as s:
            stmt = (
                select(Project)
                .options(selectinload(Project.team_members))
                .where(Project.id.in_(keys))
            )
            rows = (await s.execute(stmt)).scalars().all()
        return {row.id: ProjectRead.model_validate(row) for row in rows}

    async def get_project_by_name(self, name: str) -> Optional[ProjectRead]:
        if not name:
            return None
        async with self.session() as s:
            stmt = (
                select(Project)
                .options(selectinload(Project.team_members))
                .where(Project.name == name)
            )
            row = (await s.execute(stmt)).scalar_one_or_none()
        return ProjectRead.model_validate(row) if row is not None else None

    async def list_projects_page(
        self,
        *,
        limit: int,
        offset: int,
        categories: Sequence[str] | None = None,
        event: str | None = None,
        award: str | None = None,
        search: str | None = None,
        sort_by: ProjectSortField = ProjectSortField.CREATED_AT,
        direction: SortDirection = SortDirection.DESC,
    ) -> Tuple[list[ProjectRead], int]:
        """
        Paginated projects listing.
        The category filter is an array overlap and needs PostgreSQL.
        """
        limit = max(0, int(limit))
        offset = max(0, int(offset))
        filters = self._project_filters(categories=categories, event=event, award=award, search=search)
        column = getattr(Project, ProjectSortField(sort_by).value)
        ordering = (
            (column.asc(), Project.id.asc())
            if direction == SortDirection.ASC
            else (column.desc(), Project.id.desc())
        )

        async with self.session() as s:
            total = int((await s.execute(select(func.count(Project.id)).where(*filters))).scalar_one())
            if limit == 0:
                return [], total

            items_stmt = (
                select(Project)
                .options(selectinload(Project.team_members))
                .where(*filters)
                .order_by(*ordering)
                .limit(limit)
                .offset(offset)
            )
            rows: List[Project] = (await s.execute(items_stmt)).scalars().all()

        return [ProjectRead.model_validate(r) for r in rows], total

    async def count_projects(
        self,
        *,
        categories: Sequence[str] | None = None,
        event: str | None = None,
        award: str | None = None,
        search: str | None = None,
    ) -> int:
        filters = self._project_filters(categories=categories, event=event, award=award, search=search)
        async with self.session() as s:
            return int((await s.execute(select(func.count(Project.id)).where(*filters))).scalar_one() or 0)

    async def list_project_filter_options(self) -> ProjectFilterOptions:
        """Distinct categories, events and (non-empty) awards over all projects."""
        async with self.session() as s:
            category_lists = (await s.execute(select(Project.categories))).scalars().all()
            events = (await s.execute(select(Project.event).distinct().order_by(Project.event))).scalars().all()
            awards = (
                await s.execute(
                    select(Project.award).where(Project.award != "").distinct().order_by(Project.award)
                )
            ).scalars().all()

        categories = sorted({c for cats in category_lists for c in (cats or [])})
        return ProjectFilterOptions(categories=categories, events=list(events), awards=list(awards))

    # ---------- Project: writes ----------

    async def create_project(self, payload: ProjectCreate) -> ProjectRead:
        """
        Insert a project together with its team members (single transaction).
        Raises IntegrityError on a duplicate name or submission reference.
        """
        async with self.session() as s:
            project = self._project_from_payload(payload)
            s.add(project)
            await s.flush()
            row = await self._load_project(s, project.id)
            return ProjectRead.model_validate(row)

    async def update_project_extras(self, payload: ProjectExtrasUpdate) -> ProjectRead:
        """
        Overwrite the award (when provided) and member images keyed by
        team_member.id; project and member rows are written together.
        """
        async with self.session() as s:
            project = await self._load_project(s, payload.id)
            if project is None:
                raise LookupError("Project not found.")

            if provided(payload.award):
                project.award = payload.award
            for member in project.team_members:
                if member.id in payload.member_images:
                    member.image = payload.member_images[member.id]

            await s.flush()
            row = await self._load_project(s, payload.id)
            return ProjectRead.model_validate(row)

    async def increment_project_likes(self, project_id: int) -> int:
        """
        Atomic `likes = likes + 1`; returns the new counter.
        """
        async with self.session() as s:
            result = await s.execute(
                update(Project)
                .where(Project.id == project_id)
                .values(likes=Project.likes + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise LookupError("Project not found.")
            likes = (await s.execute(select(Project.likes).where(Project.id == project_id))).scalar_one()
        return int(likes)

    # ---------- Admin users ----------

    async def count_admin_users(self) -> int:
        async with self.session() as s:
            return int((await s.execute(select(func.count(AdminUser.id)))).scalar_one() or 0)

    async def create_admin_user(self, payload: AdminUserCreate) -> AdminUserRead:
        async with self.session() as s:
            admin = AdminUser(
                username=payload.username,
                password_hash=payload.password_hash,
                is_active=payload.is_active,
            )
            s.add(admin)
            await s.flush()
            await s.refresh(admin)
            return AdminUserRead.model_validate(admin)

    # ---------------------------------
    # Audit log helpers
    # ---------------------------------

    async def create_audit_log(self, payload: AuditLogCreate) -> AuditLogRead:
        """Persist a new audit log entry."""
        async with self.session() as s:
            record = AuditLog(
                actor_id=payload.actor_id,
                action=payload.action,
                payload=dict(payload.payload or {}),
            )
            s.add(record)
            await s.flush()
            await s.refresh(record)
            return AuditLogRead.model_validate(record)

    async def list_audit_logs(
        self,
        *,
        limit: int = 100,
        offset: int = 0,
        actor_id: int | None = None,
        action: str | None = None,
    ) -> tuple[list[AuditLogRead], int]:
        """Return paginated audit log entries filtered by actor/action."""
        limit = max(0, int(limit))
        offset = max(0, int(offset))

        async with self.session() as s:
            stmt = select(AuditLog).order_by(AuditLog.created_at.desc())
            count_stmt = select(func.count(AuditLog.id))
            if actor_id is not None:
                stmt = stmt.where(AuditLog.actor_id == actor_id)
                count_stmt = count_stmt.where(AuditLog.actor_id == actor_id)
            if action:
                stmt = stmt.where(AuditLog.action == action)
                count_stmt = count_stmt.where(AuditLog.action == action)

            if limit:
                stmt = stmt.limit(limit)
            if offset:
                stmt = stmt.offset(offset)

            rows = (await s.execute(stmt)).scalars().all()
            total = int((await s.execute(count_stmt)).scalar_one())

        return [AuditLogRead.model_validate(row) for row in rows], total

    # ---------- internals ----------

    @staticmethod
    def _project_from_payload(payload: ProjectCreate) -> Project:
        return Project(
            name=payload.name,
            logo=payload.logo,
            description=payload.description,
            categories=list(payload.categories),
            event=payload.event,
            award=payload.award,
            likes=payload.likes,
            comments=payload.comments,
            how_to_play=payload.how_to_play,
            play_url=payload.play_url,
            github_url=payload.github_url,
            website_url=payload.website_url,
            submission_id=payload.submission_id,
            team_members=[
                TeamMember(name=m.name, twitter=m.twitter, image="")
                for m in payload.team_members
            ],
        )

    @staticmethod
    async def _load_project(s: AsyncSession, project_id: int) -> Optional[Project]:
        stmt = (
            select(Project)
            .options(selectinload(Project.team_members))
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        return (await s.execute(stmt)).scalar_one_or_none()

    @staticmethod
    def _project_filters(
        *,
        categories: Sequence[str] | None,
        event: str | None,
        award: str | None,
        search: str | None,
    ) -> list:
        filters = []
        if categories:
            filters.append(Project.categories.overlap(list(categories)))
        if event:
            filters.append(Project.event == event)
        if award:
            filters.append(Project.award == award)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(Project.name.ilike(pattern), Project.description.ilike(pattern)))
        return filters
