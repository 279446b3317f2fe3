# db/models/submission.py
from datetime import datetime
from typing import List, Optional
from sqlalchemy import Enum as SAEnum, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from devhub.db.models._base import Base, StringList, utcnow
from devhub.db.enums import SubmissionStatus

class Submission(Base):
    __tablename__ = "submission"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    project_name: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    photo_link: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    event: Mapped[str] = mapped_column(String(128), nullable=False)
    categories: Mapped[List[str]] = mapped_column(StringList, nullable=False, default=list)
    # serialized [{"name", "twitter"}]; decoded by the lifecycle service
    team_members: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    github_link: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    website_link: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    play_link: Mapped[str] = mapped_column(String(1024), nullable=False)
    how_to_play: Mapped[str] = mapped_column(Text, nullable=False)
    additional_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[SubmissionStatus] = mapped_column(
        SAEnum(SubmissionStatus, name="submission_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SubmissionStatus.PENDING,
        index=True,
    )
    reviewer_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changes_requested: Mapped[Optional[List[str]]] = mapped_column(StringList, nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    review_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)

    approved_project_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("project.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow, onupdate=utcnow)

    approved_project: Mapped[Optional["Project"]] = relationship(foreign_keys=[approved_project_id])
