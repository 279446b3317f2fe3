# db/models/project.py
from datetime import datetime
from typing import List, Optional
from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from devhub.db.models._base import Base, StringList, utcnow

class Project(Base):
    __tablename__ = "project"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    logo: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False)
    categories: Mapped[List[str]] = mapped_column(StringList, nullable=False, default=list)
    event: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    award: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    how_to_play: Mapped[str] = mapped_column(Text, nullable=False)
    play_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    github_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    website_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    submission_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, unique=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow, onupdate=utcnow)

    team_members: Mapped[List["TeamMember"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TeamMember.id",
        lazy="selectin",
    )
