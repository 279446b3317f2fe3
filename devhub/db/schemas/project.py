# db/schemas/project.py
from datetime import datetime
from typing import List, Optional
from pydantic import Field
from devhub.db.schemas._base import OrmModel
from devhub.db.schemas.team_member import TeamMemberInput, TeamMemberRead
from devhub.utils.sentinels import Missing

class ProjectBase(OrmModel):
    name: str
    logo: str = ""
    description: str
    categories: List[str] = Field(default_factory=list)
    event: str
    award: str = ""
    how_to_play: str
    play_url: str
    github_url: Optional[str] = None
    website_url: Optional[str] = None
    submission_id: Optional[str] = None

class ProjectCreate(ProjectBase):
    likes: int = 0
    comments: int = 0
    team_members: List[TeamMemberInput] = Field(default_factory=list)

class ProjectRead(ProjectBase):
    id: int
    likes: int = 0
    comments: int = 0
    team_members: List[TeamMemberRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

class ProjectExtrasUpdate(OrmModel):
    id: int
    award: str | Missing = Missing()
    member_images: dict[int, str] = Field(default_factory=dict)  # team_member.id -> image url

class Pagination(OrmModel):
    page: int
    limit: int
    total: int
    total_pages: int

class ProjectFilterOptions(OrmModel):
    categories: List[str] = Field(default_factory=list)
    events: List[str] = Field(default_factory=list)
    awards: List[str] = Field(default_factory=list)

class ProjectPage(OrmModel):
    projects: List[ProjectRead]
    pagination: Pagination
    filters: ProjectFilterOptions
