# db/schemas/submission.py
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import Field
from devhub.db.schemas._base import OrmModel
from devhub.db.schemas.project import Pagination, ProjectCreate, ProjectRead
from devhub.db.schemas.team_member import TeamMemberInput
from devhub.db.enums import SubmissionStatus
from devhub.utils.sentinels import Missing

class SubmissionRequest(OrmModel):
    """Intake payload as handed over by the boundary layer."""
    project_name: str
    description: str
    photo_link: str = ""
    event: str
    categories: List[str] = Field(default_factory=list)
    team_members: List[TeamMemberInput] = Field(default_factory=list)
    github_link: Optional[str] = None
    website_link: Optional[str] = None
    play_link: str
    how_to_play: str
    additional_notes: Optional[str] = None

class SubmissionBase(OrmModel):
    project_name: str
    description: str
    photo_link: str = ""
    event: str
    categories: List[str] = Field(default_factory=list)
    team_members: str = "[]"
    github_link: Optional[str] = None
    website_link: Optional[str] = None
    play_link: str
    how_to_play: str
    additional_notes: Optional[str] = None
    status: SubmissionStatus = SubmissionStatus.PENDING

class SubmissionCreate(SubmissionBase):
    id: str
    submitted_at: datetime

class SubmissionRead(SubmissionBase):
    id: str
    reviewer_id: Optional[int] = None
    feedback: Optional[str] = None
    changes_requested: Optional[List[str]] = None
    submitted_at: datetime
    review_started_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    approved_project_id: Optional[int] = None

class SubmissionReview(OrmModel):
    """
    A fully decided review transition. `review_started_at`/`reviewed_at` left
    as Missing keep the stored value; `promotion` carries the project to
    materialize when this review is the first approval.
    """
    id: str
    status: SubmissionStatus
    feedback: Optional[str] = None
    changes_requested: Optional[List[str]] = None
    reviewer_id: Optional[int] = None
    review_started_at: datetime | Missing = Missing()
    reviewed_at: datetime | Missing = Missing()
    promotion: Optional[ProjectCreate] = None
    published_at: Optional[datetime] = None

class SubmitAck(OrmModel):
    success: bool = True
    submission_id: str
    message: str
    estimated_review_time: str
    next_steps: List[str]

class ReviewAck(OrmModel):
    success: bool = True
    submission_id: str
    previous_status: SubmissionStatus
    new_status: SubmissionStatus
    project_id: Optional[int] = None
    promoted: bool = False
    message: str

class ExtrasAck(OrmModel):
    success: bool = True
    submission_id: str
    project_id: int
    updated_members: int = 0
    message: str

class SubmissionDetail(SubmissionRead):
    team: List[TeamMemberInput] = Field(default_factory=list)
    project: Optional[ProjectRead] = None
    timeline: Dict[str, datetime] = Field(default_factory=dict)

class SubmissionPage(OrmModel):
    submissions: List[SubmissionDetail]
    pagination: Pagination
    stats: Dict[str, int]
