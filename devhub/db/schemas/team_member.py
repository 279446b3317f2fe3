# db/schemas/team_member.py
from typing import Optional
from pydantic import AliasChoices, Field, TypeAdapter
from devhub.db.schemas._base import OrmModel

class TeamMemberInput(OrmModel):
    name: str
    twitter: str = Field(validation_alias=AliasChoices("twitter", "handle"))

class TeamMemberRead(OrmModel):
    id: int
    project_id: int
    name: str
    twitter: str
    image: str = ""

class TeamPhoto(OrmModel):
    member_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("member_name", "memberName"))
    photo_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("photo_url", "photoUrl"))

# storage representation of Submission.team_members
TeamMemberList = TypeAdapter(list[TeamMemberInput])
