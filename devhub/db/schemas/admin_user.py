# db/schemas/admin_user.py
from datetime import datetime
from devhub.db.schemas._base import OrmModel

class AdminUserCreate(OrmModel):
    username: str
    password_hash: str
    is_active: bool = True

class AdminUserRead(OrmModel):
    id: int
    username: str
    is_active: bool
    created_at: datetime
