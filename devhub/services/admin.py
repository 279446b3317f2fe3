import logging
from typing import Callable, ClassVar, Optional, Self

from devhub.config import Settings
from devhub.db.database import DataBase
from devhub.db.schemas.admin_user import AdminUserCreate, AdminUserRead
from devhub.services.audit_log import audit_logger
from devhub.services.errors import storage_errors

logger = logging.getLogger(__name__)

PasswordSource = Callable[[], str]
PasswordHasher = Callable[[str], str]


def settings_password_source() -> str:
	return Settings().default_admin_password


class AdminService:
	"""Admin account bookkeeping. Authentication itself lives outside this package."""

	_instance: ClassVar[Optional["AdminService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database = DataBase()
		self._initialized = True

	async def bootstrap_default_admin(
		self,
		password_source: PasswordSource,
		hasher: PasswordHasher,
		username: Optional[str] = None,
	) -> Optional[AdminUserRead]:
		"""
		One-time startup step: create the fallback admin account when no admin exists.

		Returns the created account, or None when admins are already present.
		"""
		with storage_errors("bootstrap default admin"):
			if await self._database.count_admin_users() > 0:
				return None

			admin = await self._database.create_admin_user(
				AdminUserCreate(
					username=username or Settings().default_admin_username,
					password_hash=hasher(password_source()),
				)
			)

		logger.info("Default admin %r created", admin.username)
		await audit_logger.record(action="services.admin.bootstrap", payload={"username": admin.username})
		return admin
