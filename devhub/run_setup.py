# run_setup.py
import asyncio
import logging

from devhub.config import Settings
from devhub.db.database import DataBase
from devhub.services.admin import AdminService, settings_password_source
from devhub.utils.security import hash_password


async def setup() -> None:
    """Create the schema and the fallback admin account. Safe to run repeatedly."""
    database = DataBase()
    await database.create_all()
    await AdminService().bootstrap_default_admin(settings_password_source, hash_password)
    await database.dispose()


def main() -> None:
    logging.basicConfig(level=Settings().log_level)
    asyncio.run(setup())


if __name__ == "__main__":
    main()
