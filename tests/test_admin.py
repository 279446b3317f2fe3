from devhub.config import Settings
from devhub.services.admin import AdminService


def _fake_hasher(password: str) -> str:
    return f"hashed:{password}"


async def test_bootstrap_creates_admin_once(database, audit):
    service = AdminService()

    admin = await service.bootstrap_default_admin(lambda: "s3cret", _fake_hasher, username="root")
    assert admin is not None
    assert admin.username == "root"
    assert admin.is_active
    assert await database.count_admin_users() == 1

    assert await service.bootstrap_default_admin(lambda: "other", _fake_hasher) is None
    assert await database.count_admin_users() == 1

    entries, total = await audit.list_entries(action="services.admin.bootstrap")
    assert total == 1
    assert entries[0].payload["username"] == "root"


async def test_bootstrap_uses_settings_username(database, monkeypatch):
    monkeypatch.setenv("DEFAULT_ADMIN_USERNAME", "ops")
    Settings.reset()

    admin = await AdminService().bootstrap_default_admin(lambda: "pw", _fake_hasher)
    assert admin.username == "ops"
