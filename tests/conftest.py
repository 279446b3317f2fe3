from datetime import datetime

import pytest

from devhub.config import Settings
from devhub.db.database import DataBase
from devhub.db.schemas.submission import SubmissionRequest
from devhub.services.admin import AdminService
from devhub.services.audit_log import AuditLogService
from devhub.services.project import ProjectService
from devhub.services.project_extras import ProjectExtrasService
from devhub.services.submission import SubmissionService
from devhub.utils.clock import FixedClock

SINGLETONS = (
    Settings,
    DataBase,
    SubmissionService,
    ProjectExtrasService,
    ProjectService,
    AdminService,
)

START = datetime(2025, 6, 4, 11, 11, 10)


def _reset_singletons() -> None:
    for cls in SINGLETONS:
        cls._instance = None


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture
async def database(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'devhub.db'}")
    monkeypatch.setenv("AUDIT_ENABLED", "true")
    monkeypatch.setenv("DEFAULT_PAGE_SIZE", "10")
    monkeypatch.setenv("MAX_PAGE_SIZE", "100")
    _reset_singletons()

    db = DataBase()
    await db.create_all()
    yield db
    await db.drop_all()
    await db.dispose()
    _reset_singletons()


@pytest.fixture
def submissions(database, clock) -> SubmissionService:
    return SubmissionService(clock=clock)


@pytest.fixture
def extras(database) -> ProjectExtrasService:
    return ProjectExtrasService()


@pytest.fixture
def projects(database) -> ProjectService:
    return ProjectService()


@pytest.fixture
def audit(database) -> AuditLogService:
    return AuditLogService()


@pytest.fixture
def make_request():
    def factory(**overrides) -> SubmissionRequest:
        data = {
            "project_name": "MonadSwap",
            "description": "A DEX on Monad",
            "photo_link": "https://example.com/logo.png",
            "event": "Hackathon 2024",
            "categories": ["DeFi"],
            "team_members": [
                {"name": "Alice", "twitter": "@alice"},
                {"name": "Bob", "twitter": "@bob"},
            ],
            "github_link": "https://github.com/monadswap/app",
            "website_link": None,
            "play_link": "https://monadswap.xyz",
            "how_to_play": "Connect wallet",
            "additional_notes": None,
        }
        data.update(overrides)
        return SubmissionRequest.model_validate(data)

    return factory
