import pytest
from sqlalchemy.exc import IntegrityError

from devhub.db.enums import SubmissionStatus
from devhub.db.schemas.project import ProjectCreate, ProjectExtrasUpdate
from devhub.db.schemas.submission import SubmissionCreate, SubmissionReview
from devhub.db.schemas.team_member import TeamMemberInput
from devhub.services.identifiers import generate_submission_id


def _submission(clock, name="MonadSwap") -> SubmissionCreate:
    return SubmissionCreate(
        id=generate_submission_id(clock.now()),
        project_name=name,
        description="A DEX on Monad",
        event="Hackathon 2024",
        categories=["DeFi"],
        team_members='[{"name": "Alice", "twitter": "@alice"}]',
        play_link="https://monadswap.xyz",
        how_to_play="Connect wallet",
        submitted_at=clock.now(),
    )


def _promotion(submission_id: str, name="MonadSwap") -> ProjectCreate:
    return ProjectCreate(
        name=name,
        description="A DEX on Monad",
        categories=["DeFi"],
        event="Hackathon 2024",
        how_to_play="Connect wallet",
        play_url="https://monadswap.xyz",
        submission_id=submission_id,
        team_members=[TeamMemberInput(name="Alice", twitter="@alice")],
    )


async def test_submission_project_name_is_unique(database, clock):
    await database.create_submission(_submission(clock))
    with pytest.raises(IntegrityError):
        await database.create_submission(_submission(clock))


async def test_status_stats_include_zero_counts(database, clock):
    await database.create_submission(_submission(clock, "One"))
    await database.create_submission(_submission(clock, "Two"))

    stats = await database.submission_status_stats()
    assert stats["pending"] == 2
    assert set(stats) == {s.value for s in SubmissionStatus}
    assert sum(stats.values()) == 2


async def test_second_promotion_claim_is_skipped(database, clock):
    created = await database.create_submission(_submission(clock))
    review = SubmissionReview(
        id=created.id,
        status=SubmissionStatus.APPROVED,
        reviewed_at=clock.now(),
        promotion=_promotion(created.id),
        published_at=clock.now(),
    )

    first, project = await database.apply_review(review)
    second, none = await database.apply_review(review)

    assert project is not None
    assert none is None
    assert first.approved_project_id == project.id
    assert second.approved_project_id == project.id
    assert await database.count_projects() == 1


async def test_apply_review_unknown_submission(database):
    with pytest.raises(LookupError):
        await database.apply_review(SubmissionReview(id="SUB-0000000000-AAAAAA", status=SubmissionStatus.REJECTED))


async def test_project_extras_and_likes(database):
    project = await database.create_project(_promotion(None, name="Standalone"))
    alice = project.team_members[0]

    updated = await database.update_project_extras(
        ProjectExtrasUpdate(id=project.id, award="Runner-up", member_images={alice.id: "https://img/a.png"})
    )
    assert updated.award == "Runner-up"
    assert updated.team_members[0].image == "https://img/a.png"

    assert await database.increment_project_likes(project.id) == 1
    with pytest.raises(LookupError):
        await database.increment_project_likes(project.id + 100)

    found = await database.get_projects_by_ids([project.id, None, project.id + 100])
    assert list(found) == [project.id]
