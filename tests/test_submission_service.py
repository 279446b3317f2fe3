import pytest

from devhub.db.enums import SubmissionStatus
from devhub.db.schemas.project import ProjectCreate
from devhub.db.schemas.submission import SubmissionCreate
from devhub.services.errors import (
    DeserializationError,
    DuplicateProjectNameError,
    DuplicateSubmissionError,
    InternalError,
    InvalidCategoriesError,
    InvalidStatusError,
    InvalidSubmissionIdError,
    SubmissionNotFoundError,
)
from devhub.services.identifiers import generate_submission_id, is_valid_submission_id


def _project(name: str, **overrides) -> ProjectCreate:
    data = dict(
        name=name,
        description="Existing project",
        categories=["Gaming"],
        event="Hackathon 2023",
        how_to_play="Play it",
        play_url="https://example.com/play",
    )
    data.update(overrides)
    return ProjectCreate(**data)


# -------------
# Intake
# -------------
async def test_submit_creates_pending_submission(submissions, make_request, clock):
    ack = await submissions.submit(make_request())

    assert ack.success
    assert is_valid_submission_id(ack.submission_id)
    assert ack.message == "Your project has been submitted successfully!"
    assert ack.estimated_review_time == "2-3 business days"
    assert len(ack.next_steps) == 3
    assert ack.submission_id in ack.next_steps[2]

    detail = await submissions.get_submission(ack.submission_id)
    assert detail.status == SubmissionStatus.PENDING
    assert detail.project_name == "MonadSwap"
    assert detail.submitted_at == clock.now()
    assert [m.name for m in detail.team] == ["Alice", "Bob"]
    assert detail.timeline == {"submitted": clock.now()}
    assert detail.project is None
    assert detail.approved_project_id is None


async def test_invalid_submission_is_not_stored(submissions, make_request, database):
    with pytest.raises(InvalidCategoriesError):
        await submissions.submit(make_request(categories=["Social"]))
    assert await database.count_submissions() == 0


async def test_duplicate_submission_rejected(submissions, make_request, database):
    await submissions.submit(make_request())

    with pytest.raises(DuplicateSubmissionError):
        await submissions.submit(make_request(description="Another try"))
    assert await database.count_submissions() == 1


async def test_duplicate_project_name_rejected(submissions, make_request, database):
    await database.create_project(_project("MonadSwap"))

    with pytest.raises(DuplicateProjectNameError):
        await submissions.submit(make_request())
    assert await database.count_submissions() == 0


# -------------
# Reads
# -------------
async def test_get_submission_checks_id_format(submissions):
    with pytest.raises(InvalidSubmissionIdError):
        await submissions.get_submission("SUB-123")


async def test_get_unknown_submission(submissions):
    with pytest.raises(SubmissionNotFoundError):
        await submissions.get_submission(generate_submission_id())


async def test_list_submissions_with_filter_and_stats(submissions, make_request, clock):
    for name in ("Alpha", "Bravo", "Charlie"):
        await submissions.submit(make_request(project_name=name))
        clock.advance(seconds=1)
    charlie = (await submissions.list_submissions(limit=1)).submissions[0]
    assert charlie.project_name == "Charlie"
    await submissions.review(charlie.id, "rejected", reviewer_id=7)

    page = await submissions.list_submissions(status="pending", sort_by="project_name", sort_direction="asc")
    assert [s.project_name for s in page.submissions] == ["Alpha", "Bravo"]
    assert page.pagination.total == 2
    assert page.pagination.total_pages == 1
    assert page.stats == {
        "pending": 2,
        "under_review": 0,
        "approved": 0,
        "rejected": 1,
        "requires_changes": 0,
    }

    second = await submissions.list_submissions(page=2, limit=2, sort_direction="asc")
    assert [s.project_name for s in second.submissions] == ["Charlie"]
    assert second.pagination.total_pages == 2


async def test_list_submissions_limit_is_capped(submissions, make_request):
    await submissions.submit(make_request())
    page = await submissions.list_submissions(page=0, limit=10_000)
    assert page.pagination.page == 1
    assert page.pagination.limit == 100


async def test_list_submissions_rejects_unknown_status(submissions):
    with pytest.raises(InvalidStatusError):
        await submissions.list_submissions(status="published")


# -------------
# Review
# -------------
async def test_review_started_is_stamped_once(submissions, make_request, clock):
    ack = await submissions.submit(make_request())
    first = clock.advance(hours=1)
    await submissions.review(ack.submission_id, SubmissionStatus.UNDER_REVIEW, reviewer_id=1)
    clock.advance(hours=1)
    await submissions.review(ack.submission_id, "under_review", feedback="still looking", reviewer_id=2)

    detail = await submissions.get_submission(ack.submission_id)
    assert detail.status == SubmissionStatus.UNDER_REVIEW
    assert detail.review_started_at == first
    assert detail.reviewed_at is None
    assert detail.reviewer_id == 2
    assert detail.feedback == "still looking"


async def test_requires_changes_cleans_requested_changes(submissions, make_request, clock):
    ack = await submissions.submit(make_request())
    decided = clock.advance(days=1)
    result = await submissions.review(
        ack.submission_id,
        "requires_changes",
        feedback="Almost there",
        changes_requested=["  add a README ", "", "   "],
        reviewer_id=3,
    )

    assert result.previous_status == SubmissionStatus.PENDING
    assert result.new_status == SubmissionStatus.REQUIRES_CHANGES
    assert not result.promoted
    detail = await submissions.get_submission(ack.submission_id)
    assert detail.changes_requested == ["add a README"]
    assert detail.reviewed_at == decided
    assert detail.timeline["review_completed"] == decided


async def test_review_rejects_unknown_status(submissions, make_request):
    ack = await submissions.submit(make_request())
    with pytest.raises(InvalidStatusError):
        await submissions.review(ack.submission_id, "published")


async def test_review_unknown_submission(submissions):
    with pytest.raises(SubmissionNotFoundError):
        await submissions.review(generate_submission_id(), "approved")


async def test_first_approval_promotes_once(submissions, make_request, database, clock):
    ack = await submissions.submit(make_request())
    approved_at = clock.advance(days=2)

    result = await submissions.review(ack.submission_id, "approved", feedback="Great", reviewer_id=9)
    assert result.promoted
    assert result.project_id is not None
    assert result.message == "Submission reviewed successfully"

    detail = await submissions.get_submission(ack.submission_id)
    assert detail.status == SubmissionStatus.APPROVED
    assert detail.published_at == approved_at
    assert detail.reviewed_at == approved_at
    assert detail.approved_project_id == result.project_id
    assert detail.timeline["published"] == approved_at

    project = detail.project
    assert project.name == "MonadSwap"
    assert project.submission_id == ack.submission_id
    assert project.award == ""
    assert project.likes == 0 and project.comments == 0
    assert project.play_url == "https://monadswap.xyz"
    assert [(m.name, m.twitter, m.image) for m in project.team_members] == [
        ("Alice", "@alice", ""),
        ("Bob", "@bob", ""),
    ]

    # approving again or moving away keeps the single published project
    clock.advance(days=1)
    again = await submissions.review(ack.submission_id, "approved", reviewer_id=9)
    assert not again.promoted
    assert again.project_id == result.project_id
    await submissions.review(ack.submission_id, "rejected", reviewer_id=9)
    await submissions.review(ack.submission_id, "approved", reviewer_id=9)

    assert await database.count_projects() == 1
    detail = await submissions.get_submission(ack.submission_id)
    assert detail.approved_project_id == result.project_id
    assert detail.published_at == approved_at


async def test_corrupt_team_payload_blocks_promotion(submissions, database, clock):
    submission_id = generate_submission_id(clock.now())
    await database.create_submission(
        SubmissionCreate(
            id=submission_id,
            project_name="Broken",
            description="Corrupt team data",
            event="Hackathon 2024",
            categories=["AI"],
            team_members="{not json",
            play_link="https://broken.example",
            how_to_play="n/a",
            submitted_at=clock.now(),
        )
    )

    detail = await submissions.get_submission(submission_id)
    assert detail.team == []

    with pytest.raises(DeserializationError):
        await submissions.review(submission_id, "approved", reviewer_id=1)

    detail = await submissions.get_submission(submission_id)
    assert detail.status == SubmissionStatus.PENDING
    assert detail.approved_project_id is None
    assert await database.count_projects() == 0


async def test_promotion_name_conflict_leaves_submission_untouched(submissions, make_request, database):
    ack = await submissions.submit(make_request())
    await database.create_project(_project("MonadSwap"))

    with pytest.raises(DuplicateProjectNameError):
        await submissions.review(ack.submission_id, "approved", reviewer_id=1)

    detail = await submissions.get_submission(ack.submission_id)
    assert detail.status == SubmissionStatus.PENDING
    assert detail.reviewed_at is None
    assert detail.published_at is None
    assert await database.count_projects() == 1


async def test_review_is_audited(submissions, make_request, audit):
    ack = await submissions.submit(make_request())
    await submissions.review(ack.submission_id, "under_review", reviewer_id=42)

    entries, total = await audit.list_entries(action="services.submission.review")
    assert total == 1
    assert entries[0].actor_id == 42
    assert entries[0].payload["result"]["new_status"] == "under_review"

    with pytest.raises(InvalidStatusError):
        await submissions.review(ack.submission_id, "nope", reviewer_id=42)
    _, errors = await audit.list_entries(action="services.submission.review.error")
    assert errors == 1


async def test_generated_id_collision_is_internal_error(submissions, make_request, database, monkeypatch):
    fixed_id = "SUB-1749035470531-4W6UZJ"
    monkeypatch.setattr("devhub.services.submission.generate_submission_id", lambda at=None: fixed_id)

    await submissions.submit(make_request(project_name="Alpha"))
    with pytest.raises(InternalError):
        await submissions.submit(make_request(project_name="Bravo"))

    assert await database.count_submissions() == 1
