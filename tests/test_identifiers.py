import re
from datetime import datetime

import pytest

from devhub.services.identifiers import generate_submission_id, is_valid_submission_id, random_hash
from devhub.utils.clock import epoch_millis

ID_PATTERN = re.compile(r"^SUB-\d+-[A-Z0-9]{6}$")


def test_generated_id_embeds_epoch_millis():
    at = datetime(2025, 6, 4, 11, 11, 10, 531000)
    submission_id = generate_submission_id(at)

    assert ID_PATTERN.match(submission_id)
    assert submission_id.split("-")[1] == str(epoch_millis(at))
    assert is_valid_submission_id(submission_id)


def test_generated_ids_differ():
    at = datetime(2025, 6, 4)
    assert len({generate_submission_id(at) for _ in range(50)}) == 50


def test_random_hash_alphabet():
    value = random_hash()
    assert len(value) == 6
    assert re.fullmatch(r"[A-Z0-9]{6}", value)


@pytest.mark.parametrize(
    "value",
    [
        "SUB-1749035470531-4W6UZJ",
        "SUB-1234567890-ABCDEF",
        # format gate only checks the lengths of the parts
        "SUB-abcdefghij-zzzzzz",
    ],
)
def test_valid_ids(value):
    assert is_valid_submission_id(value)


@pytest.mark.parametrize(
    "value",
    [
        "",
        "SUB-123",
        "SUB-123-AB",
        "SUB-123456789-ABCDEF",
        "SUB-1749035470531-ABCDE",
        "SUB-1749035470531-ABCDEFG",
        "XYZ-1749035470531-ABCDEF",
        "SUB-1749035470531-ABC-DEF",
        None,
    ],
)
def test_invalid_ids(value):
    assert not is_valid_submission_id(value)
