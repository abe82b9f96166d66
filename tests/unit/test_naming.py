"""Photo path/name synthesis."""

from datetime import UTC, date, datetime

import pytest

from fieldlog.application.naming import (
    clean_segment,
    file_extension,
    location_from_options,
    photo_label,
    synthesize_photo_location,
)
from fieldlog.domain.enums import PhotoCategory, PhotoRole, RecordType
from fieldlog.schemas.results import PhotoUploadOptions

CAPTURED = datetime(2024, 3, 5, 14, 7, 9, tzinfo=UTC)


def test_personal_location() -> None:
    loc = synthesize_photo_location(
        "Harbor Cleanup",
        RecordType.PERSONAL,
        person_name="Chen",
        photo_role=PhotoRole.DEPARTURE,
        record_date="2024-03-05",
        captured_at=CAPTURED,
        original_filename="IMG_0001.JPG",
    )
    assert loc.storage_key == "Harbor Cleanup/personal/Chen/2024-03-05"
    assert loc.filename == "2024-03-05_14-07-09_Chen_departure-mileage.jpg"
    assert loc.full_path == "Harbor Cleanup/personal/Chen/2024-03-05/2024-03-05_14-07-09_Chen_departure-mileage.jpg"


def test_coordinator_location_uses_category() -> None:
    loc = synthesize_photo_location(
        "Harbor Cleanup",
        "coordinator",
        category=PhotoCategory.WATER,
        record_date=date(2024, 3, 6),
        captured_at=CAPTURED,
        original_filename="water.png",
    )
    assert loc.storage_key == "Harbor Cleanup/coordinator/2024-03-06/water"
    assert loc.filename == "2024-03-06_14-07-09_coordinator_water-record.png"


def test_coordinator_without_category_falls_back_to_role() -> None:
    loc = synthesize_photo_location(
        "P", RecordType.COORDINATOR, photo_role="site", captured_at=CAPTURED
    )
    assert loc.storage_key == "P/coordinator/2024-03-05"
    assert loc.filename.endswith("_coordinator_site-record.jpg")


def test_missing_names_use_defaults() -> None:
    """No project and no person map to unknown-project / unknown-person."""
    loc = synthesize_photo_location(None, RecordType.PERSONAL, captured_at=CAPTURED)
    assert loc.storage_key == "unknown-project/personal/unknown-person/2024-03-05"
    assert loc.filename == "2024-03-05_14-07-09_unknown-person_unspecified.jpg"


def test_same_inputs_same_output() -> None:
    kwargs = dict(person_name="Lin", photo_role="return", captured_at=CAPTURED, original_filename="a.heic")
    first = synthesize_photo_location("Proj", "personal", **kwargs)
    second = synthesize_photo_location("Proj", "personal", **kwargs)
    assert first == second


def test_separators_inside_segment_are_replaced() -> None:
    loc = synthesize_photo_location(
        "North/South", RecordType.PERSONAL, person_name="a\\b", captured_at=CAPTURED
    )
    assert loc.storage_key.split("/")[0] == "North-South"
    assert loc.storage_key.split("/")[2] == "a-b"


def test_invalid_record_type() -> None:
    with pytest.raises(ValueError):
        synthesize_photo_location("P", "supervisor", captured_at=CAPTURED)


@pytest.mark.parametrize(
    ("key", "label"),
    [
        ("departure", "departure-mileage"),
        (PhotoRole.RETURN, "return-mileage"),
        ("SITE", "site-record"),
        (PhotoCategory.RECYCLE, "recycle-record"),
        ("meal", "meal-record"),
        ("selfie", "unspecified"),
        (None, "unspecified"),
    ],
)
def test_photo_label(key, label) -> None:
    assert photo_label(key) == label


def test_file_extension() -> None:
    assert file_extension("photo.JPEG") == "jpeg"
    assert file_extension("noext") == "jpg"
    assert file_extension(None) == "jpg"
    assert file_extension("weird.ex t") == "jpg"


def test_clean_segment_default_for_blank() -> None:
    assert clean_segment("  ", "fallback") == "fallback"
    assert clean_segment("..", "fallback") == "fallback"


def test_location_from_options_with_record_type() -> None:
    opts = PhotoUploadOptions(
        project_name="Proj",
        record_type=RecordType.PERSONAL,
        user_name="Chen",
        date="2024-03-05",
        photo_type=PhotoRole.RETURN,
        filename="x.jpg",
    )
    loc = location_from_options(opts, captured_at=CAPTURED)
    assert loc.storage_key == "Proj/personal/Chen/2024-03-05"
    assert loc.filename == "2024-03-05_14-07-09_Chen_return-mileage.jpg"


def test_location_from_options_uses_hint_path_without_record_type() -> None:
    loc = location_from_options(PhotoUploadOptions(), hint_path="uploads/misc", captured_at=CAPTURED)
    assert loc.storage_key == "uploads/misc/2024-03-05"
    assert loc.filename == "2024-03-05_14-07-09_photo_unspecified.jpg"
