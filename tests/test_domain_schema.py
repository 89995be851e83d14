from __future__ import annotations

import pytest

from domain import DecodeError, Report, SessionUser, Work, decode_first, decode_list, decode_one


def test_work_normalizes_alternate_field_names() -> None:
    work = decode_one(
        Work,
        {
            "id": 42,
            "title": "Red Logo",
            "status": "published",
            "updated_at": "2025-01-02T03:04:05Z",
            "saveCount": None,
            "media": [{"fileUrl": "https://cdn.test/1.png", "altText": "logo"}],
        },
    )

    assert work.work_id == "42"
    assert work.updated_at is not None and work.updated_at.year == 2025
    assert work.save_count == 0
    assert work.media[0].file_url == "https://cdn.test/1.png"
    assert work.media[0].alt_text == "logo"


def test_work_tags_are_unique_by_case_insensitive_name() -> None:
    work = decode_one(
        Work,
        {
            "workId": "a",
            "title": "Poster",
            "tags": [{"name": "Branding"}, {"name": "branding"}, {"name": "UX"}],
        },
    )
    assert work.tag_names == ["Branding", "UX"]


def test_thumbnail_falls_back_to_first_media() -> None:
    work = decode_one(
        Work,
        {
            "workId": "a",
            "title": "Poster",
            "thumbnail": "",
            "media": [{"fileurl": "https://cdn.test/first.png"}, {"fileurl": "https://cdn.test/second.png"}],
        },
    )
    assert work.thumbnail == "https://cdn.test/first.png"


def test_missing_required_field_fails_loudly() -> None:
    with pytest.raises(DecodeError):
        decode_one(Work, {"workId": "a"})


def test_unknown_status_is_rejected() -> None:
    with pytest.raises(DecodeError):
        decode_one(Work, {"workId": "a", "title": "t", "status": "archived"})


def test_decode_list_treats_null_as_empty_and_rejects_objects() -> None:
    assert decode_list(Work, None) == []
    with pytest.raises(DecodeError):
        decode_list(Work, {"workId": "a", "title": "t"})


def test_decode_first_reads_return_representation() -> None:
    report = decode_first(
        Report,
        [{"reportId": 7, "reporterId": "u1", "workId": "w1", "reason": "สแปม / โฆษณาเกินจริง", "status": "pending"}],
    )
    assert report.report_id == "7"
    assert report.status == "pending"
    with pytest.raises(DecodeError):
        decode_first(Report, [])


def test_session_user_metadata_defaults() -> None:
    user = decode_one(SessionUser, {"id": "u1", "email": "a@b.test", "user_metadata": None})
    assert user.user_metadata == {}
