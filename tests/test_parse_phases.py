import datetime as dt

import pytest

from phase_timeline.models import Attachment, Phase, Reviewer
from phase_timeline.parse_phases import (
    ProjectValidationError,
    load_document,
    parse_phase,
    parse_phases,
    parse_project,
    parse_users,
    phase_to_record,
)


def test_phase_record_becomes_typed_phase():
    phase = parse_phase(
        {
            "name": "Design Phase",
            "start_date": "2024-01-01",
            "end_date": dt.date(2024, 1, 21),
            "duration": "3 weeks",
            "attachments": [{"name": "brief.pdf", "size": 2048}],
            "reviewers": [{"id": "r1", "role": "sponsor", "status": "approved"}],
        }
    )

    assert phase.start_date == dt.date(2024, 1, 1)
    assert phase.end_date == dt.date(2024, 1, 21)
    assert phase.attachments == [Attachment(name="brief.pdf", size=2048)]
    assert phase.reviewers[0].status == "approved"


def test_undated_phase_keeps_free_text_duration():
    phase = parse_phase({"name": "Testing Phase", "duration": "2 weeks"})

    assert phase.start_date is None
    assert phase.end_date is None
    assert phase.duration == "2 weeks"


@pytest.mark.parametrize(
    "record",
    [
        "just a string",
        {"duration": "1 week"},
        {"name": "  "},
        {"name": "X", "start_date": "2024-13-40"},
        {"name": "X", "duration": 5},
        {"name": "X", "colour": "red"},
        {"name": "X", "reviewers": [{"id": "r1", "role": "sponsor", "status": "maybe"}]},
        {"name": "X", "attachments": [{"name": "a.txt", "size": -1}]},
    ],
)
def test_bad_phase_records_raise(record):
    with pytest.raises(ProjectValidationError):
        parse_phase(record)


def test_malformed_records_are_reported_not_loaded():
    parsed = parse_phases(
        [
            {"name": "Good"},
            {"name": "Bad", "end_date": "yesterday"},
            {"name": "Also good", "start_date": "2024-02-01", "end_date": "2024-02-02"},
        ]
    )

    assert [p.name for p in parsed.phases] == ["Good", "Also good"]
    assert len(parsed.malformed) == 1
    bad = parsed.malformed[0]
    assert bad.path == "phases[1]"
    assert "end_date" in bad.reason
    assert bad.raw == {"name": "Bad", "end_date": "yesterday"}


def test_parse_project_requires_a_name():
    with pytest.raises(ProjectValidationError):
        parse_project({"phases": []}, "p1")


def test_parse_project_collects_phase_failures():
    project, malformed = parse_project({"name": "Website", "phases": [{"name": "A"}, 42]}, "web")

    assert project.id == "web"
    assert [p.name for p in project.phases] == ["A"]
    assert malformed[0].path == "projects[web].phases[1]"


def test_users_are_parsed_with_malformed_entries_split_out():
    users, malformed = parse_users(
        [
            {"id": 1, "username": "ana", "name": "Ana", "role": "sponsor"},
            {"id": "2", "username": "bo"},
        ]
    )

    assert users[0].id == "1"
    assert users[0].email is None
    assert malformed[0].path == "users[1]"


def test_phase_to_record_writes_iso_dates_and_parses_back():
    phase = Phase(
        name="Build",
        start_date=dt.date(2024, 3, 1),
        end_date=dt.date(2024, 3, 31),
        duration="1 month",
        attachments=[Attachment(name="plan.xlsx", size=10, uploaded_at=dt.datetime(2024, 3, 1, 9, 30))],
        reviewers=[Reviewer(id="r1", role="designer")],
    )

    record = phase_to_record(phase)

    assert record["start_date"] == "2024-03-01"
    assert parse_phase(record) == phase


def test_load_document_handles_missing_and_invalid_files(tmp_path):
    assert load_document(tmp_path / "missing.yaml") == {}

    bad = tmp_path / "bad.yaml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ProjectValidationError):
        load_document(bad)


def test_reviewed_at_accepts_utc_suffix():
    phase = parse_phase(
        {"name": "X", "reviewers": [{"id": "r1", "role": "sponsor", "reviewed_at": "2024-01-05T10:00:00Z"}]}
    )

    assert phase.reviewers[0].reviewed_at == dt.datetime(2024, 1, 5, 10, 0, tzinfo=dt.timezone.utc)
