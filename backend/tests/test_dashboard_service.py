"""
Tests unitaires pour le tableau de bord enseignant et le bilan de classe-cours.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from app.models.family import Student
from app.models.submission import Submission
from app.services.dashboard_service import get_class_summary, get_dashboard_stats

ASSIGNED = "app.services.dashboard_service.teacher_service.get_assigned_class_course_ids"
TEACHER_ID = uuid.uuid4()
NOW = datetime(2026, 10, 21, 9, 0, tzinfo=timezone.utc)


# --- Helpers ---

def result(scalars=None, rows=None, first=None):
    r = MagicMock()
    r.scalars.return_value.all.return_value = scalars or []
    r.all.return_value = rows or []
    r.first.return_value = first
    return r


def scripted_db(*results):
    db = MagicMock()
    db.execute.side_effect = list(results)
    return db


def make_submission(student, score, stars):
    return Submission(
        id=uuid.uuid4(),
        student_id=student.id,
        task_item_id=uuid.uuid4(),
        audio_url="https://cdn.example.com/a.webm",
        transcript="hello",
        score=score,
        stars=stars,
        feedback="Keep practicing!",
        created_at=NOW,
    )


# --- Tableau de bord ---

@patch(ASSIGNED, return_value=[])
def test_stats_sans_affectation(_):
    db = MagicMock()
    stats = get_dashboard_stats(db, TEACHER_ID, now=NOW)
    assert stats.total_submissions_this_week == 0
    assert stats.students_not_submitted == []
    db.execute.assert_not_called()


@patch(ASSIGNED, return_value=[uuid.uuid4()])
def test_stats_classe_sans_eleve(_):
    db = scripted_db(result(scalars=[]))
    stats = get_dashboard_stats(db, TEACHER_ID, now=NOW)
    assert stats.average_score == 0
    assert db.execute.call_count == 1


@patch(ASSIGNED, return_value=[uuid.uuid4()])
def test_stats_de_la_semaine(_):
    amy, ben, cleo = (Student(id=uuid.uuid4(), name=n) for n in ("Amy", "Ben", "Cleo"))
    weekly = [(amy.id, 95, 3), (amy.id, 60, 1), (ben.id, 80, 2)]
    recent = [(make_submission(amy, 95, 3), "Amy"), (make_submission(ben, 80, 2), "Ben")]
    db = scripted_db(result(scalars=[amy, ben, cleo]), result(rows=weekly), result(rows=recent))

    stats = get_dashboard_stats(db, TEACHER_ID, now=NOW)

    assert stats.total_submissions_this_week == 3
    assert stats.average_score == 78.3
    assert stats.star_distribution.model_dump() == {"one_star": 1, "two_star": 1, "three_star": 1}
    assert [s.name for s in stats.students_not_submitted] == ["Cleo"]
    assert [(r.student_name, r.stars) for r in stats.recent_completions] == [("Amy", 3), ("Ben", 2)]


# --- Bilan de classe-cours ---

@patch(ASSIGNED, return_value=[uuid.uuid4()])
def test_bilan_classe_non_affectee(_):
    db = MagicMock()
    with pytest.raises(PermissionError):
        get_class_summary(db, TEACHER_ID, uuid.uuid4())
    db.execute.assert_not_called()


def test_bilan_classe_sans_eleve():
    cc = uuid.uuid4()
    db = scripted_db(result(first=("6A", "Phonics")), result(scalars=[]))
    with patch(ASSIGNED, return_value=[cc]):
        summary = get_class_summary(db, TEACHER_ID, cc)
    assert (summary.class_name, summary.course_name) == ("6A", "Phonics")
    assert summary.total_students == 0
    assert summary.students == []


def test_bilan_classe_progression_et_phrases_faibles():
    cc = uuid.uuid4()
    amy, ben = Student(id=uuid.uuid4(), name="Amy"), Student(id=uuid.uuid4(), name="Ben")
    weak = make_submission(amy, 40, 1)
    db = scripted_db(
        result(first=("6A", "Phonics")),
        result(scalars=[amy, ben]),
        result(rows=[(amy.id, 40), (amy.id, 100)]),
        result(rows=[(weak, "She sells sea shells.")]),
    )

    with patch(ASSIGNED, return_value=[cc]):
        summary = get_class_summary(db, TEACHER_ID, cc)

    assert summary.total_students == 2
    assert summary.completion_rate == 50
    assert summary.average_score == 70
    by_name = {s.student_name: s for s in summary.students}
    assert by_name["Amy"].completed_tasks == 2
    assert by_name["Amy"].total_tasks == 10
    assert by_name["Amy"].low_score_sentences == 1
    assert by_name["Ben"].completed_tasks == 0
    assert by_name["Ben"].average_score == 0
    assert len(summary.low_score_items) == 1
    item = summary.low_score_items[0]
    assert item.student_name == "Amy"
    assert item.sentence_text == "She sells sea shells."
    assert item.score == 40
