"""
Tests d'intégration API de l'espace famille (authentification par jeton de lien).
"""

import uuid
from unittest.mock import patch

from app.schemas.family_portal import (
    FamilyLinkView,
    FamilyPerformance,
    FamilySummary,
    NotificationPreferencesResponse,
    ProgressHistory,
    SubmissionResponse,
    WeeklyTaskView,
)

SERVICE = "app.routers.family_portal.family_portal_service"


def submission_payload(**kwargs):
    return {
        "token": kwargs.get("token", "jeton-valide-123"),
        "student_id": str(uuid.uuid4()),
        "task_item_id": str(uuid.uuid4()),
        "audio_url": kwargs.get("audio_url", "https://cdn.example.com/a.webm"),
        "transcript": "hello world",
    }


# ============================================================
# GET /api/v1/family/link/{token}
# ============================================================

def test_open_link_valide(client):
    view = FamilyLinkView(
        family=FamilySummary(id=uuid.uuid4(), parent_name="Mme Chen", note=""),
        students=[{"id": str(uuid.uuid4()), "name": "Amy"}],
    )
    with patch(f"{SERVICE}.get_family_view", return_value=view):
        response = client.get("/api/v1/family/link/jeton-valide-123")

    assert response.status_code == 200
    assert response.json()["family"]["parent_name"] == "Mme Chen"


def test_open_link_invalide(client):
    with patch(f"{SERVICE}.get_family_view", return_value=None):
        response = client.get("/api/v1/family/link/inconnu")
    assert response.status_code == 404
    assert response.json()["detail"] == "Lien invalide."


# ============================================================
# GET /api/v1/family/weekly-task
# ============================================================

def test_weekly_task_aucun_devoir(client):
    with patch(f"{SERVICE}.get_weekly_task_view", return_value=WeeklyTaskView()):
        response = client.get("/api/v1/family/weekly-task", params={"token": "jeton-valide-123"})

    assert response.status_code == 200
    assert response.json()["task"] is None
    assert response.json()["items"] == []


def test_weekly_task_sans_jeton(client):
    assert client.get("/api/v1/family/weekly-task").status_code == 422


def test_weekly_task_lien_revoque(client):
    with patch(f"{SERVICE}.get_weekly_task_view", return_value=None):
        response = client.get("/api/v1/family/weekly-task", params={"token": "revoque-123"})
    assert response.status_code == 404


# ============================================================
# /api/v1/family/submissions
# ============================================================

def test_list_submissions(client):
    with patch(f"{SERVICE}.list_submissions", return_value=[]):
        response = client.get("/api/v1/family/submissions", params={"token": "jeton-valide-123"})
    assert response.status_code == 200
    assert response.json() == []


def test_create_submission_succes(client):
    result = SubmissionResponse(
        id=uuid.uuid4(), student_id=uuid.uuid4(), task_item_id=uuid.uuid4(),
        audio_url="https://cdn.example.com/a.webm", transcript="hello world",
        score=100, stars=3, feedback="Great job! Every word was clear.",
        words=[{"text": "hello", "status": "correct"}, {"text": "world", "status": "correct"}],
    )
    with patch(f"{SERVICE}.create_submission", return_value=result):
        response = client.post("/api/v1/family/submissions", json=submission_payload())

    assert response.status_code == 201
    assert response.json()["stars"] == 3
    assert len(response.json()["words"]) == 2


def test_create_submission_audio_url_invalide(client):
    response = client.post("/api/v1/family/submissions", json=submission_payload(audio_url="pas une url"))
    assert response.status_code == 422


def test_create_submission_eleve_d_une_autre_famille(client):
    with patch(f"{SERVICE}.create_submission", side_effect=ValueError("Élève introuvable.")):
        response = client.post("/api/v1/family/submissions", json=submission_payload())
    assert response.status_code == 404


# ============================================================
# /api/v1/family/notification-preferences
# ============================================================

def test_get_notification_preferences(client):
    with patch(f"{SERVICE}.get_notification_preferences",
               return_value=NotificationPreferencesResponse(email_enabled=True)):
        response = client.get("/api/v1/family/notification-preferences", params={"token": "jeton-valide-123"})
    assert response.json() == {"email_enabled": True}


def test_patch_notification_preferences(client):
    with patch(f"{SERVICE}.update_notification_preferences",
               return_value=NotificationPreferencesResponse(email_enabled=False)):
        response = client.patch(
            "/api/v1/family/notification-preferences",
            json={"token": "jeton-valide-123", "email_enabled": False},
        )
    assert response.status_code == 200
    assert response.json()["email_enabled"] is False


# ============================================================
# GET /api/v1/family/performance et /progress-history
# ============================================================

def test_performance(client):
    performance = FamilyPerformance(average_score=72.5, completion_rate=0.4)
    with patch(f"{SERVICE}.get_performance", return_value=performance):
        response = client.get("/api/v1/family/performance", params={"token": "jeton-valide-123"})

    assert response.status_code == 200
    assert response.json()["average_score"] == 72.5
    assert response.json()["low_score_items"] == []


def test_performance_lien_invalide(client):
    with patch(f"{SERVICE}.get_performance", return_value=None):
        response = client.get("/api/v1/family/performance", params={"token": "inconnu"})
    assert response.status_code == 404


def test_progress_history(client):
    student_id = uuid.uuid4()
    history = ProgressHistory(
        weeks=[{
            "week_start": "2026-10-12T00:00:00+08:00",
            "week_end": "2026-10-18T23:59:59+08:00",
            "avg_score": 81.5,
            "avg_stars": 2.5,
            "completion_rate": 0.2,
            "submission_count": 2,
        }],
        student_names={student_id: "Amy"},
    )
    with patch(f"{SERVICE}.get_progress_history", return_value=history):
        response = client.get("/api/v1/family/progress-history", params={"token": "jeton-valide-123"})

    assert response.status_code == 200
    body = response.json()
    assert body["weeks"][0]["submission_count"] == 2
    assert body["student_names"] == {str(student_id): "Amy"}


def test_progress_history_lien_invalide(client):
    with patch(f"{SERVICE}.get_progress_history", return_value=None):
        response = client.get("/api/v1/family/progress-history", params={"token": "inconnu"})
    assert response.status_code == 404


def test_performance_sans_jeton(client):
    assert client.get("/api/v1/family/performance").status_code == 422
