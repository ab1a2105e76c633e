"""
Tests unitaires pour les devoirs hebdomadaires (création, publication, suivi).
"""

import time
import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from app.models.curriculum_tag import TaskItemTag
from app.models.weekly_task import TASK_DRAFT, TASK_PUBLISHED, TaskItem, WeeklyTask
from app.schemas.auth import SessionPayload
from app.schemas.weekly_task import BulkPublishRequest, TaskItemsCopy, WeeklyTaskCreate, WeeklyTaskDuplicate
from app.services.weekly_task_service import (
    bulk_publish_weekly_tasks,
    copy_task_items,
    create_weekly_tasks,
    delete_weekly_task,
    duplicate_weekly_task,
    get_task_notifications,
    get_teacher_weekly_tasks,
    publish_weekly_task,
    resolve_task_creator,
)

NOTIFY = "app.services.weekly_task_service.notification_service.send_task_published_notifications"
ASSIGNED = "app.services.weekly_task_service.teacher_service.get_assigned_class_course_ids"
WEEK_START = datetime(2026, 10, 19, tzinfo=timezone.utc)
WEEK_END = datetime(2026, 10, 25, 23, 59, tzinfo=timezone.utc)


# --- Helpers ---

def make_items(count=10):
    return [{"order_index": i, "sentence_text": f"Sentence number {i}."} for i in range(1, count + 1)]


def make_create(class_course_ids, status=TASK_PUBLISHED, **kwargs):
    return WeeklyTaskCreate(
        class_course_ids=class_course_ids,
        week_start=kwargs.get("week_start", WEEK_START),
        week_end=kwargs.get("week_end", WEEK_END),
        status=status,
        items=kwargs.get("items", make_items()),
    )


def make_task(status=TASK_DRAFT, class_course_id=None):
    return WeeklyTask(
        id=uuid.uuid4(),
        class_course_id=class_course_id or uuid.uuid4(),
        week_start=WEEK_START,
        week_end=WEEK_END,
        status=status,
        created_by_admin=uuid.uuid4(),
    )


# --- Validation des schémas ---

def test_devoir_neuf_phrases_rejete():
    with pytest.raises(ValidationError):
        make_create([uuid.uuid4()], items=make_items(9))


def test_devoir_ordres_dupliques_rejete():
    items = make_items()
    items[9]["order_index"] = 1
    with pytest.raises(ValidationError):
        make_create([uuid.uuid4()], items=items)


def test_devoir_sans_classe_cours_rejete():
    with pytest.raises(ValidationError):
        make_create([])


def test_devoir_fin_avant_debut_rejete():
    with pytest.raises(ValidationError):
        make_create([uuid.uuid4()], week_end=WEEK_START)


def test_devoir_statut_invalide_rejete():
    with pytest.raises(ValidationError):
        make_create([uuid.uuid4()], status="archived")


# --- resolve_task_creator ---

def test_createur_enseignant_de_la_session():
    teacher_id = uuid.uuid4()
    session = SessionPayload(role="admin", teacher_id=teacher_id, exp=int(time.time()) + 60)
    assert resolve_task_creator(MagicMock(), session) == teacher_id


def test_createur_admin_env_premier_enseignant_admin():
    admin_teacher_id = uuid.uuid4()
    db = MagicMock()
    db.execute.return_value.scalar.return_value = admin_teacher_id
    session = SessionPayload(role="admin", exp=int(time.time()) + 60)
    assert resolve_task_creator(db, session) == admin_teacher_id


def test_createur_aucun_enseignant_admin():
    db = MagicMock()
    db.execute.return_value.scalar.return_value = None
    with pytest.raises(ValueError):
        resolve_task_creator(db, SessionPayload(role="admin", exp=int(time.time()) + 60))


# --- create_weekly_tasks ---

def test_create_classe_cours_inconnue():
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = []
    with pytest.raises(ValueError, match="introuvable"):
        create_weekly_tasks(db, make_create([uuid.uuid4()]), uuid.uuid4())
    db.add.assert_not_called()


@patch(NOTIFY)
def test_create_publie_et_notifie(mock_notify):
    cc1, cc2 = uuid.uuid4(), uuid.uuid4()
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [cc1, cc2]
    db.execute.return_value.all.return_value = []

    create_weekly_tasks(db, make_create([cc1, cc2]), uuid.uuid4())

    added = [c.args[0] for c in db.add.call_args_list]
    assert len([a for a in added if isinstance(a, WeeklyTask)]) == 2
    assert len([a for a in added if isinstance(a, TaskItem)]) == 20
    db.commit.assert_called_once()
    assert mock_notify.call_count == 2


@patch(NOTIFY)
def test_create_brouillon_sans_notification(mock_notify):
    cc = uuid.uuid4()
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [cc]
    db.execute.return_value.all.return_value = []

    create_weekly_tasks(db, make_create([cc], status=TASK_DRAFT), uuid.uuid4())

    mock_notify.assert_not_called()


def test_create_doublon_semaine():
    cc = uuid.uuid4()
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [cc]
    db.flush.side_effect = IntegrityError("duplicate", None, None)

    with pytest.raises(ValueError, match="existe déjà"):
        create_weekly_tasks(db, make_create([cc]), uuid.uuid4())
    db.rollback.assert_called_once()


@patch(NOTIFY)
def test_create_rattache_les_etiquettes_aux_phrases(_):
    cc, tag_id = uuid.uuid4(), uuid.uuid4()
    items = make_items()
    items[0]["tag_ids"] = [str(tag_id), str(tag_id)]
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [cc, tag_id]
    db.execute.return_value.all.return_value = []

    create_weekly_tasks(db, make_create([cc], items=items), uuid.uuid4())

    links = [c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], TaskItemTag)]
    assert len(links) == 1
    assert links[0].curriculum_tag_id == tag_id


def test_create_etiquette_inconnue():
    cc = uuid.uuid4()
    items = make_items()
    items[3]["tag_ids"] = [str(uuid.uuid4())]
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [cc]

    with pytest.raises(ValueError, match="Étiquette"):
        create_weekly_tasks(db, make_create([cc], items=items), uuid.uuid4())
    db.add.assert_not_called()


# --- publish_weekly_task ---

@patch(NOTIFY)
def test_publish_brouillon(mock_notify):
    task = make_task(status=TASK_DRAFT)
    db = MagicMock()
    db.get.return_value = task
    with patch("app.services.weekly_task_service.get_weekly_task", return_value=MagicMock()):
        publish_weekly_task(db, task.id)

    assert task.status == TASK_PUBLISHED
    mock_notify.assert_called_once_with(db, task.id)


@patch(NOTIFY)
def test_publish_deja_publie_non_renotifie(mock_notify):
    task = make_task(status=TASK_PUBLISHED)
    db = MagicMock()
    db.get.return_value = task
    with patch("app.services.weekly_task_service.get_weekly_task", return_value=MagicMock()):
        publish_weekly_task(db, task.id)

    mock_notify.assert_not_called()
    db.commit.assert_not_called()


def test_publish_introuvable():
    db = MagicMock()
    db.get.return_value = None
    assert publish_weekly_task(db, uuid.uuid4()) is None


# --- delete / notifications ---

def test_delete_weekly_task():
    task = make_task()
    db = MagicMock()
    db.get.return_value = task
    assert delete_weekly_task(db, task.id) is True
    db.delete.assert_called_once_with(task)


def test_get_task_notifications_devoir_introuvable():
    db = MagicMock()
    db.get.return_value = None
    assert get_task_notifications(db, uuid.uuid4()) is None


# --- Espace enseignant ---

TEACHER_ID = uuid.uuid4()


def make_item(task_id, order_index, text="Hello"):
    return TaskItem(
        id=uuid.uuid4(),
        weekly_task_id=task_id,
        order_index=order_index,
        sentence_text=text,
        reference_audio_url=None,
        reference_audio_status="pending",
    )


def duplicate_request(source_id, target_cc, **kwargs):
    return WeeklyTaskDuplicate(
        source_task_id=source_id,
        target_class_course_id=target_cc,
        week_start=kwargs.get("week_start", WEEK_START),
        week_end=kwargs.get("week_end", WEEK_END),
    )


@patch(ASSIGNED, return_value=[])
def test_teacher_tasks_sans_affectation(_):
    db = MagicMock()
    assert get_teacher_weekly_tasks(db, TEACHER_ID) == []
    db.execute.assert_not_called()


def test_teacher_tasks_avec_phrases():
    cc = uuid.uuid4()
    task = make_task(class_course_id=cc)
    db = MagicMock()
    db.execute.return_value.all.return_value = [(task, "6A", "Phonics")]
    db.execute.return_value.scalars.return_value.all.return_value = [make_item(task.id, 1), make_item(task.id, 2)]

    with patch(ASSIGNED, return_value=[cc]):
        result = get_teacher_weekly_tasks(db, TEACHER_ID)

    assert len(result) == 1
    assert result[0].task.class_name == "6A"
    assert [i.order_index for i in result[0].items] == [1, 2]


@patch(NOTIFY)
def test_bulk_publish_notifie_les_nouveaux_seulement(mock_notify):
    cc = uuid.uuid4()
    draft, published = make_task(TASK_DRAFT, cc), make_task(TASK_PUBLISHED, cc)
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [draft, published]
    db.execute.return_value.all.return_value = [(draft, "6A", "Phonics"), (published, "6A", "Phonics")]

    with patch(ASSIGNED, return_value=[cc]):
        result = bulk_publish_weekly_tasks(db, TEACHER_ID, BulkPublishRequest(task_ids=[draft.id, published.id]))

    assert draft.status == TASK_PUBLISHED
    assert result.updated_count == 2
    db.commit.assert_called_once()
    mock_notify.assert_called_once_with(db, draft.id)


@patch(NOTIFY)
def test_bulk_publish_partiellement_autorise(mock_notify):
    cc = uuid.uuid4()
    mine = make_task(TASK_DRAFT, cc)
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [mine]

    with patch(ASSIGNED, return_value=[cc]):
        with pytest.raises(PermissionError):
            bulk_publish_weekly_tasks(db, TEACHER_ID, BulkPublishRequest(task_ids=[mine.id, uuid.uuid4()]))

    assert mine.status == TASK_DRAFT
    db.commit.assert_not_called()
    mock_notify.assert_not_called()


def test_bulk_publish_aucun_devoir_accessible():
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = []
    with patch(ASSIGNED, return_value=[uuid.uuid4()]):
        with pytest.raises(ValueError, match="introuvables"):
            bulk_publish_weekly_tasks(db, TEACHER_ID, BulkPublishRequest(task_ids=[uuid.uuid4()]))


@patch(ASSIGNED, return_value=[])
def test_bulk_publish_sans_affectation(_):
    with pytest.raises(PermissionError):
        bulk_publish_weekly_tasks(MagicMock(), TEACHER_ID, BulkPublishRequest(task_ids=[uuid.uuid4()]))


def test_bulk_publish_liste_vide_rejetee():
    with pytest.raises(ValidationError):
        BulkPublishRequest(task_ids=[])


def test_duplicate_cree_un_brouillon_avec_les_phrases():
    cc, target_cc = uuid.uuid4(), uuid.uuid4()
    source = make_task(TASK_PUBLISHED, cc)
    db = MagicMock()
    db.get.return_value = source
    db.execute.return_value.scalars.return_value.all.return_value = [
        make_item(source.id, i, f"Sentence {i}") for i in range(1, 11)
    ]

    with patch(ASSIGNED, return_value=[cc, target_cc]), \
         patch("app.services.weekly_task_service.get_weekly_task", return_value=MagicMock()):
        duplicate_weekly_task(db, TEACHER_ID, duplicate_request(source.id, target_cc))

    added = [c.args[0] for c in db.add.call_args_list]
    new_task = next(a for a in added if isinstance(a, WeeklyTask))
    assert new_task.status == TASK_DRAFT
    assert new_task.class_course_id == target_cc
    assert new_task.created_by_admin == TEACHER_ID
    copies = [a for a in added if isinstance(a, TaskItem)]
    assert [c.sentence_text for c in copies] == [f"Sentence {i}" for i in range(1, 11)]
    db.commit.assert_called_once()


def test_duplicate_source_hors_de_mes_classes():
    source = make_task(TASK_PUBLISHED, uuid.uuid4())
    db = MagicMock()
    db.get.return_value = source
    with patch(ASSIGNED, return_value=[uuid.uuid4()]):
        with pytest.raises(PermissionError, match="source"):
            duplicate_weekly_task(db, TEACHER_ID, duplicate_request(source.id, uuid.uuid4()))


def test_duplicate_cible_non_affectee():
    cc = uuid.uuid4()
    source = make_task(TASK_PUBLISHED, cc)
    db = MagicMock()
    db.get.return_value = source
    with patch(ASSIGNED, return_value=[cc]):
        with pytest.raises(PermissionError, match="cible"):
            duplicate_weekly_task(db, TEACHER_ID, duplicate_request(source.id, uuid.uuid4()))


def test_duplicate_source_introuvable():
    db = MagicMock()
    db.get.return_value = None
    with patch(ASSIGNED, return_value=[uuid.uuid4()]):
        with pytest.raises(ValueError, match="introuvable"):
            duplicate_weekly_task(db, TEACHER_ID, duplicate_request(uuid.uuid4(), uuid.uuid4()))


def test_duplicate_semaine_deja_prise():
    cc = uuid.uuid4()
    source = make_task(TASK_PUBLISHED, cc)
    db = MagicMock()
    db.get.return_value = source
    db.execute.return_value.scalars.return_value.all.return_value = [make_item(source.id, 1)]
    db.flush.side_effect = IntegrityError("duplicate", None, None)

    with patch(ASSIGNED, return_value=[cc]):
        with pytest.raises(ValueError, match="existe déjà"):
            duplicate_weekly_task(db, TEACHER_ID, duplicate_request(source.id, cc))
    db.rollback.assert_called_once()


def test_duplicate_source_sans_phrase():
    cc = uuid.uuid4()
    source = make_task(TASK_PUBLISHED, cc)
    db = MagicMock()
    db.get.return_value = source
    db.execute.return_value.scalars.return_value.all.return_value = []
    with patch(ASSIGNED, return_value=[cc]):
        with pytest.raises(ValueError, match="aucune phrase"):
            duplicate_weekly_task(db, TEACHER_ID, duplicate_request(source.id, cc))
    db.add.assert_not_called()


def test_copy_items_remplace_les_phrases_de_la_cible():
    cc = uuid.uuid4()
    source, target = make_task(TASK_PUBLISHED, cc), make_task(TASK_DRAFT, cc)
    db = MagicMock()
    db.get.side_effect = lambda model, task_id: {source.id: source, target.id: target}.get(task_id)
    db.execute.return_value.scalars.return_value.all.return_value = [
        make_item(source.id, 1, "Hello"), make_item(source.id, 2, "Goodbye"),
    ]

    with patch(ASSIGNED, return_value=[cc]):
        result = copy_task_items(db, TEACHER_ID, TaskItemsCopy(source_task_id=source.id, target_task_id=target.id))

    assert result.item_count == 2
    assert result.target_task_id == target.id
    delete_stmt = db.execute.call_args_list[-1].args[0]
    assert str(delete_stmt).startswith("DELETE FROM task_items")
    copies = [c.args[0] for c in db.add.call_args_list]
    assert {c.weekly_task_id for c in copies} == {target.id}
    assert [c.sentence_text for c in copies] == ["Hello", "Goodbye"]
    db.commit.assert_called_once()


def test_copy_items_cible_non_autorisee():
    cc = uuid.uuid4()
    source, target = make_task(TASK_PUBLISHED, cc), make_task(TASK_DRAFT, uuid.uuid4())
    db = MagicMock()
    db.get.side_effect = lambda model, task_id: {source.id: source, target.id: target}.get(task_id)

    with patch(ASSIGNED, return_value=[cc]):
        with pytest.raises(PermissionError, match="cible"):
            copy_task_items(db, TEACHER_ID, TaskItemsCopy(source_task_id=source.id, target_task_id=target.id))
    db.commit.assert_not_called()


def test_copy_items_meme_devoir_rejete():
    task_id = uuid.uuid4()
    with pytest.raises(ValidationError):
        TaskItemsCopy(source_task_id=task_id, target_task_id=task_id)
