from src.tasks import LifeArea, TaskType
from src.tasks.repository import SAMPLE_TASKS, TaskRepository


def test_task_repository_crud_cycle(tmp_path):
    repo = TaskRepository(db_path=tmp_path / "tasks.db")

    created = repo.create({"title": "Review monthly budget", "category": "finance"})
    assert created.title == "Review monthly budget"
    assert created.category is LifeArea.FINANCE
    assert created.type is TaskType.TASK
    assert created.id

    items = repo.list()
    assert len(items) == 1
    assert repo.get(created.id) == created

    updated = repo.update(created.id, {"date": "2026-10-22", "start_time": "19:00"})
    assert updated is not None
    assert updated.end_time == "20:00"
    assert repo.get(created.id) == updated

    assert repo.delete(created.id) is True
    assert repo.delete(created.id) is False
    assert repo.list() == []


def test_update_missing_task_returns_none(tmp_path):
    repo = TaskRepository(db_path=tmp_path / "tasks.db")

    assert repo.update("missing", {"title": "Nope"}) is None
    assert repo.get("missing") is None


def test_list_filters(tmp_path):
    repo = TaskRepository(db_path=tmp_path / "tasks.db")
    run = repo.create({"title": "Run", "category": "fitness", "date": "2026-10-22"})
    repo.create({"title": "Lift", "category": "fitness"})
    dinner = repo.create(
        {"title": "Dinner", "category": "family", "date": "2026-10-23", "start_time": "18:00"}
    )

    assert [t.title for t in repo.list(category="fitness")] == ["Lift", "Run"]
    assert [t.id for t in repo.list(date="2026-10-22")] == [run.id]
    assert [t.id for t in repo.list(has_date=True)] == [run.id, dinner.id]
    assert [t.title for t in repo.list(has_date=False)] == ["Lift"]


def test_logs_and_notes_survive_round_trip(tmp_path):
    db_path = tmp_path / "tasks.db"
    repo = TaskRepository(db_path=db_path)
    created = repo.create(
        {
            "title": "Journal",
            "category": "faith",
            "type": "note",
            "notes": "<p>日記 <strong>メモ</strong></p>",
            "logs_json": '[{"timestamp": "2026-10-21T08:00:00+00:00", "content": "書いた"}]',
        }
    )

    reloaded = TaskRepository(db_path=db_path).get(created.id)

    assert reloaded.type is TaskType.NOTE
    assert reloaded.notes == "<p>日記 <strong>メモ</strong></p>"
    assert [entry.content for entry in reloaded.logs] == ["書いた"]


def test_replace_restores_snapshot(tmp_path):
    repo = TaskRepository(db_path=tmp_path / "tasks.db")
    original = repo.create({"title": "Change car oil", "category": "fortress"})
    repo.update(original.id, {"title": "Rotate tires", "completed": True})

    repo.replace(original)

    assert repo.get(original.id) == original


def test_db_path_from_environment(tmp_path, monkeypatch):
    db_path = tmp_path / "env" / "tasks.db"
    monkeypatch.setenv("LIFE_PLANNER_DB_PATH", str(db_path))

    repo = TaskRepository()

    assert repo.db_path == db_path
    assert db_path.exists()


def test_bulk_create_samples(tmp_path):
    repo = TaskRepository(db_path=tmp_path / "tasks.db")

    created = repo.bulk_create(SAMPLE_TASKS)

    assert len(created) == len(SAMPLE_TASKS)
    assert {task.category for task in created} == {
        LifeArea(item["category"]) for item in SAMPLE_TASKS
    }
