import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

from src.api.models import Priority, Status
from src.api import repositories
from src.api.repositories import InMemoryTaskRepository, get_repository
from src.api.schemas import TaskCreate, TaskUpdate


def create(repo, title="Task", **fields):
    return repo.create(TaskCreate(title=title, **fields))


class TestCrud:
    def test_ids_are_sequential_and_prefixed(self):
        repo = InMemoryTaskRepository(id_prefix="JOB")
        assert create(repo).id == "JOB-0001"
        assert create(repo).id == "JOB-0002"

    def test_create_defaults(self):
        repo = InMemoryTaskRepository()
        task = create(repo, "Defaults")
        assert task.id == "TASK-0001"
        assert task.status is Status.TODO
        assert task.priority is Priority.MEDIUM
        assert isinstance(task.created_at, datetime)

    def test_returned_tasks_are_detached(self):
        repo = InMemoryTaskRepository()
        task = create(repo, "Original")
        task.title = "Changed outside"
        assert repo.get(task.id).title == "Original"

    def test_get_missing(self):
        assert InMemoryTaskRepository().get("TASK-9999") is None

    def test_delete_keeps_index_in_sync(self):
        repo = InMemoryTaskRepository()
        critical = create(repo, "Urgent", priority=Priority.CRITICAL)
        create(repo, "Later", priority=Priority.LOW)

        assert repo.delete(critical.id) is True
        assert repo.delete(critical.id) is False
        assert repo.next_task().title == "Later"
        assert [t.title for t in repo.list_by_priority()] == ["Later"]


class TestUpdate:
    def test_priority_change_repositions(self):
        repo = InMemoryTaskRepository()
        create(repo, "High", priority=Priority.HIGH)
        low = create(repo, "Low", priority=Priority.LOW)

        updated = repo.update(low.id, TaskUpdate(priority=Priority.CRITICAL))
        assert updated.priority is Priority.CRITICAL
        assert repo.next_task().id == low.id
        assert repo._index.check_invariants()

    def test_due_date_change_repositions(self):
        repo = InMemoryTaskRepository()
        base = datetime(2030, 1, 1)
        create(repo, "A", priority=Priority.HIGH, due_date=base + timedelta(days=1))
        b = create(repo, "B", priority=Priority.HIGH, due_date=base + timedelta(days=5))

        repo.update(b.id, TaskUpdate(due_date=base))
        assert repo.next_task().id == b.id
        assert repo._index.check_invariants()

    def test_partial_update_leaves_other_fields(self):
        repo = InMemoryTaskRepository()
        task = create(repo, "Partial", description="X", assigned_to="ann")

        updated = repo.update(task.id, TaskUpdate(status=Status.COMPLETED))
        assert updated.status is Status.COMPLETED
        assert updated.description == "X"
        assert updated.assigned_to == "ann"

        cleared = repo.update(task.id, TaskUpdate(description=None))
        assert cleared.description is None

    def test_update_missing(self):
        assert InMemoryTaskRepository().update("TASK-0404", TaskUpdate(title="x")) is None


class TestQueries:
    def test_passthroughs_use_current_state(self):
        repo = InMemoryTaskRepository()
        create(repo, "Fix bug", priority=Priority.CRITICAL, assigned_to="ann")
        done = create(repo, "Write docs", priority=Priority.LOW)
        create(repo, "Old work", priority=Priority.MEDIUM, due_date=datetime.now() - timedelta(days=2))
        repo.update(done.id, TaskUpdate(status=Status.COMPLETED))

        assert [t.title for t in repo.top(2)] == ["Fix bug", "Old work"]
        assert [t.title for t in repo.search("BUG")] == ["Fix bug"]
        assert [t.title for t in repo.filter(assigned_to="ann")] == ["Fix bug"]
        assert [t.title for t in repo.grouped()[Status.COMPLETED]] == ["Write docs"]
        assert [t.title for t in repo.overdue()] == ["Old work"]

        stats = repo.statistics()
        assert stats.total_tasks == 3
        assert stats.completion_rate == "33.33%"

    def test_empty_repository(self):
        repo = InMemoryTaskRepository()
        assert repo.next_task() is None
        assert repo.list() == []
        assert repo.top(3) == []
        assert repo.statistics().completion_rate == "0.00%"


class TestConcurrency:
    def test_concurrent_creates_get_unique_ids(self):
        repo = InMemoryTaskRepository()
        priorities = list(Priority)

        def worker(i):
            return create(repo, f"T{i}", priority=priorities[i % 4]).id

        with ThreadPoolExecutor(max_workers=8) as pool:
            ids = list(pool.map(worker, range(200)))

        assert len(set(ids)) == 200
        assert len(repo.list()) == 200
        assert repo._index.size() == 200
        assert repo._index.check_invariants()

    def test_concurrent_mixed_mutations_keep_store_and_index_in_sync(self):
        repo = InMemoryTaskRepository()
        ids = [create(repo, f"T{i}", priority=Priority.LOW).id for i in range(100)]

        def worker(i):
            task_id = ids[i]
            if i % 3 == 0:
                repo.delete(task_id)
            else:
                repo.update(task_id, TaskUpdate(priority=list(Priority)[i % 4]))
            repo.top(5)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(worker, range(100)))

        remaining = {t.id for t in repo.list()}
        assert remaining == {t.id for t in repo.list_by_priority()}
        assert len(remaining) == 100 - len(range(0, 100, 3))
        assert repo._index.check_invariants()

    def test_concurrent_first_calls_share_one_repository(self, monkeypatch):
        monkeypatch.setattr(repositories, "_repository", None)
        real_settings = repositories.get_settings

        def slow_settings():
            time.sleep(0.05)
            return real_settings()

        monkeypatch.setattr(repositories, "get_settings", slow_settings)
        barrier = threading.Barrier(8)

        def worker(i):
            barrier.wait()
            repo = get_repository()
            return repo, create(repo, f"T{i}").id

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(worker, range(8)))

        repos = {id(repo) for repo, _ in results}
        task_ids = [task_id for _, task_id in results]
        assert len(repos) == 1
        assert len(set(task_ids)) == 8
        assert len(get_repository().list()) == 8
