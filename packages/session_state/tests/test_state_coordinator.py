"""
Tests for the atomic state coordinator

Validates:
- Each transition changes its fields together
- Readers and listeners never observe a repository selected while creating
- Cache refresh is idempotent
- Listener failures do not undo transitions
"""

import threading

import pytest
from pydantic import ValidationError

from protocol import ProjectInfo, Repository, SessionState
from session_state import AtomicStateCoordinator


class RecordingCache:
    def __init__(self) -> None:
        self.invalidated = 0
        self.refreshed = 0

    def invalidate(self) -> None:
        self.invalidated += 1

    def refresh(self) -> None:
        self.refreshed += 1


def _repo(name: str = "todo-app") -> Repository:
    return Repository(id=name, name=name, full_name=f"octo/{name}", url=f"https://github.com/octo/{name}")


# ==================== start_new_project_mode ====================

def test_start_new_project_mode_clears_selection():
    coordinator = AtomicStateCoordinator(
        SessionState(selected_repository=_repo(), newly_created_marker="todo-app")
    )

    state = coordinator.start_new_project_mode()

    assert state.selected_repository is None
    assert state.newly_created_marker is None
    assert state.is_creating_new_project
    assert coordinator.snapshot is state


def test_listeners_never_see_selection_while_creating():
    coordinator = AtomicStateCoordinator()
    seen = []
    coordinator.subscribe(seen.append)

    coordinator.select_repository(_repo())
    coordinator.start_new_project_mode()
    coordinator.select_repository(_repo("other"))
    coordinator.start_new_project_mode()

    assert len(seen) == 4
    assert not any(s.selected_repository is not None and s.is_creating_new_project for s in seen)


def test_concurrent_reader_never_sees_half_state():
    coordinator = AtomicStateCoordinator()
    violations = []
    stop = threading.Event()

    def reader():
        while not stop.is_set():
            state = coordinator.snapshot
            if state.selected_repository is not None and state.is_creating_new_project:
                violations.append(state)

    thread = threading.Thread(target=reader)
    thread.start()
    try:
        for index in range(500):
            coordinator.select_repository(_repo(f"repo-{index}"))
            coordinator.start_new_project_mode()
    finally:
        stop.set()
        thread.join()

    assert violations == []


def test_snapshot_cannot_be_mutated_directly():
    coordinator = AtomicStateCoordinator()

    with pytest.raises(ValidationError):
        coordinator.snapshot.is_creating_new_project = True


# ==================== complete_project_creation ====================

def test_complete_project_creation_is_one_step():
    coordinator = AtomicStateCoordinator()
    coordinator.start_new_project_mode()
    seen = []
    coordinator.subscribe(seen.append)

    state = coordinator.complete_project_creation(
        repository_url="https://github.com/octo/auth-app", name="auth-app", is_new_project=True
    )

    assert len(seen) == 1
    assert state.active_project.name == "auth-app"
    assert state.active_project.repository_url == "https://github.com/octo/auth-app"
    assert not state.is_creating_new_project
    assert state.newly_created_marker == "auth-app"
    assert state.refresh_version == 1


def test_complete_project_creation_keeps_full_project_record():
    coordinator = AtomicStateCoordinator()
    project = ProjectInfo(
        name="auth-app", path="/tmp/projects/auth-app", template="react",
        repository_url="https://github.com/octo/auth-app",
    )

    state = coordinator.complete_project_creation(project.repository_url, "auth-app", True, project)

    assert state.active_project == project


def test_each_completion_requests_exactly_one_refresh():
    coordinator = AtomicStateCoordinator()

    coordinator.complete_project_creation("https://github.com/octo/a", "a", True)
    state = coordinator.complete_project_creation("https://github.com/octo/b", "b", True)

    assert state.refresh_version == 2


def test_completion_outside_new_project_mode_keeps_selection():
    coordinator = AtomicStateCoordinator(SessionState(selected_repository=_repo()))

    state = coordinator.complete_project_creation("https://github.com/octo/b", "b", is_new_project=False)

    assert state.selected_repository == _repo()


# ==================== coordinated_cache_refresh ====================

def test_coordinated_cache_refresh_is_idempotent():
    cache = RecordingCache()
    coordinator = AtomicStateCoordinator(cache=cache)
    before = coordinator.snapshot

    coordinator.coordinated_cache_refresh()
    after_once = coordinator.snapshot
    coordinator.coordinated_cache_refresh()

    assert coordinator.snapshot == after_once == before
    assert cache.invalidated == cache.refreshed == 2


def test_cache_refresh_without_cache_is_noop():
    coordinator = AtomicStateCoordinator()

    coordinator.coordinated_cache_refresh()

    assert coordinator.snapshot == SessionState()


# ==================== clear_all_repository_data ====================

def test_clear_all_repository_data():
    cache = RecordingCache()
    coordinator = AtomicStateCoordinator(
        SessionState(selected_repository=_repo(), newly_created_marker="todo-app"), cache=cache
    )

    state = coordinator.clear_all_repository_data()

    assert state.selected_repository is None
    assert state.newly_created_marker is None
    assert not state.is_creating_new_project
    assert cache.refreshed == 1


def test_clear_all_repository_data_can_preserve_creating_flag():
    coordinator = AtomicStateCoordinator()
    coordinator.start_new_project_mode()

    state = coordinator.clear_all_repository_data(preserve_creating_flag=True)

    assert state.is_creating_new_project


# ==================== select_repository ====================

def test_select_repository_leaves_creating_mode():
    coordinator = AtomicStateCoordinator()
    coordinator.start_new_project_mode()

    state = coordinator.select_repository(_repo())

    assert state.selected_repository == _repo()
    assert not state.is_creating_new_project
    assert state.is_repository_mode


def test_select_repository_clears_matching_marker_only():
    coordinator = AtomicStateCoordinator(SessionState(newly_created_marker="todo-app"))

    assert coordinator.select_repository(_repo("other")).newly_created_marker == "todo-app"
    assert coordinator.select_repository(_repo("todo-app")).newly_created_marker is None


def test_select_repository_drops_project_of_another_repository():
    project = ProjectInfo(name="auth-app", repository_url="https://github.com/octo/auth-app.git")
    coordinator = AtomicStateCoordinator(SessionState(active_project=project))

    assert coordinator.select_repository(_repo("auth-app")).active_project == project
    assert coordinator.select_repository(_repo("todo-app")).active_project is None


# ==================== marker / project ====================

def test_acknowledge_newly_created_only_clears_same_name():
    coordinator = AtomicStateCoordinator(SessionState(newly_created_marker="auth-app"))
    seen = []
    coordinator.subscribe(seen.append)

    coordinator.acknowledge_newly_created("other")
    assert coordinator.snapshot.newly_created_marker == "auth-app"
    assert seen == []

    coordinator.acknowledge_newly_created("auth-app")
    assert coordinator.snapshot.newly_created_marker is None


def test_set_active_project():
    coordinator = AtomicStateCoordinator()
    project = ProjectInfo(name="todo-app", path="/tmp/projects/todo-app")

    assert coordinator.set_active_project(project).active_project == project
    assert coordinator.set_active_project(None).active_project is None


# ==================== listeners ====================

def test_listener_failure_does_not_undo_transition():
    coordinator = AtomicStateCoordinator()
    seen = []

    def broken(state):
        raise RuntimeError("render failed")

    coordinator.subscribe(broken)
    coordinator.subscribe(seen.append)

    state = coordinator.start_new_project_mode()

    assert coordinator.snapshot is state
    assert seen == [state]


def test_unsubscribe_stops_notifications():
    coordinator = AtomicStateCoordinator()
    seen = []
    unsubscribe = coordinator.subscribe(seen.append)

    unsubscribe()
    coordinator.start_new_project_mode()
    unsubscribe()

    assert seen == []
