"""
Atomic State Coordinator - Single writer of session state

Holds one immutable SessionState snapshot. Every mutation is a named
transition that builds the next snapshot and swaps it in under a lock,
so readers see the whole state before or after a transition, never a mix.

Transitions:
    start_new_project_mode       repository cleared, marker cleared, creating=True
    complete_project_creation    project set, creating=False, marker=name, refresh +1
    coordinated_cache_refresh    cache invalidated and refreshed
    clear_all_repository_data    repository and marker cleared (creating optional)
    select_repository            repository set, creating=False
    set_active_project           active project replaced
    acknowledge_newly_created    marker cleared if it still names the repository

Invariant:
    is_creating_new_project and selected_repository are never both set.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from protocol import ProjectInfo, Repository, SessionState
from runtime.collaborators import RepositoryCache

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]


class AtomicStateCoordinator:
    def __init__(
        self,
        initial: Optional[SessionState] = None,
        cache: Optional[RepositoryCache] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._state = initial or SessionState()
        self._cache = cache
        self._listeners: List[StateListener] = []

    @property
    def snapshot(self) -> SessionState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with each new snapshot. Returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ==================== Transitions ====================

    def start_new_project_mode(self) -> SessionState:
        return self._apply(
            "start_new_project_mode",
            lambda state: state.model_copy(
                update={
                    "selected_repository": None,
                    "newly_created_marker": None,
                    "is_creating_new_project": True,
                }
            ),
        )

    def complete_project_creation(
        self,
        repository_url: str,
        name: str,
        is_new_project: bool,
        project: Optional[ProjectInfo] = None,
    ) -> SessionState:
        """
        Finish a project creation in one step.

        Args:
            repository_url: URL of the repository backing the new project
            name: Repository name to mark as newly created
            is_new_project: True when the session was in new-project mode;
                the repository selection is then dropped
            project: Full project record; built from name and URL if omitted

        Returns:
            The new snapshot
        """
        active = project or ProjectInfo(name=name, repository_url=repository_url)

        def transition(state: SessionState) -> SessionState:
            update = {
                "active_project": active,
                "is_creating_new_project": False,
                "newly_created_marker": name,
                "refresh_version": state.refresh_version + 1,
            }
            if is_new_project:
                update["selected_repository"] = None
            return state.model_copy(update=update)

        return self._apply("complete_project_creation", transition)

    def coordinated_cache_refresh(self) -> None:
        """Invalidate and refresh the repository list. Safe to call repeatedly."""
        if self._cache is None:
            logger.debug("cache refresh requested with no cache attached")
            return
        with self._lock:
            self._cache.invalidate()
            self._cache.refresh()
        logger.info("repository cache refresh requested")

    def clear_all_repository_data(self, preserve_creating_flag: bool = False) -> SessionState:
        def transition(state: SessionState) -> SessionState:
            update = {"selected_repository": None, "newly_created_marker": None}
            if not preserve_creating_flag:
                update["is_creating_new_project"] = False
            return state.model_copy(update=update)

        state = self._apply("clear_all_repository_data", transition)
        self.coordinated_cache_refresh()
        return state

    def select_repository(self, repository: Repository) -> SessionState:
        def transition(state: SessionState) -> SessionState:
            update = {"selected_repository": repository, "is_creating_new_project": False}
            if state.newly_created_marker == repository.name:
                update["newly_created_marker"] = None
            project = state.active_project
            if project is not None and project.repository_name != repository.name:
                update["active_project"] = None
            return state.model_copy(update=update)

        return self._apply("select_repository", transition)

    def set_active_project(self, project: Optional[ProjectInfo]) -> SessionState:
        return self._apply(
            "set_active_project",
            lambda state: state.model_copy(update={"active_project": project}),
        )

    def acknowledge_newly_created(self, name: str) -> SessionState:
        def transition(state: SessionState) -> SessionState:
            if state.newly_created_marker != name:
                return state
            return state.model_copy(update={"newly_created_marker": None})

        return self._apply("acknowledge_newly_created", transition)

    # ==================== Internals ====================

    def _apply(self, name: str, transition: Callable[[SessionState], SessionState]) -> SessionState:
        with self._lock:
            before = self._state
            after = transition(before)
            self._state = after
            listeners = list(self._listeners)

        if after == before:
            return after

        logger.info(
            "state transition %s: repository=%s creating=%s marker=%s refresh_version=%d",
            name,
            after.selected_repository.full_name if after.selected_repository else None,
            after.is_creating_new_project,
            after.newly_created_marker,
            after.refresh_version,
        )
        for listener in listeners:
            try:
                listener(after)
            except Exception:
                logger.exception("state listener failed after %s", name)
        return after
