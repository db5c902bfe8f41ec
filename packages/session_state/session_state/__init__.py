from session_state.cache import RepositoryListCache
from session_state.coordinator import AtomicStateCoordinator, StateListener

__all__ = [
    "AtomicStateCoordinator",
    "RepositoryListCache",
    "StateListener",
]
