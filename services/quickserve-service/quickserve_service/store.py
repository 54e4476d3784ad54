from __future__ import annotations

import logging
import os
from collections import deque
from typing import Callable, List, Optional

from .domain import AppState
from .repository import StateRepository

logger = logging.getLogger(__name__)

THEME_KEY = "theme"
THEMES = ("light", "dark")
DEFAULT_THEME = "light"
DEFAULT_HISTORY_LIMIT = 100


class AppStore:
    """Owns the current application snapshot.

    Views never touch the snapshot directly: they hand a pure transition to
    :meth:`dispatch`, which swaps in the returned state once the transition
    has finished and, with a repository, been saved. A transition or save
    that raises leaves the current state in place. Only the newest
    ``history_limit`` snapshots are kept in memory.
    """

    def __init__(
        self,
        initial: AppState,
        repository: Optional[StateRepository] = None,
        history_limit: Optional[int] = None,
    ):
        if history_limit is None:
            history_limit = int(os.environ.get("HISTORY_LIMIT", str(DEFAULT_HISTORY_LIMIT)))
        self._state = initial
        self._history = deque([initial], maxlen=max(1, history_limit))
        self._repository = repository
        self._theme: Optional[str] = None

    @classmethod
    def load(cls, repository: StateRepository, default: AppState) -> "AppStore":
        saved = repository.latest_snapshot()
        if saved is None:
            logger.info("No saved snapshot, starting from seed data")
            repository.save_snapshot(default)
            return cls(default, repository)
        logger.info("Resuming from saved snapshot")
        return cls(saved, repository)

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def history(self) -> List[AppState]:
        return list(self._history)

    def dispatch(self, transition: Callable[..., AppState], *args, **kwargs) -> AppState:
        new_state = transition(self._state, *args, **kwargs)
        if new_state is self._state:
            return new_state
        if self._repository is not None:
            version = self._repository.save_snapshot(new_state)
            logger.debug("Snapshot saved version=%d via %s", version, transition.__name__)
        self._state = new_state
        self._history.append(new_state)
        return new_state

    def get_theme(self) -> str:
        if self._theme is None:
            stored = None
            if self._repository is not None:
                stored = self._repository.get_preference(THEME_KEY)
            self._theme = stored if stored in THEMES else DEFAULT_THEME
        return self._theme

    def set_theme(self, theme: str) -> str:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme {theme!r}, expected one of {', '.join(THEMES)}.")
        self._theme = theme
        if self._repository is not None:
            self._repository.set_preference(THEME_KEY, theme)
        logger.info("Theme set to %s", theme)
        return theme

    def toggle_theme(self) -> str:
        return self.set_theme("light" if self.get_theme() == "dark" else "dark")
