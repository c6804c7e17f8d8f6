"""
Menu expansion state — one Collapsed/Expanded machine per sidebar section.

    initial     EXPANDED if default_open or active, else COLLAPSED
    toggle()    flips the state
    observe()   COLLAPSED -> EXPANDED when the section becomes active;
                never collapses

Auto-expansion fires whenever the requested path changes, so a section
the user collapsed by hand stays collapsed while the same page is
re-rendered and reopens on the next page inside it.

The state is kept per browser session. ``MenuExpansion`` converts to and
from a plain dict so the HTTP layer can store it in the Flask session.
"""

import enum
from typing import Iterable, Optional

from kimtex_nav.core.exceptions import NotFoundError
from kimtex_nav.services.navigation_catalog import MenuSection, resolve_active_section


class MenuState(enum.Enum):
    COLLAPSED = "collapsed"
    EXPANDED = "expanded"


class SectionExpansion:
    """Expansion state of a single section."""

    __slots__ = ("key", "state")

    def __init__(self, key: str, expanded: bool = False):
        self.key = key
        self.state = MenuState.EXPANDED if expanded else MenuState.COLLAPSED

    @classmethod
    def initial(cls, section: MenuSection, is_active: bool) -> "SectionExpansion":
        return cls(section.key, expanded=section.default_open or is_active)

    @property
    def expanded(self) -> bool:
        return self.state is MenuState.EXPANDED

    def toggle(self) -> MenuState:
        self.state = MenuState.COLLAPSED if self.expanded else MenuState.EXPANDED
        return self.state

    def observe(self, is_active: bool) -> MenuState:
        if is_active and not self.expanded:
            self.state = MenuState.EXPANDED
        return self.state


class MenuExpansion:
    """Expansion states for the visible sections of one session."""

    def __init__(self, states: Optional[dict] = None, path: Optional[str] = None):
        self.path = path
        self._states: dict[str, SectionExpansion] = {}
        for key, expanded in (states or {}).items():
            self._states[key] = SectionExpansion(key, bool(expanded))

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "MenuExpansion":
        if not isinstance(data, dict):
            return cls()
        states = data.get("sections")
        path = data.get("path")
        return cls(states if isinstance(states, dict) else None,
                   path if isinstance(path, str) else None)

    def to_dict(self) -> dict:
        return {
            "sections": {key: s.expanded for key, s in self._states.items()},
            "path": self.path,
        }

    def sync(self, sections: Iterable[MenuSection], path: Optional[str]) -> Optional[str]:
        """Register newly visible sections and auto-expand the active one.

        A section seen for the first time gets its initial state. Tracked
        sections observe the active section whenever ``path`` differs from
        the path of the previous sync. Nothing is ever collapsed here.

        Returns the active section key for ``path``.
        """
        active_key = resolve_active_section(path)
        moved = path != self.path
        for section in sections:
            is_active = section.key == active_key
            state = self._states.get(section.key)
            if state is None:
                self._states[section.key] = SectionExpansion.initial(section, is_active)
            elif moved:
                state.observe(is_active)
        self.path = path
        return active_key

    def toggle(self, key: str) -> bool:
        state = self._states.get(key)
        if state is None:
            raise NotFoundError(resource="MenuSection", resource_id=key)
        state.toggle()
        return state.expanded

    def is_expanded(self, key: str) -> bool:
        state = self._states.get(key)
        return state is not None and state.expanded

    def __contains__(self, key: str) -> bool:
        return key in self._states
