"""Router: picks the next agent from an agent's output state."""

from typing import Protocol

from ..models import ROUTE_METADATA_KEY, State


class IRouter(Protocol):
    """Interprets the routing directive written by an agent."""

    @property
    def metadata_key(self) -> str:
        """Metadata key holding the directive."""
        ...

    def next_agent(self, state: State) -> tuple[str | None, bool]:
        """Return (agent_name, has_next)."""
        ...


class Router:
    """Routes on a reserved metadata key (default: "route").

    An absent or empty directive ends the chain; this is not an error.
    """

    def __init__(self, metadata_key: str = ROUTE_METADATA_KEY):
        self._metadata_key = metadata_key

    @property
    def metadata_key(self) -> str:
        return self._metadata_key

    def next_agent(self, state: State) -> tuple[str | None, bool]:
        """Return (agent_name, True) if a directive is set, else (None, False)."""
        target = state.get_meta(self._metadata_key)
        if target is None:
            return None, False
        target = target.strip()
        if not target:
            return None, False
        return target, True
