from typing import Any, Optional, Tuple

from pymongo.collection import Collection
from pymongo.database import Database


class SessionScoped:
    """
    Proxy over a Database or Collection that passes ``session=`` to every
    method call. Databases and collections obtained through the proxy are
    scoped as well. The reactive template passes the motor types as
    ``proxied_types``.
    """

    PROXIED_TYPES = (Database, Collection)

    def __init__(self, target: Any, session: Any, proxied_types: Optional[Tuple[type, ...]] = None):
        self._target = target
        self._session = session
        self._proxied_types = proxied_types or self.PROXIED_TYPES

    @property
    def target(self) -> Any:
        return self._target

    @property
    def session(self) -> Any:
        return self._session

    def _wrap(self, value: Any) -> Any:
        if isinstance(value, self._proxied_types):
            return SessionScoped(value, self._session, self._proxied_types)
        return value

    def __getattr__(self, name: str) -> Any:
        attribute = getattr(self._target, name)
        if isinstance(attribute, self._proxied_types):
            return self._wrap(attribute)
        if not callable(attribute) or name.startswith("with_") or name == "get_collection":
            if callable(attribute):
                return lambda *args, **kwargs: self._wrap(attribute(*args, **kwargs))
            return attribute

        def invoke(*args: Any, **kwargs: Any) -> Any:
            kwargs.setdefault("session", self._session)
            return self._wrap(attribute(*args, **kwargs))

        return invoke

    def __getitem__(self, name: str) -> Any:
        return self._wrap(self._target[name])

    def __repr__(self) -> str:
        return f"SessionScoped({self._target!r})"
