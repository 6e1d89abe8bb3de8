"""PropertyStore — a key/value container with per-key validators.

Business state behind a controller lives here. Writes go through the
key's validator (if one is registered); change notifications go to a
``StoreHooks`` object held by the store rather than to overridden
methods, so observers can be swapped without subclassing.

Usage::

    store = PropertyStore({"name": "ada"})
    store.register_validator("age", lambda v: isinstance(v, int) and v >= 0)
    store.set("age", 36)
    store.get("email")  # -> ABSENT
"""

from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from movico.errors import ValidationError

# (value) -> bool; a falsy result rejects the write
type PropertyValidator = Callable[[Any], bool]


# ---------------------------------------------------------------------------
# ABSENT sentinel
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _Absent:
    """Marker returned by ``get()`` for a key the store does not hold.

    Distinct from ``None``, which is a legitimate stored value.
    """

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: _Absent = _Absent()


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


@runtime_checkable
class StoreHooks(Protocol):
    """Observer notified after each successful mutation."""

    def on_set(self, key: Hashable, value: Any) -> None: ...

    def on_remove(self, key: Hashable) -> None: ...

    def on_reset(self) -> None: ...


class NullHooks:
    """Hooks that do nothing. The default."""

    __slots__ = ()

    def on_set(self, key: Hashable, value: Any) -> None:
        pass

    def on_remove(self, key: Hashable) -> None:
        pass

    def on_reset(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class PropertyStore:
    """Mapping of properties plus a parallel mapping of validators.

    Every value that reached the store through ``set()`` passed its key's
    validator, or the key had none. Mutation happens during setup or
    from a single request at a time; there is no locking.
    """

    __slots__ = ("_hooks", "_properties", "_validators")

    def __init__(
        self,
        initial: Mapping[Hashable, Any] | None = None,
        *,
        hooks: StoreHooks | None = None,
    ) -> None:
        self._properties: dict[Hashable, Any] = dict(initial or {})
        self._validators: dict[Hashable, PropertyValidator] = {}
        self._hooks: StoreHooks = hooks if hooks is not None else NullHooks()

    @property
    def hooks(self) -> StoreHooks:
        return self._hooks

    def set(self, key: Hashable, value: Any) -> None:
        """Store *value* under *key*.

        Raises ``ValidationError`` if the key's validator rejects the
        value; the store and its hooks are left untouched in that case.
        """
        validator = self._validators.get(key)
        if validator is not None and not validator(value):
            msg = f"Validation failed for property {key!r}"
            raise ValidationError(detail=msg)
        self._properties[key] = value
        self._hooks.on_set(key, value)

    def get(self, key: Hashable) -> Any:
        """Return the value for *key*, or ``ABSENT``."""
        return self._properties.get(key, ABSENT)

    def remove(self, key: Hashable) -> None:
        """Delete *key*. The remove hook fires even if it was not present."""
        self._properties.pop(key, None)
        self._hooks.on_remove(key)

    def reset(self, defaults: Mapping[Hashable, Any] | None = None) -> None:
        """Replace every property with *defaults* (or nothing)."""
        self._properties = dict(defaults or {})
        self._hooks.on_reset()

    def register_validator(self, key: Hashable, validator: PropertyValidator) -> None:
        """Install *validator* for *key*, replacing any previous one.

        Values already stored are not re-checked.
        """
        self._validators[key] = validator

    def has(self, key: Hashable) -> bool:
        return key in self._properties

    def snapshot(self) -> Mapping[Hashable, Any]:
        """Read-only copy of every property, detached from later writes."""
        return MappingProxyType(dict(self._properties))

    def __contains__(self, key: object) -> bool:
        return key in self._properties

    def __len__(self) -> int:
        return len(self._properties)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._properties!r})"
