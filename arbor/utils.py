"""
Arbor utilities (small helpers shared by the command layer)

Scope
- Building blocks the command tree relies on for "not provided" defaults,
  readable generated callables and read-only introspection.

Overview
- UnsetType / Unset
  • Singleton sentinel for "value not provided", distinct from None.
  • Falsey, printable as "Unset", sealed against subclassing.

- coalesce(value, default=None)
  • Replace Unset with a concrete default; every other value (None, "", 0) passes through.

- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated callables (reprs, tracebacks).

- mirror("attr")
  • Read-only property over a private backing field (self._attr). Containers are
    returned as fresh copies so callers cannot mutate command state through them.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for arguments that were not provided.

    Characteristics
    - bool(Unset) is False, yet Unset is not None: None stays a legitimate value.
    - repr(Unset) -> "Unset".
    - UnsetType() always returns the same instance.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        # Pickles and copies resolve back to the singleton.
        return type(self), ()

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Return object unless it is Unset, in which case return default.

    Falsey values are preserved:
    - coalesce("", "x") -> ""
    - coalesce(Unset, "x") -> "x"
    """
    return default if object is Unset else object


def rename(*parameters):
    """
    Set __name__ and __qualname__ on a callable.

    Forms
    - rename(callable, name) -> callable (updated in place)
    - @rename(name)          -> decorator applying the name

    Raises
    - TypeError on a non-callable target, a non-string name or a wrong number of arguments.
    """
    match parameters:
        case (target, str(name)):
            if not builtins.callable(target):
                raise TypeError("rename() first argument must be callable")
            try:
                target.__name__ = target.__qualname__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be an updatable callable") from None
            return target
        case (str(name),):
            def decorator(target):
                return rename(target, name)
            return rename(decorator, "rename")
        case (_, _) | (_,):
            raise TypeError("rename() name must be a string")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _detach(object):
    # Fresh containers all the way down; leaves (callables, streams, strings) are shared.
    if isinstance(object, Mapping):
        return {key: _detach(value) for key, value in object.items()}
    if isinstance(object, Set):
        return set(map(_detach, object))
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_detach, object))
    return object


def mirror(name, /):
    """
    Build a read-only property that exposes self._{name}.

    Container values are detached copies, so mutating the result never changes
    the backing field. Used by the command metaclass for every name listed in
    __introspectable__.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
)
