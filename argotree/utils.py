"""
Argotree utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the option, resolver, plugin and command layers.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated wrappers for clean tracebacks.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) through
    read-only views for containers.

- paramcase(key) / identifier(key)
  • The two key casings of the system: the readable, hyphenated form used on the command
    line ("log-level") and the programmatic form handed to handlers ("log_level").

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> paramcase("logLevel"), paramcase("LOG_LEVEL"), identifier("log-level")
    ('log-level', 'log-level', 'log_level')
"""
import builtins
import functools
import inspect
import operator
import re
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Used where None is a legitimate user value but the API still needs to tell
    “not provided” apart from “provided as None”. A single instance, Unset, is
    exposed for use as the default in parameters.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and singleton per process.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()
"""
Sentinel for “not provided”.

Distinct from None; falsey; a singleton. Pair with coalesce(...) to materialize
a fallback only when a value is Unset.
"""


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns the given object unless it is Unset, in which case the default is
    returned. Falsey values like None, 0, "" or [] are preserved as-is.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable
    - @rename(name)
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _freeze(object):
    """
    Wrap containers into read-only counterparts (shallow).

    - Mapping: MappingProxyType over the same mapping.
    - Set: frozenset.
    - Sequence (non-string): tuple.
    - Anything else: returned as-is.
    """
    if isinstance(object, MappingProxyType):
        return object
    if isinstance(object, Mapping):
        return MappingProxyType(object)
    if isinstance(object, Set):
        return frozenset(object)
    if isinstance(object, Sequence) and not isinstance(object, str):
        return tuple(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads "_{name}" on the instance and returns a
    read-only view for container types so the public API cannot be used to
    mutate internal state.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


def iscoroutinecallable(object, /):
    """
    True when calling the object returns a coroutine: coroutine functions, partials of
    them, and instances whose __call__ is a coroutine function.
    """
    if inspect.iscoroutinefunction(object):
        return True
    return callable(object) and inspect.iscoroutinefunction(getattr(object, "__call__", None))


@functools.cache
def paramcase(key, /):
    """
    Return the readable, hyphenated form of an option key.

    Word boundaries are camel humps, underscores, spaces and any other
    non-alphanumeric run; the result is lower-cased and hyphen-joined.

    Examples
    - paramcase("logLevel")    -> "log-level"
    - paramcase("log_level")   -> "log-level"
    - paramcase("HTTPServer")  -> "http-server"
    - paramcase("log-level")   -> "log-level"
    """
    if not isinstance(key, str):
        raise TypeError("paramcase() argument must be a string")
    key = re.sub(r"([^\W_])(?=[A-Z][a-z])|([a-z\d])(?=[A-Z])", r"\1\2-", key)
    return "-".join(filter(None, re.split(r"[\W_]+", key))).lower()


@functools.cache
def identifier(key, /):
    """
    Return the programmatic form of an option key (a valid Python name when
    the key is alphanumeric): paramcase(key) with hyphens turned into underscores.
    """
    return paramcase(key).replace("-", "_")


class SpecType(type):
    """
    Metaclass for immutable, introspectable spec objects (options, plugins, nodes).

    Responsibilities
    - Derive a human-friendly __typename__ from the class name ("CommandSpec" -> "command-spec").
    - Expose every name listed in __introspectable__ as a read-only property backed by "_{name}".
    - Provide stable __repr__/__rich_repr__ built from __displayable__ (or __introspectable__).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - option(type='string', default=Unset, ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "iscoroutinecallable",
    "paramcase",
    "identifier",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
