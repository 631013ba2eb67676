r"""
Argotree option specifications.

Overview
- Option: a single named, typed parameter of a command, group or plugin.
  • type: one of "string", "boolean", "number", "array" (array = repeatable string values).
    The Python types str, bool, int, float, list and tuple are accepted as aliases.
  • default: optional; its runtime type must match the declared type.
  • validate: optional predicate run on the coerced value.
  • description: optional short help text.
  • required: when True the resolved value is always present.

- merge_options(*layers): pure, last-write-wins merge of option mappings into a new
  read-only mapping keyed by the readable (hyphenated) form of each key.

Metadata (sanitized on construction)
- type is immutable after creation (read-only property).
- array defaults are stored as tuples of strings.
- description strings are trimmed; empty strings are rejected; Unset becomes None.

Quick example:
    >>> from argotree import Option, merge_options
    >>> options = merge_options({"logLevel": Option("string", default="info")})
    >>> list(options)
    ['log-level']
"""
import builtins
from collections.abc import Mapping, Sequence, Set
from types import MappingProxyType

from .utils import *
from .utils import SpecType

OPTION_TYPES = ("string", "boolean", "number", "array")

_ALIASES = {
    str: "string",
    bool: "boolean",
    int: "number",
    float: "number",
    list: "array",
    tuple: "array",
}

# Attribute names of ParsedArgs itself; an option cannot resolve onto them.
_RESERVED = frozenset((
    "positional",
    "passthrough",
    "pick",
    "keys",
    "items",
    "values",
    "get",
))


def _sanitize_type(cls, metadata, /):
    """
    Internal: normalize the type tag (aliases resolve to their tag).
    """
    type = metadata["type"]
    if isinstance(type, builtins.type):
        type = _ALIASES.get(type, type)
    if not isinstance(type, str):
        raise TypeError(f"{cls.__typename__} 'type' must be one of {', '.join(map(repr, OPTION_TYPES))}")
    if (type := type.strip().lower()) not in OPTION_TYPES:
        raise ValueError(f"{cls.__typename__} 'type' must be one of {', '.join(map(repr, OPTION_TYPES))}")
    metadata["type"] = type


def _sanitize_default(cls, metadata, /):
    """
    Internal: check that the default's runtime type matches the declared type.

    Rules
    - string  → str
    - boolean → bool
    - number  → int | float (bool is rejected even though it subclasses int)
    - array   → non-string sequence (or set) of str, stored as a tuple
    """
    if (default := metadata["default"]) is Unset:
        return

    match metadata["type"]:
        case "string":
            if not isinstance(default, str):
                raise TypeError(f"{cls.__typename__} string 'default' must be a string")
        case "boolean":
            if not isinstance(default, bool):
                raise TypeError(f"{cls.__typename__} boolean 'default' must be a boolean")
        case "number":
            if isinstance(default, bool) or not isinstance(default, int | float):
                raise TypeError(f"{cls.__typename__} number 'default' must be an integer or a float")
        case "array":
            if isinstance(default, str) or not isinstance(default, Sequence | Set):
                raise TypeError(f"{cls.__typename__} array 'default' must be a sequence of strings")
            if not all(isinstance(item, str) for item in default):
                raise TypeError(f"{cls.__typename__} array 'default' must be a sequence of strings")
            metadata["default"] = tuple(default)


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate validate/description/required.
    """
    if not callable(validate := metadata["validate"]) and validate is not Unset:
        raise TypeError(f"{cls.__typename__} 'validate' must be callable")
    metadata["validate"] = coalesce(validate)

    if not isinstance(description := metadata["description"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'description' must be a string")
    elif isinstance(description, str) and not (description := description.strip()):
        raise ValueError(f"{cls.__typename__} 'description' cannot be empty")
    metadata["description"] = coalesce(description)

    metadata["required"] = bool(metadata["required"])


class Option(metaclass=SpecType):
    """
    Named, typed option specification.

    Option declares how a named parameter is typed, defaulted and validated.
    It carries no behavior; the resolver reads it, the plugin chain and the
    command layer read its 'required' flag.

    Properties
    - type, default, validate, description, required (read-only).
      default is Unset when no default was given.
    """

    __introspectable__ = (
        "type",
        "default",
        "validate",
        "description",
        "required",
    )

    def __new__(
            cls,
            type="string",
            /,
            default=Unset,
            validate=Unset,
            description=Unset,
            *,
            required=False
    ):
        """
        Construct an Option spec with the provided metadata.

        Parameters
        - type: "string" | "boolean" | "number" | "array" (or str/bool/int/float/list/tuple)
        - default: value whose runtime type matches 'type'; Unset for none.
        - validate: Callable[[value], bool], run after coercion.
        - description: short help text.
        - required: bool.

        Raises
        - TypeError/ValueError on an unknown type tag, a mismatched default,
          a non-callable predicate, or an empty description.
        """
        metadata = {
            "type": type,
            "default": default,
            "validate": validate,
            "description": description,
            "required": required,
        }
        _sanitize_type(cls, metadata)
        _sanitize_default(cls, metadata)
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


def merge_options(*layers):
    """
    Merge option mappings into a new read-only mapping.

    Behavior
    - Keys are normalized to their readable form with paramcase() ("logLevel" → "log-level").
    - Layers are applied in order; a later layer overwrites an earlier key (last-write-wins),
      including keys spelled differently that normalize to the same form.
    - Unset layers are skipped; inputs are never mutated.

    Raises
    - TypeError: a layer is not a mapping, a key is not a string, or a value is not an Option.
    - ValueError: a key normalizes to an empty or reserved name.
    """
    merged = {}
    for layer in layers:
        if layer is Unset:
            continue
        if not isinstance(layer, Mapping):
            raise TypeError("merge_options() arguments must be mappings of options")
        for key, option in layer.items():
            if not isinstance(key, str):
                raise TypeError("merge_options() option keys must be strings")
            elif not (name := paramcase(key)):
                raise ValueError(f"merge_options() option key {key!r} is not a valid name")
            elif identifier(name) in _RESERVED:
                raise ValueError(f"merge_options() option key {key!r} is reserved")
            if not isinstance(option, Option):
                raise TypeError(f"merge_options() value for {key!r} must be an option")
            merged[name] = option
    return MappingProxyType(merged)


__all__ = (
    "OPTION_TYPES",
    "Option",
    "merge_options",
)
