"""
Argotree argument resolver: argv + options + environment → typed, validated arguments.

Pipeline (each layer overwrites the previous one)
1. tokenize argv (argotree.lexer); boolean options are boolean flags, all other
   declared options are string-valued flags.
2. defaults: every option that declares one.
3. environment: every variable whose lower-cased, param-cased name is a declared key
   and whose value is non-empty.
4. argv: whatever the command line said.
   → precedence is argv > environment > default.
5. unknown keys are rejected.
6. coercion per declared type:
   • boolean: any string but the literal "false" is True;
   • non-array options given more than once are rejected;
   • number: the numeric-literal grammar below, or a 0x-prefixed hexadecimal;
   • array: single occurrences are wrapped, repeats are kept in order.
7. user predicates (Option.validate) run on the coerced values.
8. keys switch from the readable form ("log-level") to the programmatic one ("log_level").

Numeric literals
- [+-]? (digits[.digits*] | .digits) ([eE][+-]?digits)?  → int when integral, float otherwise
- 0x<hex digits>                                         → int

The same argv resolved twice against the same options yields equal results; options
are never mutated.
"""
import difflib
import logging
import re
from collections.abc import Iterable, Mapping

from .faults import *
from .lexer import tokenize
from .options import merge_options
from .utils import *

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[-+]?\d+", re.ASCII)
_DECIMAL = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:e[-+]?\d+)?", re.ASCII | re.IGNORECASE)
_HEXADECIMAL = re.compile(r"0x[0-9a-f]+", re.ASCII | re.IGNORECASE)


class ParsedArgs(Mapping):
    """
    Read-only result of a resolution.

    - Mapping over the typed option values, keyed by their programmatic form.
    - positional: tuple of the first bare word and everything after it.
    - passthrough: tuple of the tokens after a literal "--".
    - Attribute access reads values; a declared option that resolved to nothing reads
      as None (it is not a member of the mapping), anything else raises AttributeError.
    """
    __slots__ = ("_positional", "_passthrough", "_values", "_declared")

    def __init__(self, positional=(), passthrough=(), values=None, /, declared=()):
        self._positional = tuple(positional)
        self._passthrough = tuple(passthrough)
        self._values = dict(values or {})
        self._declared = frozenset(declared).union(self._values)

    @property
    def positional(self):
        return self._positional

    @property
    def passthrough(self):
        return self._passthrough

    def __getitem__(self, key, /):
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __getattr__(self, name, /):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            if name in self._declared:
                return None
        raise AttributeError(f"parsed-args has no option {name!r}")

    def __eq__(self, other, /):
        if isinstance(other, ParsedArgs):
            return (
                self._positional == other._positional and
                self._passthrough == other._passthrough and
                self._values == other._values
            )
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    __hash__ = None

    def __repr__(self):
        fields = [("positional", self._positional), ("passthrough", self._passthrough), *self._values.items()]
        return f"parsed-args({", ".join("%s=%r" % field for field in fields)})"

    def pick(self, keys, /):
        """
        Return the slice of this record restricted to the given programmatic keys.

        The slice carries no positional/passthrough tokens.
        """
        keys = tuple(keys)
        return ParsedArgs((), (), {key: self._values[key] for key in keys if key in self._values}, declared=keys)


def _spell(key):
    if key.startswith("-"):
        return key
    return ("-" if len(key) == 1 else "--") + key


def _number(key, text):
    """
    Internal: parse a numeric literal, raising TypeCoercionError when it is not one.
    """
    if _HEXADECIMAL.fullmatch(text):
        return int(text, 16)
    if _INTEGER.fullmatch(text):
        return int(text)
    if _DECIMAL.fullmatch(text):
        return float(text)
    raise TypeCoercionError(
        "option %r must be a number, got %r" % (key, text),
        title="not a number",
        code=FaultCode.TYPE_COERCION,
        key=key,
        value=text,
        hint="use a decimal (e.g., 3, -5, 3.14, 1e10) or a hexadecimal (e.g., 0x1f) literal",
        docs=getdoc(FaultCode.TYPE_COERCION),
    )


def _defaults(params):
    return {key: option.default for key, option in params.items() if option.default is not Unset}


def _environ(env, params):
    result = {}
    if env is Unset:
        return result
    if not isinstance(env, Mapping):
        raise TypeError("resolve() 'env' must be a mapping")
    for name, value in env.items():
        if not isinstance(name, str) or (key := paramcase(name.lower())) not in params:
            continue
        if not isinstance(value, str):
            raise TypeError(f"resolve() 'env' value of {name!r} must be a string")
        # empty values count as absent
        if value:
            result[key] = value
    return result


def _cook(raw, params):
    """
    Internal: reject unknown keys, then coerce and validate every declared value.
    """
    for key in raw:
        if key not in params:
            suggestions = difflib.get_close_matches(key, params.keys(), 5)
            try:
                hint = "did you mean %r?" % _spell(suggestions[0])
            except IndexError:
                hint = "remove it; this command does not declare it"
            raise UnknownOptionError(
                "unknown option %r" % _spell(key),
                title="unknown option",
                code=FaultCode.UNKNOWN_OPTION,
                key=key,
                suggestions=suggestions,
                hint=hint,
                docs=getdoc(FaultCode.UNKNOWN_OPTION),
            )

    result = {}
    for key, option in params.items():
        if (value := raw.get(key, Unset)) is Unset:
            continue

        if option.type == "array":
            value = tuple(value) if isinstance(value, list | tuple) else (value,)
        elif isinstance(value, list):
            raise MultipleValuesError(
                "option %r must be specified only once" % key,
                title="repeated option",
                code=FaultCode.MULTIPLE_VALUES,
                key=key,
                value=tuple(value),
                hint="keep a single %s; only array options can repeat" % _spell(key),
                docs=getdoc(FaultCode.MULTIPLE_VALUES),
            )

        match option.type:
            case "boolean" if isinstance(value, str):
                value = value != "false"
            case "number" if isinstance(value, str):
                value = _number(key, value)

        if option.validate is not None and not option.validate(value):
            raise InvalidValueError(
                "option %r has invalid value %r" % (key, value),
                title="invalid value",
                code=FaultCode.INVALID_VALUE,
                key=key,
                value=value,
                hint=option.description or "check the accepted values for %s" % _spell(key),
                docs=getdoc(FaultCode.INVALID_VALUE),
            )

        result[key] = value
    return result


def ensure_required(args, options, /):
    """
    Fail when a required option of 'options' has no value in 'args'.

    Parameters
    - args: Mapping keyed by programmatic keys (e.g., ParsedArgs).
    - options: Mapping of option key → Option (any casing).

    Raises
    - RequiredOptionMissingError for the first missing option, in declaration order.
    """
    for key, option in options.items():
        if option.required and identifier(key) not in args:
            raise RequiredOptionMissingError(
                "option %r is required" % paramcase(key),
                title="missing option",
                code=FaultCode.REQUIRED_OPTION,
                key=paramcase(key),
                hint="pass it as %s=<value> or set it through the environment" % _spell(paramcase(key)),
                docs=getdoc(FaultCode.REQUIRED_OPTION),
            )


def resolve(argv, options, env=Unset, *, required=True):
    """
    Resolve argv against options (and optionally an environment) into ParsedArgs.

    Parameters
    - argv: Iterable[str] of tokens (not a shell string).
    - options: Mapping of option key → Option.
    - env: Mapping[str, str] | Unset, e.g. a copy of os.environ.
    - required: also enforce required options here. Nodes pass False and leave that
      check to the plugin chain and the command.

    Raises
    - UnknownOptionError, TypeCoercionError, MultipleValuesError, InvalidValueError and,
      when required is True, RequiredOptionMissingError (all ValidationError).
    """
    if isinstance(argv, str) or not isinstance(argv, Iterable):
        raise TypeError("resolve() 'argv' must be an iterable of strings")

    params = merge_options(options)
    lexeme = tokenize(
        argv,
        booleans=[key for key, option in params.items() if option.type == "boolean"],
        strings=[key for key, option in params.items() if option.type != "boolean"],
    )

    raw = _defaults(params) | _environ(env, params) | lexeme.values
    cooked = _cook(raw, params)

    args = ParsedArgs(
        lexeme.positional,
        lexeme.passthrough,
        {identifier(key): value for key, value in cooked.items()},
        declared=map(identifier, params),
    )
    if required:
        ensure_required(args, params)

    logger.debug(
        "resolved %d of %d option(s), %d positional, %d passthrough",
        len(args), len(params), len(args.positional), len(args.passthrough),
    )
    return args


__all__ = (
    "ParsedArgs",
    "resolve",
    "ensure_required",
)
