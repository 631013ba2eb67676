r"""
Argotree lexer: split argv tokens into positionals, passthrough and raw key/value pairs.

Contract
- The first literal "--" splits the stream; every token after it is passthrough, verbatim.
- Scanning stops at the first positional token (a bare word, a lone "-", or a negative
  number): that token and every following one are positional, so a group can hand the
  tail to one of its children untouched.
- Long forms
  • "--key=value" assigns "value" (an empty string is kept).
  • "--key value" consumes the next token unless it looks like a switch (negative numbers
    are values).
  • a bare "--key" is "" for declared string keys and True otherwise.
- Boolean keys
  • a bare "--key" is True; a following literal "true"/"false" is consumed as its value.
  • "--no-key" is False when "key" is boolean and "no-key" is not itself declared.
  • repeats overwrite the previous value.
- Short forms
  • "-k", "-k=value" and "-k value" behave like their long counterparts.
  • "-abc" sets "a" and "b" to True and treats "c" like "-c".
- Non-boolean repeats accumulate into a list in order of appearance.

Values are never coerced here: the resolver owns types.
"""
import re
from collections import deque, namedtuple
from collections.abc import Iterable

Lexeme = namedtuple("Lexeme", ("positional", "passthrough", "values"))
Lexeme.__doc__ = """
Raw result of tokenize().

- positional: tuple[str, ...]
- passthrough: tuple[str, ...]
- values: dict[str, str | bool | list[str | bool]] keyed as written on the command line
"""

_NUMBER = re.compile(r"-(?:\d+(?:\.\d*)?|\.\d+)(?:e[-+]?\d+)?", re.IGNORECASE)
_LONG = re.compile(r"--(?P<key>[^=]+)(?:=(?P<value>.*))?", re.DOTALL)
_SHORT = re.compile(r"-(?P<keys>[^-=][^=]*)(?:=(?P<value>.*))?", re.DOTALL)


def _switchlike(token):
    """
    True when the token would be read as an option or flag rather than a value.
    """
    return token.startswith("-") and token != "-" and not _NUMBER.fullmatch(token)


def _assign(values, key, value, booleans):
    if key in booleans or key not in values:
        values[key] = value
    elif isinstance(values[key], list):
        values[key].append(value)
    else:
        values[key] = [values[key], value]


def _take(key, tokens, values, booleans, strings):
    """
    Resolve the value of a switch written without '=', peeking at the next token.
    """
    if key in booleans:
        if tokens and tokens[0] in ("true", "false"):
            return _assign(values, key, tokens.popleft(), booleans)
        return _assign(values, key, True, booleans)
    if tokens and not _switchlike(tokens[0]):
        return _assign(values, key, tokens.popleft(), booleans)
    _assign(values, key, "" if key in strings else True, booleans)


def tokenize(argv, /, booleans=(), strings=()):
    """
    Split argv into a Lexeme (see module docstring for the grammar).

    Parameters
    - argv: Iterable[str]
    - booleans: keys read as boolean flags.
    - strings: keys read as string-valued flags.

    Raises
    - TypeError: when argv is a plain string or holds non-string items.
    """
    if isinstance(argv, str) or not isinstance(argv, Iterable):
        raise TypeError("tokenize() argument must be an iterable of strings")
    argv = list(argv)
    if not all(isinstance(token, str) for token in argv):
        raise TypeError("tokenize() argument must be an iterable of strings")

    booleans = frozenset(booleans)
    strings = frozenset(strings)

    try:
        index = argv.index("--")
    except ValueError:
        passthrough = ()
    else:
        argv, passthrough = argv[:index], tuple(argv[index + 1:])

    values = {}
    positional = []
    tokens = deque(argv)

    while tokens:
        token = tokens.popleft()

        if not _switchlike(token):
            # stop early: the rest belongs to whoever consumes this word
            positional.append(token)
            positional.extend(tokens)
            break

        if match := _LONG.fullmatch(token):
            key, value = match["key"], match["value"]
            if value is not None:
                _assign(values, key, value, booleans)
            elif key.startswith("no-") and key[3:] in booleans and key not in booleans | strings:
                _assign(values, key[3:], False, booleans)
            else:
                _take(key, tokens, values, booleans, strings)
            continue

        if not (match := _SHORT.fullmatch(token)):
            # malformed ("-=x", "--=x"): keep it verbatim so the resolver reports it as unknown
            _assign(values, token, True, booleans)
            continue

        *cluster, key = match["keys"]
        for letter in cluster:
            _assign(values, letter, True, booleans)
        if match["value"] is not None:
            _assign(values, key, match["value"], booleans)
        else:
            _take(key, tokens, values, booleans, strings)

    return Lexeme(tuple(positional), passthrough, values)


__all__ = (
    "Lexeme",
    "tokenize",
)
