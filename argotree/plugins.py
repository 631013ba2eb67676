"""
Argotree plugins: reusable middleware with their own options.

Overview
- Plugin: spec bundling a coroutine middleware, the options it reads and whether it
  propagates to the descendants of the group it is attached to.
- plugin(...): decorator/factory building a Plugin around a middleware.
- chain(...): runs plugins in attachment order through a "next" continuation, then the
  terminal action of the node.
- Outcome: how a chain ended (COMPLETED, or HALTED by a middleware that did not call next).

Middleware contract
    async def middleware(ctx, args, next, node): ...
- ctx: caller-owned state shared by every middleware and the handler.
- args: ParsedArgs restricted to the plugin's own options.
- next: zero-argument coroutine function; awaiting it runs the rest of the chain.
  Code before it runs on the way in, code after it on the way out.
- node: the node being executed (or None when the chain runs standalone).
"""
import logging
from enum import Enum

from .options import merge_options
from .resolver import ensure_required
from .utils import *
from .utils import SpecType

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """
    How a chain run ended. COMPLETED is truthy, HALTED is falsy.
    """
    COMPLETED = "completed"
    HALTED = "halted"

    def __bool__(self):
        return self is Outcome.COMPLETED


class Plugin(metaclass=SpecType):
    """
    Middleware specification attached to a command or a group.

    Properties
    - middleware: the coroutine function called by chain().
    - options: read-only mapping of the options the plugin declares; they are merged
      into the options of every node the plugin is attached to.
    - recursive: when True, a group hands this plugin to all of its descendants.

    Calling a plugin forwards to its middleware.
    """

    __introspectable__ = (
        "middleware",
        "options",
        "recursive",
    )
    __displayable__ = (
        "middleware",
        "recursive",
    )

    def __new__(cls, middleware, /, options=Unset, *, recursive=False):
        """
        Construct a Plugin.

        Parameters
        - middleware: async (ctx, args, next, node) -> None.
        - options: Mapping of option key → Option.
        - recursive: propagate to descendants at tree construction.

        Raises
        - TypeError: middleware is not a coroutine function, or options are malformed.
        """
        if not iscoroutinecallable(middleware):
            raise TypeError(f"{cls.__typename__} 'middleware' must be a coroutine function")
        self = super().__new__(cls)
        self._middleware = middleware
        self._options = merge_options(options)
        self._recursive = bool(recursive)
        return self

    def __call__(self, ctx, args, next, node=None):
        return self._middleware(ctx, args, next, node)


def plugin(source=Unset, /, *args, **kwargs):
    """
    Create a Plugin or return a decorator to build it later.

    Invocation modes
    - Direct:
        verbose = plugin(middleware, {"verbose": Option("boolean")}, recursive=True)
    - Decorator with metadata:
        @plugin({"verbose": Option("boolean")}, recursive=True)
        async def verbose(ctx, args, next, node): ...
    - Bare decorator:
        @plugin
        async def timing(ctx, args, next, node): ...

    Returns
    - Plugin | Callable[[Callable], Plugin]
    """
    if source is not Unset and not callable(source):
        # metadata given positionally: plugin({...}, recursive=True)
        args, source = (source, *args), Unset

    @rename("plugin")
    def wrapper(middleware, /):
        if not callable(middleware):
            raise TypeError("@plugin() must be applied to a callable")
        return Plugin(middleware, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


def _label(plugin):
    return getattr(plugin.middleware, "__qualname__", None) or repr(plugin.middleware)


async def chain(plugins, ctx, args, terminal, /, node=None):
    """
    Run plugins in order, then the terminal action.

    Parameters
    - plugins: Iterable[Plugin], in attachment order.
    - ctx: shared state handed to every middleware.
    - args: ParsedArgs of the node (all of its merged options).
    - terminal: zero-argument coroutine function run after the last plugin; its
      Outcome (None counts as COMPLETED) becomes the result of the chain.
    - node: forwarded to each middleware.

    Behavior
    - Each plugin sees only the slice of args whose keys it declares, after its own
      required options are checked against that slice.
    - A middleware that returns without calling next halts the chain: later plugins and
      the terminal do not run and the result is Outcome.HALTED.
    - Exceptions from middleware or the terminal propagate unchanged.

    Raises
    - RequiredOptionMissingError: a plugin's required option has no value.
    - RuntimeError: a middleware called next more than once.
    """
    plugins = tuple(plugins)
    for item in plugins:
        if not isinstance(item, Plugin):
            raise TypeError("chain() 'plugins' must be an iterable of plugins")
    outcome = Outcome.HALTED

    async def proceed(cursor):
        nonlocal outcome
        if cursor == len(plugins):
            result = await terminal()
            outcome = Outcome.COMPLETED if result is None else Outcome(result)
            return

        current = plugins[cursor]
        view = args.pick(map(identifier, current.options))
        ensure_required(view, current.options)
        called = False

        @rename("next")
        async def next():
            nonlocal called
            if called:
                raise RuntimeError("next() called multiple times")
            called = True
            await proceed(cursor + 1)

        logger.debug("plugin %d/%d %s entered", cursor + 1, len(plugins), _label(current))
        await current(ctx, view, next, node)
        if not called:
            logger.debug("plugin %d/%d %s halted the chain", cursor + 1, len(plugins), _label(current))

    await proceed(0)
    return outcome


__all__ = (
    "Outcome",
    "Plugin",
    "plugin",
    "chain",
)
