"""
Argotree command tree: node specifications, executable nodes and entry points.

Overview
- CommandSpec / GroupSpec: immutable declarations tagged by NodeKind. A command carries
  an async handler; a group carries child specs.
- Node: executable counterpart of a spec. It merges the options of its plugins with its
  own, resolves argv against them and runs its plugin chain around perform().
- Command: perform() checks its own required options and awaits the handler.
- Group: perform() checks its own required options, then picks a child from the first
  positional token (or the default child) and executes it with the residual argv.
- command(), group(), plugin(), app(), invoke(): the declarative surface.

Recursive plugins
- At construction a group appends its recursive plugins to the plugins of each child
  spec, so at every depth they run after the node's own plugins and before its action.

Quick example:
    >>> from argotree import Option, command, group, invoke
    >>> @command(options={"name": Option("string", default="world")})
    ... async def hello(ctx, args):
    ...     print(f"hello {args.name}")
    >>> invoke(group("demo", hello), argv=["hello", "--name", "you"])
    hello you
"""
import asyncio
import copy
import difflib
import inspect
import logging
import os
import re
import shlex
import sys
from collections.abc import Iterable, Mapping
from enum import StrEnum

from .faults import *
from .options import merge_options
from .plugins import Outcome, Plugin, chain
from .resolver import ensure_required, resolve
from .utils import *
from .utils import SpecType

logger = logging.getLogger(__name__)

GROUP_USAGE = "[...options] <command>"

_NAME = re.compile(r"[^\W_][\w.:-]*")


class NodeKind(StrEnum):
    COMMAND = "command"
    GROUP = "group"


def _process_name(cls, metadata):
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif not _NAME.fullmatch(name):
        raise ValueError(f"{cls.__typename__} 'name' {name!r} is not a valid command name")
    metadata["name"] = name


def _process_strings(cls, metadata):
    """
    Normalize usage/description: trimmed non-empty strings, Unset becomes None.
    """
    for name in ("usage", "description"):
        if not isinstance(object := metadata[name], str | Unset | None):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        metadata[name] = coalesce(object)


def _process_plugins(cls, metadata):
    if isinstance(plugins := metadata["plugins"], str) or not isinstance(plugins, Iterable):
        raise TypeError(f"{cls.__typename__} 'plugins' must be an iterable of plugins")
    plugins = tuple(plugins)
    for item in plugins:
        if not isinstance(item, Plugin):
            raise TypeError(f"{cls.__typename__} 'plugins' must be an iterable of plugins")
    metadata["plugins"] = plugins


def _process_children(cls, metadata):
    """
    Children must be node specs with unique names; at most one may be the default.
    """
    if isinstance(children := metadata["children"], str) or not isinstance(children, Iterable):
        raise TypeError(f"{cls.__typename__} 'children' must be an iterable of node specs")
    children = tuple(children)
    if not children:
        raise ValueError(f"{cls.__typename__} 'children' cannot be empty")

    seen = set()
    defaults = []
    for child in children:
        if not isinstance(child, NodeSpec):
            raise TypeError(f"{cls.__typename__} 'children' must be an iterable of node specs")
        if child.name in seen:
            raise ValueError(f"{cls.__typename__} 'children' has a duplicate name {child.name!r}")
        seen.add(child.name)
        if child.default:
            defaults.append(child.name)
    if len(defaults) > 1:
        raise ValueError(
            f"{cls.__typename__} 'children' has more than one default: {", ".join(map(repr, defaults))}"
        )
    metadata["children"] = children


class NodeSpec(metaclass=SpecType):
    """
    Common shape of CommandSpec and GroupSpec.

    Specs are plain declarations: they hold no behavior and are never mutated.
    copy.replace(spec, **changes) builds a validated copy.
    """

    __introspectable__ = (
        "kind",
        "name",
        "default",
        "usage",
        "description",
        "options",
        "plugins",
    )
    __fields__ = ()

    def _setup(self, metadata):
        cls = type(self)
        _process_name(cls, metadata)
        _process_strings(cls, metadata)
        _process_plugins(cls, metadata)
        metadata["options"] = merge_options(metadata["options"])
        metadata["default"] = bool(metadata["default"])
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __replace__(self, /, **changes):
        if unknown := changes.keys() - set(type(self).__fields__):
            raise TypeError(f"{type(self).__typename__} has no field(s) {", ".join(sorted(unknown))}")
        fields = {name: getattr(self, "_" + name) for name in type(self).__fields__}
        return type(self)(**fields | changes)


class CommandSpec(NodeSpec):
    """
    Declaration of a leaf command.

    Properties
    - kind (NodeKind.COMMAND), name, default, usage, description, options, plugins.
    - handler: async (ctx, args) -> None.
    """

    __introspectable__ = (*NodeSpec.__introspectable__, "handler")
    __displayable__ = ("name", "default", "description", "options", "plugins")
    __fields__ = ("name", "handler", "options", "plugins", "default", "usage", "description")
    _kind = NodeKind.COMMAND

    def __new__(
            cls,
            name,
            handler,
            options=Unset,
            plugins=(),
            *,
            default=False,
            usage=Unset,
            description=Unset,
    ):
        """
        Raises
        - TypeError: handler is not a coroutine function, or a field has the wrong type.
        - ValueError: empty name/usage/description.
        """
        if not iscoroutinecallable(handler):
            raise TypeError(f"{cls.__typename__} 'handler' must be a coroutine function")
        metadata = {
            "name": name,
            "handler": handler,
            "options": options,
            "plugins": plugins,
            "default": default,
            "usage": usage,
            "description": description,
        }
        return super().__new__(cls)._setup(metadata)


class GroupSpec(NodeSpec):
    """
    Declaration of a group of commands.

    Properties
    - kind (NodeKind.GROUP), name, default, usage, description, options, plugins.
    - children: tuple of CommandSpec | GroupSpec with unique names, at most one default.
    """

    __introspectable__ = (*NodeSpec.__introspectable__, "children")
    __displayable__ = ("name", "default", "description", "options", "plugins", "children")
    __fields__ = ("name", "children", "options", "plugins", "default", "usage", "description")
    _kind = NodeKind.GROUP

    def __new__(
            cls,
            name,
            children,
            options=Unset,
            plugins=(),
            *,
            default=False,
            usage=Unset,
            description=Unset,
    ):
        """
        Raises
        - TypeError: a child is not a node spec, or a field has the wrong type.
        - ValueError: no children, duplicate child names, more than one default child.
        """
        metadata = {
            "name": name,
            "children": children,
            "options": options,
            "plugins": plugins,
            "default": default,
            "usage": usage,
            "description": description,
        }
        _process_children(cls, metadata)
        return super().__new__(cls)._setup(metadata)


class Node(metaclass=SpecType):
    """
    Executable node built from a spec.

    Properties
    - kind, name, default, usage, description: copied from the spec.
    - options: the options of every attached plugin, in attachment order, then the
      node's own (last-write-wins).
    - plugins: tuple of attached plugins, own first, then inherited recursive ones.
    """

    __introspectable__ = (
        "kind",
        "name",
        "default",
        "usage",
        "description",
        "options",
        "plugins",
    )
    __displayable__ = (
        "kind",
        "name",
        "default",
        "description",
    )

    def __init__(self, spec, /):
        if not isinstance(spec, NodeSpec):
            raise TypeError(f"{type(self).__typename__} argument must be a node spec")
        self._spec = spec
        self._kind = spec.kind
        self._name = spec.name
        self._default = spec.default
        self._usage = spec.usage
        self._description = spec.description
        self._plugins = spec.plugins
        self._options = merge_options(*(item.options for item in spec.plugins), spec.options)

    def parse(self, argv, env=Unset):
        """
        Resolve argv (and env) against the merged options of this node.

        Required options are not enforced here; the plugin chain and perform() do it.
        """
        return resolve(argv, self._options, env, required=False)

    async def perform(self, ctx, args, env=Unset):
        """
        Terminal action run after the plugin chain. The base node does nothing.
        """
        return Outcome.COMPLETED

    async def execute(self, ctx, argv=(), env=Unset):
        """
        Resolve argv, run the plugin chain, then perform().

        Returns
        - Outcome.COMPLETED, or Outcome.HALTED when a middleware did not call next.

        Raises
        - ValidationError / DispatchError subclasses, and anything raised by middleware
          or handlers, unchanged.
        """
        args = self.parse(argv, env)
        logger.debug("executing %s %r with %d plugin(s)", self._kind, self._name, len(self._plugins))

        async def terminal():
            return await self.perform(ctx, args, env)

        return await chain(self._plugins, ctx, args, terminal, self)


class Command(Node):
    """
    Leaf node: checks its own required options and awaits its handler.
    """

    __introspectable__ = (*Node.__introspectable__, "handler")

    def __init__(self, spec, /):
        if not isinstance(spec, CommandSpec):
            raise TypeError(f"{type(self).__typename__} argument must be a command spec")
        super().__init__(spec)
        self._handler = spec.handler

    async def perform(self, ctx, args, env=Unset):
        ensure_required(args, self._spec.options)
        logger.debug("running handler of command %r", self._name)
        await self._handler(ctx, args)
        return Outcome.COMPLETED


class Group(Node):
    """
    Inner node: checks its own required options, then routes the command line to one
    of its children.
    """

    __introspectable__ = (*Node.__introspectable__, "children")

    def __init__(self, spec, /):
        if not isinstance(spec, GroupSpec):
            raise TypeError(f"{type(self).__typename__} argument must be a group spec")
        super().__init__(spec)
        self._usage = self._usage or GROUP_USAGE

        recursive = tuple(item for item in self._plugins if item.recursive)
        self._children = tuple(self._adopt(child, recursive) for child in spec.children)

    @staticmethod
    def _adopt(spec, recursive):
        """
        Internal: attach inherited recursive plugins to a child spec and build its node.
        """
        spec = copy.replace(spec, plugins=(*spec.plugins, *recursive))
        match spec.kind:
            case NodeKind.GROUP:
                return Group(spec)
            case NodeKind.COMMAND:
                return Command(spec)
            case _:
                raise RuntimeError("unreachable")

    def __getitem__(self, name, /):
        for child in self._children:
            if child.name == name:
                return child
        raise KeyError(name)

    def _select(self, args):
        if args.positional:
            name, *rest = args.positional
            try:
                return self[name], rest
            except KeyError:
                names = [child.name for child in self._children]
                suggestions = difflib.get_close_matches(name, names, 5)
                try:
                    hint = "did you mean %r?" % suggestions[0]
                except IndexError:
                    hint = "available commands: %s" % ", ".join(names)
                raise UnknownCommandError(
                    "unknown command %r" % name,
                    title="unknown command",
                    code=FaultCode.UNKNOWN_COMMAND,
                    input=name,
                    suggestions=suggestions,
                    hint=hint,
                    docs=getdoc(FaultCode.UNKNOWN_COMMAND),
                ) from None

        for child in self._children:
            if child.default:
                return child, []
        raise CommandRequiredError(
            "a command is required",
            title="missing command",
            code=FaultCode.COMMAND_REQUIRED,
            hint="choose one of: %s" % ", ".join(child.name for child in self._children),
            docs=getdoc(FaultCode.COMMAND_REQUIRED),
        )

    async def perform(self, ctx, args, env=Unset):
        ensure_required(args, self._spec.options)
        child, rest = self._select(args)
        residual = [*rest, "--", *args.passthrough] if args.passthrough else rest
        logger.debug("group %r dispatching to %r with %d token(s)", self._name, child.name, len(residual))
        return await child.execute(ctx, residual, env)


def command(source=Unset, /, *args, **kwargs):
    """
    Create a CommandSpec or return a decorator to build it later.

    Invocation modes
    - Direct:
        spec = command("build", handler, options={...})
    - Decorator with metadata (the first positional argument may be the name):
        @command("build", options={...})
        async def handler(ctx, args): ...
    - Bare decorator:
        @command
        async def build(ctx, args): ...

    When decorating, the name defaults to the handler's __name__ in param-case
    ("run_tests" → "run-tests") and the description to its docstring.

    Returns
    - CommandSpec | Callable[[Callable], CommandSpec]
    """
    if isinstance(source, str):
        if args and callable(args[0]):
            return CommandSpec(source, *args, **kwargs)
        kwargs["name"] = source
        source = Unset

    @rename("command")
    def wrapper(handler, /):
        if not callable(handler):
            raise TypeError("@command() must be applied to a callable")
        metadata = dict(kwargs)
        if (name := metadata.pop("name", Unset)) is Unset:
            name = paramcase(getattr(handler, "__name__", ""))
        if metadata.get("description", Unset) is Unset:
            metadata["description"] = inspect.getdoc(handler) or Unset
        return CommandSpec(name, handler, *args, **metadata)

    return wrapper(source) if source is not Unset else wrapper


def group(name, /, *children, **kwargs):
    """
    Create a GroupSpec from a name and its child specs.

    Keyword arguments (options, plugins, default, usage, description) are forwarded
    to GroupSpec.
    """
    return GroupSpec(name, children, **kwargs)


def app(spec, /):
    """
    Construct the root Group of a command tree from a GroupSpec.
    """
    if not isinstance(spec, GroupSpec):
        raise TypeError("app() argument must be a group spec")
    return Group(spec)


def _build(object):
    match object:
        case Node():
            return object
        case GroupSpec():
            return Group(object)
        case CommandSpec():
            return Command(object)
        case _:
            raise TypeError("invoke() first argument must be a node or a node spec")


def invoke(node, ctx=None, argv=Unset, env=Unset, *, shell=False, fancy=False):
    """
    Run a node (or a node spec) to completion.

    Parameters
    - node: Node | CommandSpec | GroupSpec.
    - ctx: shared state handed to middleware and handlers.
    - argv:
      • Unset: read tokens from sys.argv[1:].
      • str: shell-like string; split via shlex.split.
      • Iterable[str]: pre-tokenized sequence, used verbatim.
    - env: Mapping[str, str]; defaults to a snapshot of os.environ.
    - shell: print faults to stderr and exit with status 1 instead of raising.
    - fancy: render faults inside a panel (shell mode only).

    Returns
    - Outcome of the run.

    Notes
    - Uses asyncio.run(); from inside a running event loop, await node.execute(...) instead.
    """
    node = _build(node)

    if argv is Unset:
        tokens = sys.argv[1:]
    elif isinstance(argv, str):
        tokens = shlex.split(argv)
    elif isinstance(argv, Iterable):
        tokens = list(argv)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("invoke() 'argv' must be a string or an iterable of strings")
    else:
        raise TypeError("invoke() 'argv' must be a string or an iterable of strings")

    if env is Unset:
        env = dict(os.environ)
    elif not isinstance(env, Mapping):
        raise TypeError("invoke() 'env' must be a mapping")

    logger.debug("invoking %s %r with %d token(s)", node.kind, node.name, len(tokens))
    try:
        return asyncio.run(node.execute(ctx, tokens, env))
    except CommandException as fault:
        if not shell:
            raise
        trigger(fault, tool=node, shell=True, fancy=fancy)


__all__ = (
    "GROUP_USAGE",
    "NodeKind",
    "NodeSpec",
    "CommandSpec",
    "GroupSpec",
    "Node",
    "Command",
    "Group",
    "command",
    "group",
    "app",
    "invoke",
)
