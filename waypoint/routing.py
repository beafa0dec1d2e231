"""
Waypoint routing layer: dispatch a parsed invocation to a registered handler.

What this module provides
- Router: a fluent, per-invocation builder (routes/help/unknown) that parses tokens
  through ParsedInput and dispatches by subcommand name.
- Routing: the immutable snapshot a Router hands to dispatch().
- dispatch(routing, parsed, context): the routing algorithm as a plain function.
- resolve(context, argv): the process-boundary rule that picks the token vector.
- invoke(router, context, argv=Unset): process-boundary runner; captures sys.argv
  once and reports a RouterException raised by a handler.
- Routed: mixin for command objects that route their own subcommands.
- Context: the minimal context value (name + args) the router needs.

Dispatch order
1. help requested (--help, -h, "help") or no subcommand:
   • a registered subcommand (other than "help") gets scoped help: help(context, name)
   • otherwise generic help: help(context, None)
   • no help callback: the default listing, SUCCESS
2. registered subcommand: handler(parsed, context), status passed through untouched.
3. anything else: unknown(name, context), or the default report and FAILURE.

Help is checked before the route lookup, so `--help` is never masked by a route.

Nested routing
    def accounts(parsed, context):
        return (
            Router()
            .routes({"list": list_accounts, "show": show_account})
            .run_with(parsed.shift(1), context)
        )

Lifecycle
- Build a fresh Router per invocation, configure it, dispatch it once, drop it.
  A second dispatch works but emits ReusedRouterWarning.
"""
import collections
import difflib
import sys
import warnings
from collections.abc import Mapping
from types import MappingProxyType

from rich.text import Text

from . import faults
from .faults import *
from .parsing import ParsedInput
from .utils import *

SUCCESS = 0
FAILURE = 1

USAGE = "<subcommand> [args...] [options...]"

Context = collections.namedtuple("Context", ("name", "args"), defaults=(None, ()))
Context.__doc__ = """
Minimal execution context: the declared command name and its structured args.

Any object exposing `name` and `args` works as a context; the router never reads
options from it (options live in the raw tokens).
"""

Routing = collections.namedtuple("Routing", ("routes", "help", "unknown", "console", "colorful"))
Routing.__doc__ = """
Immutable routing configuration consumed by dispatch().

Fields
- routes: read-only mapping name → handler(parsed, context) -> int (insertion order).
- help: callable(context, subcommand=None) -> int, or None.
- unknown: callable(subcommand, context) -> int, or None.
- console: rich Console used by the default help/unknown renders.
- colorful: style those renders.
"""


def _styles():
    return collections.defaultdict(str, {
        "usage": "bold #E6E6F0",
        "heading": "bold #FF4DA6",
        "route": "#00E5FF",
    } | getattr(__import__("__main__"), "__styles__", {}))


class Router:
    """
    Fluent router configuration plus parse/dispatch entry points.

    Configuration calls may come in any order and the last call per setter wins.
    Every setter returns the router itself.

    Example
        status = (
            Router()
            .routes({"search": search, "show": show})
            .help(show_help)
            .unknown(unknown_command)
            .run(context, sys.argv)
        )
    """

    def __init__(self, *, console=faults.console, colorful=True):
        self._routes = {}
        self._help = None
        self._unknown = None
        self._console = console
        self._colorful = bool(colorful)
        self._state = "unconfigured"

    @property
    def names(self):
        """Registered route names, in insertion order."""
        return list(self._routes)

    @property
    def state(self):
        """One of "unconfigured", "configured" or "dispatched"."""
        return self._state

    @property
    def console(self):
        return self._console

    def routes(self, routes, /):
        """
        Replace the route table with a mapping of subcommand name → handler.

        Each handler is called as handler(parsed, context) and returns an int status.
        """
        if not isinstance(routes, Mapping):
            raise TypeError("routes() argument must be a mapping")
        for name, handler in routes.items():
            if not isinstance(name, str):
                raise TypeError("routes() keys must be strings")
            if not callable(handler):
                raise TypeError(f"routes() handler for {name!r} must be callable")
        self._routes = dict(routes)
        return self._configured()

    def help(self, callback, /):
        """Set the help callback: callback(context, subcommand=None) -> int."""
        if not callable(callback):
            raise TypeError("help() argument must be callable")
        self._help = callback
        return self._configured()

    def unknown(self, callback, /):
        """Set the unknown-subcommand callback: callback(subcommand, context) -> int."""
        if not callable(callback):
            raise TypeError("unknown() argument must be callable")
        self._unknown = callback
        return self._configured()

    def _configured(self):
        if self._state != "dispatched":
            self._state = "configured"
        return self

    def has_route(self, name, /):
        return name in self._routes

    def freeze(self):
        """Snapshot the current configuration into an immutable Routing."""
        return Routing(
            routes=MappingProxyType(dict(self._routes)),
            help=self._help,
            unknown=self._unknown,
            console=self._console,
            colorful=self._colorful,
        )

    def parse(self, context, argv=(), /):
        """Parse the tokens picked by resolve(context, argv)."""
        return ParsedInput.from_tokens(resolve(context, argv))

    def run(self, context, argv=(), /):
        """Parse then dispatch; returns the exit status."""
        return self.run_with(self.parse(context, argv), context)

    def run_with(self, parsed, context, /):
        """
        Dispatch an already parsed input (nested routers, tests, wrappers).
        """
        if not isinstance(parsed, ParsedInput):
            raise TypeError("run_with() first argument must be a parsed input")
        if self._state == "dispatched":
            warnings.warn(ReusedRouterWarning(
                "router dispatched more than once",
                hint="build a fresh router for every invocation",
            ), stacklevel=2)
        self._state = "dispatched"
        return dispatch(self.freeze(), parsed, context)

    def __rich_repr__(self):
        yield "names", self.names
        yield "state", self._state

    def __repr__(self):
        return "router(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


def dispatch(routing, parsed, context, /):
    """
    Route one parsed invocation (see the module docstring for the order).

    Never raises on its own; a handler's exception propagates untouched.
    """
    subcommand = parsed.subcommand

    if parsed.wants_help() or subcommand is None:
        scoped = subcommand if subcommand != "help" and subcommand in routing.routes else None
        if routing.help is not None:
            return routing.help(context, scoped)
        return _default_help(routing)

    if subcommand in routing.routes:
        return routing.routes[subcommand](parsed, context)

    if routing.unknown is not None:
        return routing.unknown(subcommand, context)
    return _default_unknown(routing, parsed)


def _default_help(routing):
    styles = _styles()

    def style(name):
        return styles[name] if routing.colorful else ""

    console = routing.console
    console.print(Text.assemble(("usage: ", style("usage")), USAGE))
    console.print()
    console.print(Text("available subcommands:", style("heading")))
    for name in routing.routes:
        console.print(Text.assemble("  ", (name, style("route"))))
    return SUCCESS


def _default_unknown(routing, parsed):
    subcommand = parsed.subcommand
    suggestions = difflib.get_close_matches(subcommand, list(routing.routes), 5)
    if suggestions:
        hint = "did you mean %r? run with --help to see available subcommands" % suggestions[0]
    else:
        hint = "run with --help to see available subcommands"
    return report(UnknownSubcommandError(
        "unknown subcommand %r" % subcommand,
        hint=hint,
        subcommand=subcommand,
        suggestions=suggestions or None,
        status=FAILURE,
        colorful=routing.colorful,
    ), console=routing.console, json=parsed.wants_json())


def resolve(context, argv=(), /):
    """
    Pick the token vector for one invocation.

    Rules
    - argv wins when it holds more than the program name.
    - otherwise tokens are synthesized as ["app", *context.args].
    - a token 1 equal to context.name (an echo of the declared command) is dropped.
    """
    tokens = list(coalesce(argv, ()) or ())
    if len(tokens) <= 1:
        tokens = ["app", *(getattr(context, "args", None) or ())]

    name = getattr(context, "name", None)
    if name is not None and len(tokens) > 1 and tokens[1] == name:
        del tokens[1]
    return tokens


def invoke(router, context, argv=Unset, /):
    """
    Process-boundary runner.

    - Unset argv: sys.argv is captured here, once, and passed down explicitly.
    - A RouterException escaping a handler is reported (JSON when --json is among the
      resolved tokens) and its status returned. Any other exception propagates.
    """
    if not isinstance(router, Router):
        raise TypeError("invoke() first argument must be a router")
    tokens = list(sys.argv) if argv is Unset else list(argv)
    try:
        return router.run(context, tokens)
    except RouterException as exception:
        return report(exception, console=router.console, json="--json" in resolve(context, tokens))


class Routed:
    """
    Mixin for command objects that route their own subcommands.

    The host class provides `name` and `args` (it is the routing context) and may
    override show_help() / unknown_command() to customize the two fallbacks.

        class Mail(Routed):
            name = "mail"
            args = ()

            def handle(self, argv):
                return self.route({"send": self.send, "list": self.list}, argv)
    """
    console = faults.console

    def route(self, routes, /, argv=()):
        return (
            Router(console=self.console)
            .routes(routes)
            .help(lambda context, subcommand=None: self.show_help(subcommand))
            .unknown(lambda subcommand, context: self.unknown_command(subcommand))
            .run(self, argv)
        )

    def show_help(self, subcommand=None):
        self.console.print(Text("usage: <command> [options]"))
        self.console.print(Text("override show_help() to customize."))
        return SUCCESS

    def unknown_command(self, command):
        self.console.print(Text("unknown command: %s" % command))
        self.console.print(Text('run with "help" for usage.'))
        return FAILURE


__all__ = (
    "SUCCESS",
    "FAILURE",
    "Context",
    "Routing",
    "Router",
    "Routed",
    "dispatch",
    "resolve",
    "invoke",
)
