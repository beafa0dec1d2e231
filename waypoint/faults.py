"""
Waypoint faults (errors and warnings) and reporting.

Scope
- FaultCode: canonical, stable numeric identifiers for user-facing routing issues.
  Codes are grouped by domain so logs and searches stay predictable.
- RouterException / RouterWarning: base types that carry a message plus options and
  know how to render themselves, either through rich or as a JSON object.
- report(): surface an exception-type fault on the stderr console and hand back its
  exit status. Dispatch never raises; it reports and returns.

Rendering
- Human: "[ prog — code | Title ]", the message, then " → hint".
- Machine (when the invocation asked for --json): one compact JSON line
  {"error": ..., "type": ..., "code": ..., "hint": ..., ...payload}.

Integration
- The router reports UnknownSubcommandError when no unknown callback is registered.
- Handlers may raise DelegatedCommandError (or any RouterException); the process
  boundary adapter (waypoint.routing.invoke) reports it and exits with its status.
- Hosts tune labels and colours through __main__: __prog__, __codes__, __styles__.
"""
import copy
import json
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the router (stable identifiers).

    grouping
    - routing (111xx)
      • UNKNOWN_SUBCOMMAND
    - delegated (1113x)
      • DELEGATED_ERROR: a handler gave up with a message of its own
    - warnings (12xxx)
      • REUSED_ROUTER: a router instance was dispatched more than once
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_SUBCOMMAND = 11102

    # --- delegated errors (11xxx) ---
    DELEGATED_ERROR    = 11131

    # --- warnings (12xxx) ---
    REUSED_ROUTER      = 12111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _styles(defaults):
    return defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))


def _render(fault, styles):
    """
    shared rich layout for exceptions and warnings.
    """
    colorful = fault.options.get("colorful", True)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    prog = getattr(__import__("__main__"), "__prog__", fault.options.get("prog", "app"))
    header = Text.assemble(
        "[ ",
        text(prog, "prog-name"),
        " — ",
        text(fault.code.normalize(), "code"),
        " | ",
        text(fault.title.title(), "title"),
        " ]",
    )
    parts = [header, text(fault.message, "message")]
    if hint := fault.options.get("hint"):
        parts.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
    return Group(*parts)


class RouterException(Exception):
    """
    base for every routing failure that is shown to a user.

    options (all optional)
    - title: short label for the header (defaults to the class' __title__).
    - code: FaultCode (defaults to the class' __code__).
    - hint: one actionable sentence.
    - status: exit status reported for this fault (defaults to 1).
    - colorful: style the rich render (defaults to True).
    - anything else is payload and lands in the JSON form.
    """
    __title__ = "router error"
    __code__ = FaultCode.DELEGATED_ERROR
    __kind__ = "error"

    def __init__(self, message="", /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__}() message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def title(self):
        return self.options.get("title", type(self).__title__)

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    @property
    def status(self):
        return self.options.get("status", 1)

    def __rich__(self):
        return _render(self, _styles({
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "title": "bold #FF4DA6",
            "message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        }))

    def __json__(self):
        payload = {
            "error": self.message,
            "type": type(self).__kind__,
            "code": self.code.normalize(),
        }
        reserved = {"title", "code", "status", "colorful", "prog"}
        for key, value in self.options.items():
            if key not in reserved and value is not None:
                payload[key] = value
        return payload

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownSubcommandError(RouterException):
    __title__ = "unknown subcommand"
    __code__ = FaultCode.UNKNOWN_SUBCOMMAND
    __kind__ = "unknown_subcommand"


class DelegatedCommandError(RouterException):
    __title__ = "command failed"
    __code__ = FaultCode.DELEGATED_ERROR
    __kind__ = "delegated_error"


class RouterWarning(Warning):
    __title__ = "router warning"
    __code__ = FaultCode.REUSED_ROUTER

    def __init__(self, message="", /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def title(self):
        return self.options.get("title", type(self).__title__)

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    def __rich__(self):
        return _render(self, _styles({
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "title": "bold #FFC2E0",
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ReusedRouterWarning(RouterWarning):
    __title__ = "reused router"
    __code__ = FaultCode.REUSED_ROUTER


def report(fault, /, *, console=console, json=False, **options):
    """
    print a RouterException to the console and return its exit status.

    contract
    - options are merged into the fault via copy.replace(...) before printing.
    - json=True writes the fault's __json__() as a single compact line instead of
      the rich render (agents parse stderr line by line).
    - never raises for a well-formed fault; the caller decides what to do with the
      returned status.
    """
    if not isinstance(fault, RouterException):
        raise TypeError("report() argument must be a router exception")
    if options:
        fault = copy.replace(fault, **options)
    if json:
        console.out(_dumps(fault.__json__()), highlight=False)
    else:
        console.print(fault)
    return fault.status


def _dumps(payload):
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


__all__ = (
    "RouterException",
    "UnknownSubcommandError",
    "DelegatedCommandError",
    "RouterWarning",
    "ReusedRouterWarning",
    "FaultCode",
    "report",
)
