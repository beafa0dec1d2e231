"""
Waypoint token parsing: a lenient, queryable view over a raw argv.

Contract
- Shape: `<program> <subcommand> [args...] [options...]`.
- Positionals are collected in a single left-to-right pass over tokens[1:] that stops
  at the first option-looking token; nothing after it is ever read as a positional.
- Options are never parsed up front. They are looked up on demand by scanning the
  whole raw vector (scan_option, has_flag, collect_option), so an option placed
  anywhere is still found.

Why two mechanisms
- "what are the positionals" and "what is the value of --x" are different questions.
  Folding them into one pass would drop options that legitimately follow positionals.

Nested routing
- shift(n) drops n free positionals and keeps every option (with its value token),
  so a child router sees its own subcommand first and the parent's global options
  (e.g., --json) still apply.

Quick example
    >>> parsed = ParsedInput.from_tokens(["app", "accounts", "list", "--json"])
    >>> parsed.subcommand, parsed.args
    ('accounts', ['list'])
    >>> child = parsed.shift(1)
    >>> child.subcommand, child.wants_json()
    ('list', True)
"""
from collections.abc import Iterable

from .utils import *


class ParsedInput:
    """
    Immutable parse result for one invocation.

    Instances are built through from_tokens() (or derived through shift()); the
    constructor is not part of the public surface.
    """
    __slots__ = ("_tokens", "_subcommand", "_args")

    tokens = mirror("tokens")
    subcommand = mirror("subcommand")
    args = mirror("args")
    remaining = mirror("args")

    def __init__(self, tokens, subcommand, args, /):
        object.__setattr__(self, "_tokens", tuple(tokens))
        object.__setattr__(self, "_subcommand", subcommand)
        object.__setattr__(self, "_args", tuple(args))

    @classmethod
    def from_tokens(cls, tokens, /):
        """
        Parse a raw token vector (token 0 is the program name and is skipped).

        The first non-option token becomes the subcommand, the following ones the
        positionals; scanning stops for good at the first option-looking token.

        Raises
        - TypeError: when tokens is not an iterable of strings.
        """
        if isinstance(tokens, str) or not isinstance(tokens, Iterable):
            raise TypeError("from_tokens() argument must be an iterable of strings")
        tokens = tuple(tokens)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("from_tokens() argument must be an iterable of strings")

        subcommand = None
        args = []
        for token in tokens[1:]:
            if isoption(token):
                break
            if subcommand is None:
                subcommand = token
            else:
                args.append(token)

        return cls(tokens, subcommand, args)

    def arg(self, index, default=None, /):
        """Positional at index, or default when out of range."""
        if not 0 <= index < len(self._args):
            return default
        return self._args[index]

    def scan_option(self, long, short=None, default=None):
        """
        Look up an option value anywhere in the raw tokens (first match wins).

        Checked per token, in order:
        - --long=value → "value"
        - --long value → "value" (only if the next token is not option-looking)
        - --long       → True
        - the same three for -short when a short name is given
        Returns default when nothing matches.
        """
        tokens = self._tokens
        for index, token in enumerate(tokens):
            following = tokens[index + 1] if index + 1 < len(tokens) else None

            if token.startswith(f"--{long}="):
                return token[len(f"--{long}="):]
            if token == f"--{long}":
                if following is not None and not isoption(following):
                    return following
                return True

            if not short:
                continue
            if token.startswith(f"-{short}="):
                return token[len(f"-{short}="):]
            if token == f"-{short}":
                if following is not None and not isoption(following):
                    return following
                return True

        return default

    def has_flag(self, long, short=None):
        """True when --long (or -short) appears verbatim; values are ignored."""
        names = {f"--{long}"}
        if short:
            names.add(f"-{short}")
        return any(token in names for token in self._tokens)

    def wants_help(self):
        return self.has_flag("help", "h") or self._subcommand == "help"

    def wants_json(self):
        return self.has_flag("json")

    def collect_option(self, long, short=None):
        """
        Gather every value of a repeatable option, in encounter order.

        Accepted forms: --long value, --long=value, -short value, -short=value.
        A value token consumed by one occurrence is not examined again.
        """
        values = []
        tokens = self._tokens[1:]
        index = 0
        while index < len(tokens):
            token = tokens[index]
            following = tokens[index + 1] if index + 1 < len(tokens) else None
            spaced = following is not None and not isoption(following)

            if token == f"--{long}" and spaced:
                values.append(following)
                index += 1
            elif token.startswith(f"--{long}="):
                values.append(token[len(f"--{long}="):])
            elif short and token == f"-{short}" and spaced:
                values.append(following)
                index += 1
            elif short and token.startswith(f"-{short}="):
                values.append(token[len(f"-{short}="):])
            index += 1

        return values

    def shift(self, n=1, /):
        """
        Derive a new view with n leading free positionals removed.

        Layout of the derived vector: program name, surviving positionals, then every
        option in its original relative order. An option keeps the token right after
        it when that token is not option-looking and the option has no inline '='
        value, mirroring how scan_option() reads a spaced value.

        Shifting past the end removes what is there; the original is left untouched.
        """
        if not isinstance(n, int):
            raise TypeError("shift() argument must be an integer")

        tokens = self._tokens[1:]
        positionals = []
        options = []
        skipped = 0
        index = 0
        while index < len(tokens):
            token = tokens[index]
            if isoption(token):
                options.append(token)
                following = index + 1
                if following < len(tokens) and not isoption(tokens[following]) and "=" not in token:
                    options.append(tokens[following])
                    index = following
            elif skipped < n:
                skipped += 1
            else:
                positionals.append(token)
            index += 1

        return type(self).from_tokens([*self._tokens[:1], *positionals, *options])

    def __setattr__(self, name, value, /):
        raise AttributeError(f"{type(self).__name__!r} object is immutable")

    def __eq__(self, other, /):
        if not isinstance(other, ParsedInput):
            return NotImplemented
        return self._tokens == other._tokens

    def __hash__(self):
        return hash(self._tokens)

    def __rich_repr__(self):
        yield "subcommand", self._subcommand
        yield "args", list(self._args)
        yield "tokens", list(self._tokens)

    def __repr__(self):
        return "parsed-input(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


__all__ = (
    "ParsedInput",
)
