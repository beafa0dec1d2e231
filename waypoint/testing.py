"""
Waypoint testing helpers for CLI output.

Scope
- OutputSnapshot: compare captured CLI output against stored snapshots, with ANSI
  stripping, line-ending normalization and an optional custom normalizer.
- strip_ansi / replacer / timestamps: normalization building blocks.
- capture: run a callable and return (result, stderr text).
- OutputAssertions: unittest mixin with multi-string containment assertions.
- parsed: shorthand to build a ParsedInput with a dummy program name.

Conventions
- Snapshots live as "<directory>/<name>.txt".
- The first run writes the snapshot and skips the test (nothing to compare yet).
"""
import contextlib
import io
import os.path
import re

from .parsing import ParsedInput

_ANSI = re.compile(r"\x1B\[[0-9;]*[A-Za-z]")


def strip_ansi(output, /):
    """Remove ANSI escape sequences (colours, cursor moves) from output."""
    return _ANSI.sub("", output)


def replacer(replacements, /):
    """
    Build a normalizer from a mapping of pattern → replacement.

    Keys wrapped in slashes ("/v\\d+/") are regular expressions; any other key is
    replaced literally. Replacements apply in mapping order.
    """
    rules = []
    for pattern, replacement in replacements.items():
        if len(pattern) > 1 and pattern.startswith("/") and pattern.endswith("/"):
            rules.append((re.compile(pattern[1:-1]), replacement))
        else:
            rules.append((pattern, replacement))

    def normalizer(output):
        for pattern, replacement in rules:
            if isinstance(pattern, str):
                output = output.replace(pattern, replacement)
            else:
                output = pattern.sub(replacement, output)
        return output

    return normalizer


def timestamps():
    """Normalizer replacing ISO-8601 timestamps and plain datetimes with placeholders."""
    return replacer({
        r"/\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{2}:\d{2}/": "[TIMESTAMP]",
        r"/\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}/": "[DATETIME]",
    })


class OutputSnapshot:
    """
    Snapshot store for CLI output.

    Example
        snapshot = OutputSnapshot().normalizer(timestamps())
        snapshot.assert_matches(self, "help", output)
    """

    def __init__(self, directory="test/snapshots"):
        self._directory = directory
        self._normalizer = None

    @property
    def directory(self):
        return self._directory

    def normalizer(self, normalizer, /):
        if not callable(normalizer):
            raise TypeError("normalizer() argument must be callable")
        self._normalizer = normalizer
        return self

    def path(self, name, /):
        return os.path.join(self._directory, f"{name}.txt")

    def exists(self, name, /):
        return os.path.exists(self.path(name))

    def normalize(self, output, /):
        output = strip_ansi(output).replace("\r\n", "\n")
        if self._normalizer is not None:
            output = self._normalizer(output)
        return output.strip()

    def update(self, name, output, /):
        path = self.path(name)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as file:
            file.write(self.normalize(output))

    def assert_matches(self, case, name, output, /):
        """
        Assert that output matches the stored snapshot `name` inside a TestCase.

        A missing snapshot is written and the test is skipped.
        """
        if not self.exists(name):
            self.update(name, output)
            case.skipTest(f"snapshot created: {self.path(name)}")

        with open(self.path(name), encoding="utf-8") as file:
            expected = file.read()
        case.assertEqual(
            self.normalize(expected),
            self.normalize(output),
            f"CLI output does not match snapshot: {name}",
        )


def capture(callable, /, *args, **kwargs):
    """
    Call callable(*args, **kwargs) while redirecting sys.stderr.

    Returns (result, stderr text). Rich consoles bound to stderr resolve the stream
    at print time, so their output is captured as well.
    """
    with contextlib.redirect_stderr(io.StringIO()) as stream:
        result = callable(*args, **kwargs)
    return result, stream.getvalue()


class OutputAssertions:
    """unittest mixin: containment checks over a whole output text."""

    def assertOutputContainsAll(self, output, strings):
        for string in strings:
            self.assertIn(string, output, f"Output does not contain: {string}")

    def assertOutputContainsNone(self, output, strings):
        for string in strings:
            self.assertNotIn(string, output, f"Output unexpectedly contains: {string}")


def parsed(*tokens):
    """ParsedInput for tokens, with "app" prepended as the program name."""
    return ParsedInput.from_tokens(["app", *tokens])


__all__ = (
    "OutputSnapshot",
    "OutputAssertions",
    "strip_ansi",
    "replacer",
    "timestamps",
    "capture",
    "parsed",
)
