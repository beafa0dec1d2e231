"""
Testing helpers behavioral tests (ANSI stripping, normalizers, snapshots, capture).

Conventions
- Test method names follow CamelCase per project convention.
- Snapshot files are written to a temporary directory per test.
"""

from __future__ import annotations

import os.path
import sys
import tempfile
import unittest
from unittest import TestCase

from rich.console import Console

from waypoint import Context, Router
from waypoint.testing import (
    OutputSnapshot,
    OutputAssertions,
    strip_ansi,
    replacer,
    timestamps,
    capture,
    parsed,
)


class TestNormalization(TestCase):

    def testStripAnsi(self):
        self.assertEqual(strip_ansi("\033[32mSuccess\033[0m: Operation completed"), "Success: Operation completed")

    def testStripComplexAnsi(self):
        self.assertEqual(strip_ansi("\033[1;31mError\033[0m: \033[33mWarning\033[0m text"), "Error: Warning text")

    def testNormalize(self):
        self.assertEqual(OutputSnapshot().normalize("\033[32mTest\033[0m\r\n  Line 2  "), "Test\n  Line 2")

    def testCustomNormalizer(self):
        snapshot = OutputSnapshot().normalizer(lambda s: s.replace("FOO", "BAR"))
        self.assertEqual(snapshot.normalize("Hello FOO World"), "Hello BAR World")

    def testNormalizerMustBeCallable(self):
        with self.assertRaises(TypeError):
            OutputSnapshot().normalizer("FOO")

    def testTimestamps(self):
        normalizer = timestamps()
        self.assertEqual(normalizer("Created at 2024-01-15T10:30:00+00:00"), "Created at [TIMESTAMP]")
        self.assertEqual(normalizer("Ran 2024-01-15 10:30:00"), "Ran [DATETIME]")

    def testReplacer(self):
        normalizer = replacer({r"/v\d+\.\d+\.\d+/": "[VERSION]", "localhost": "[HOST]"})
        self.assertEqual(normalizer("Running v1.2.3 on localhost"), "Running [VERSION] on [HOST]")

    def testReplacerSlashIsLiteral(self):
        self.assertEqual(replacer({"/": "|"})("a/b"), "a|b")


class TestSnapshot(TestCase):

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.snapshot = OutputSnapshot(os.path.join(self.directory.name, "snapshots"))

    def tearDown(self):
        self.directory.cleanup()

    def testPathAndExists(self):
        self.assertEqual(self.snapshot.path("help"), os.path.join(self.snapshot.directory, "help.txt"))
        self.assertFalse(self.snapshot.exists("help"))
        self.snapshot.update("help", "\033[1musage\033[0m\n")
        self.assertTrue(self.snapshot.exists("help"))
        with open(self.snapshot.path("help"), encoding="utf-8") as file:
            self.assertEqual(file.read(), "usage")

    def testFirstRunCreatesAndSkips(self):
        with self.assertRaises(unittest.SkipTest):
            self.snapshot.assert_matches(self, "fresh", "hello")
        self.assertTrue(self.snapshot.exists("fresh"))

    def testMatchIgnoresAnsiAndLineEndings(self):
        self.snapshot.update("listing", "usage\navailable")
        self.snapshot.assert_matches(self, "listing", "\033[1musage\033[0m\r\navailable\n")

    def testMismatchFails(self):
        self.snapshot.update("listing", "usage")
        with self.assertRaises(AssertionError):
            self.snapshot.assert_matches(self, "listing", "other")


class TestCapture(OutputAssertions, TestCase):

    def testCaptureReturnsResultAndStderr(self):
        def work():
            print("oops", file=sys.stderr)
            return 3

        result, output = capture(work)
        self.assertEqual(result, 3)
        self.assertEqual(output, "oops\n")

    def testCaptureDefaultRouterOutput(self):
        router = Router(console=Console(stderr=True, color_system=None, width=120))
        router.routes({"search": lambda p, c: 0, "show": lambda p, c: 0})
        status, output = capture(router.run_with, parsed(), Context())

        self.assertEqual(status, 0)
        self.assertOutputContainsAll(output, ["search", "show", "usage:"])
        self.assertOutputContainsNone(output, ["unknown"])

    def testAssertionsFail(self):
        with self.assertRaises(AssertionError):
            self.assertOutputContainsAll("abc", ["abc", "xyz"])
        with self.assertRaises(AssertionError):
            self.assertOutputContainsNone("abc", ["b"])

    def testParsedPrependsProgram(self):
        self.assertEqual(parsed("a", "b").tokens, ["app", "a", "b"])


if __name__ == "__main__":
    unittest.main()
