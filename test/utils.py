"""
Tests for the internal utilities (Unset, coalesce, rename, mirror, isoption).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import pickle
import unittest
from unittest import TestCase

from waypoint.utils import *


class TestUnset(TestCase):

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsyAndRepr(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testFinal(self):
        with self.assertRaises(TypeError):
            type("Sub", (UnsetType,), {})

    def testCopyKeepsIdentity(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 5), 0)
        self.assertIsNone(coalesce(Unset))


class TestRename(TestCase):

    def testFunctionForm(self):
        def f():
            pass

        self.assertIs(rename(f, "do_work"), f)
        self.assertEqual((f.__name__, f.__qualname__), ("do_work", "do_work"))

    def testDecoratorForm(self):
        @rename("do_work")
        def f():
            pass

        self.assertEqual(f.__name__, "do_work")

    def testRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            rename(1, "x")
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):

    def testReturnsDetachedCopies(self):
        class Box:
            items = mirror("items")

            def __init__(self):
                self._items = ("a", ("b", "c"))

        box = Box()
        self.assertEqual(box.items, ["a", ["b", "c"]])
        box.items.append("d")
        self.assertEqual(box.items, ["a", ["b", "c"]])
        self.assertEqual(Box.items.fget.__name__, "items")

    def testStringsAreNotSplit(self):
        class Box:
            name = mirror("name")
            _name = "box"

        self.assertEqual(Box().name, "box")


class TestIsOption(TestCase):

    def testLeadingDash(self):
        for token in ("--json", "-v", "-", "-5", "--"):
            self.assertTrue(isoption(token), token)
        for token in ("list", "5", "", "a-b"):
            self.assertFalse(isoption(token), token)


if __name__ == "__main__":
    unittest.main()
