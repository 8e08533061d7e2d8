"""
Tests for the shared utilities.

This module verifies the helpers every layer relies on:
- The Unset sentinel (singleton identity, falsy semantics, finality).
- coalesce(), kebabize(), pluralize() and ordinal().
- The Introspective metaclass (typenames, read-only mirrors, reprs).
"""
from __future__ import annotations

import unittest
from unittest import TestCase

from argtree.utils import *
from argtree.utils import Introspective, UnsetType


class UnsetTest(TestCase):
    """
    Test suite for the Unset sentinel.
    """

    def testSingleton(self) -> None:
        self.assertIs(UnsetType(), Unset)

    def testFalsy(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})

    def testUnion(self) -> None:
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)
        self.assertNotIsInstance(None, str | Unset)

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(0, "fallback"), 0)
        self.assertIsNone(coalesce(None, "fallback"))


class TextTest(TestCase):
    """
    Test suite for the message helpers.
    """

    def testKebabize(self) -> None:
        self.assertEqual(kebabize("--dryRun"), "--dry-run")
        self.assertEqual(kebabize("DryRun"), "dry-run")
        self.assertEqual(kebabize("dry_run"), "dry-run")
        self.assertEqual(kebabize("DRY-RUN"), "dry-run")
        self.assertEqual(kebabize("/Out2File"), "/out2-file")
        self.assertEqual(kebabize("--"), "--")

    def testPluralize(self) -> None:
        self.assertEqual(pluralize("option"), "options")
        self.assertEqual(pluralize("Option"), "Options")
        self.assertEqual(pluralize("command alias"), "command aliases")
        self.assertEqual(pluralize("entry"), "entries")
        self.assertEqual(pluralize("index"), "indices")

    def testOrdinal(self) -> None:
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(113), "113th")


class IntrospectiveTest(TestCase):
    """
    Test suite for the Introspective metaclass.
    """

    def setUp(self) -> None:
        class SampleRecord(metaclass=Introspective):
            __introspectable__ = ("name", "items")

            def __init__(self, name, items):
                self._name = name
                self._items = items

        self.cls = SampleRecord

    def testTypename(self) -> None:
        self.assertEqual(self.cls.__typename__, "sample record")

    def testReadOnlyMirrors(self) -> None:
        record = self.cls("x", [1, 2])
        self.assertEqual(record.name, "x")
        with self.assertRaises(AttributeError):
            record.name = "y"

    def testMirrorsCopyContainers(self) -> None:
        record = self.cls("x", [1, 2])
        record.items.append(3)
        self.assertEqual(record.items, [1, 2])

    def testRepr(self) -> None:
        self.assertEqual(repr(self.cls("x", [1])), "SampleRecord(name='x', items=[1])")


if __name__ == "__main__":
    unittest.main()
