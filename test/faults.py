"""
Faults module behavioral tests (values, rendering, triggering).

Scope
- Validate ParseError value semantics (equality, options, copy.replace).
- Validate rich rendering of errors, warnings and ParseExit groups.
- Validate trigger() in library and shell modes.
- Validate fault codes and documentation lookups.

Conventions
- Test method names follow CamelCase per project convention.
- Rendering is captured with a recording rich Console, never a terminal.
"""

from __future__ import annotations

import copy
import io
import unittest
import warnings
from unittest import TestCase
from unittest.mock import patch

from rich.console import Console

from argtree import (
    Command,
    CommandWarning,
    FaultCode,
    ParseError,
    ParseExit,
    RangeError,
    getdoc,
    trigger,
)


def render(renderable):
    console = Console(record=True, width=100, color_system=None)
    with console.capture() as capture:
        console.print(renderable)
    return capture.get()


class TestParseError(TestCase):
    """Behavioral tests for ParseError values."""

    def testEqualityByTypeAndMessage(self):
        self.assertEqual(ParseError("boom"), ParseError("boom", code=FaultCode.UNMATCHED_TOKEN))
        self.assertNotEqual(ParseError("boom"), RangeError("boom"))
        self.assertEqual(len({ParseError("boom"), ParseError("boom")}), 1)

    def testOptionsAreReadOnly(self):
        error = ParseError("boom", code=FaultCode.RANGE_VIOLATION)
        self.assertIs(error.code, FaultCode.RANGE_VIOLATION)
        self.assertIsNone(error.symbol)
        with self.assertRaises(TypeError):
            error.options["code"] = None

    def testReplaceMergesOptions(self):
        error = ParseError("boom", hint="try again")
        replaced = copy.replace(error, fancy=True)
        self.assertEqual(replaced.message, "boom")
        self.assertEqual(replaced.options["hint"], "try again")
        self.assertTrue(replaced.options["fancy"])
        self.assertNotIn("fancy", error.options)

    def testStringIsTheMessage(self):
        self.assertEqual(str(ParseError("boom")), "boom")


class TestRendering(TestCase):
    """Behavioral tests for rich rendering."""

    def testErrorRendering(self):
        error = ParseError(
            "The value is wrong.",
            code=FaultCode.RANGE_VIOLATION,
            title="value out of range",
            hint="pass a smaller value",
            root=Command("tool"),
        )
        output = render(error)
        self.assertIn("tool", output)
        self.assertIn("11301", output)
        self.assertIn("Value Out Of Range", output)
        self.assertIn("The value is wrong.", output)
        self.assertIn("pass a smaller value", output)

    def testFancyRendering(self):
        output = render(ParseError("The value is wrong.", fancy=True, colorful=True))
        self.assertIn("The value is wrong.", output)

    def testHostCodeLabels(self):
        main = __import__("__main__")
        with patch.object(main, "__codes__", {FaultCode.RANGE_VIOLATION: "E-RANGE"}, create=True):
            self.assertEqual(FaultCode.RANGE_VIOLATION.normalize(), "E-RANGE")
            self.assertIn("E-RANGE", render(ParseError("boom", code=FaultCode.RANGE_VIOLATION)))
        self.assertEqual(FaultCode.RANGE_VIOLATION.normalize(), "11301")

    def testExitRendering(self):
        group = ParseExit([ParseError("first problem"), ParseError("second problem")], root=Command("tool"))
        output = render(group)
        self.assertIn("Bad Exit", output)
        self.assertIn("first problem", output)
        self.assertIn("second problem", output)


class TestTrigger(TestCase):
    """Behavioral tests for trigger()."""

    def testErrorsRaiseOutsideShell(self):
        with self.assertRaises(ParseError):
            trigger(ParseError("boom"))

    def testErrorsExitInShell(self):
        with patch("argtree.faults.console", Console(file=io.StringIO())):
            with self.assertRaises(SystemExit):
                trigger(ParseError("boom"), shell=True)

    def testDeferredErrorsReturnInShell(self):
        with patch("argtree.faults.console", Console(file=io.StringIO())):
            self.assertIsNone(trigger(ParseError("boom"), shell=True, deferred=True))

    def testWarningsUseTheWarningsModule(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            trigger(CommandWarning("careful"))
        self.assertEqual([str(warning.message) for warning in caught], ["careful"])

    def testExitGroupRaises(self):
        with self.assertRaises(ParseExit) as context:
            trigger(ParseExit([ParseError("boom")]))
        self.assertEqual(len(context.exception.exceptions), 1)

    def testTriggerRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("boom"))


class TestDocs(TestCase):
    """Behavioral tests for getdoc()."""

    def testMissingDocsAreNone(self):
        self.assertIsNone(getdoc(FaultCode.UNMATCHED_TOKEN))

    def testHostDocs(self):
        main = __import__("__main__")
        with patch.object(main, "__docs__", {FaultCode.UNMATCHED_TOKEN: "https://example.invalid/11101"}, create=True):
            self.assertEqual(getdoc(FaultCode.UNMATCHED_TOKEN), "https://example.invalid/11101")

    def testCodesOnly(self):
        with self.assertRaises(TypeError):
            getdoc(11101)


if __name__ == "__main__":
    unittest.main()
