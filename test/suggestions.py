"""
Typo corrector behavioral tests (edit distance and ranking).

Scope
- Validate the optimal string alignment distance, including transpositions
  and the bounded early exit.
- Validate ranking by distance, common prefix and alphabetical order.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argtree import best, closest, distance, suggest


class TestDistance(TestCase):
    """Behavioral tests for distance()."""

    def testIdentity(self):
        self.assertEqual(distance("verb", "verb"), 0)

    def testEmptyOperands(self):
        self.assertEqual(distance("", "abc"), 3)
        self.assertEqual(distance("abc", ""), 3)

    def testClassicExample(self):
        self.assertEqual(distance("kitten", "sitting"), 3)

    def testTranspositionCostsOne(self):
        self.assertEqual(distance("ab", "ba"), 1)
        self.assertEqual(distance("vreb", "verb"), 1)

    def testSymmetry(self):
        self.assertEqual(distance("otp", "--opt"), distance("--opt", "otp"))

    def testBoundedDistanceStopsEarly(self):
        self.assertEqual(distance("abcdef", "uvwxyz", maximum=2), 3)
        self.assertEqual(distance("a", "abcdefgh", maximum=3), 4)
        self.assertEqual(distance("kitten", "sitting", maximum=3), 3)


class TestSuggest(TestCase):
    """Behavioral tests for suggest(), best() and closest()."""

    def testNearMatch(self):
        self.assertEqual(suggest("otp", ["--opt"]), ["--opt"])

    def testNoMatch(self):
        self.assertEqual(suggest("zzz", ["--opt"]), [])

    def testRankedByDistance(self):
        self.assertEqual(suggest("--nme", ["--new", "--name"]), ["--name", "--new"])

    def testTiesRankedByCommonPrefixThenAlphabetically(self):
        self.assertEqual(suggest("abc", ["xbc", "abx", "aby"]), ["abx", "aby", "xbc"])

    def testDuplicatesCollapsed(self):
        self.assertEqual(suggest("verb", ["verbs", "verbs"]), ["verbs"])

    def testMaximumIsConfigurable(self):
        self.assertEqual(suggest("--nme", ["--new", "--name"], 1), ["--name"])

    def testBestKeepsOnlyTies(self):
        self.assertEqual(best("--nme", ["--new", "--name"]), ["--name"])
        self.assertEqual(best("zzz", ["--opt"]), [])

    def testClosestAlias(self):
        self.assertEqual(closest("--verbos", ["-v", "--verbose"]), "--verbose")
        self.assertEqual(closest("-V", ["-v", "--verbose"]), "-v")


if __name__ == "__main__":
    unittest.main()
