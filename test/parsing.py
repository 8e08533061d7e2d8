"""
Matcher behavioral tests (binding, arity, defaults, batched errors).

Scope
- Validate the end-to-end scenario and the text/argv round-trip.
- Validate option and positional arity consumption, "--" passthrough and
  attached values.
- Validate batched parse errors: missing values, required options,
  conversion failures and unmatched tokens with typo suggestions.
- Validate implicit defaults backed by value sources.
- Validate directives, diagrams, deprecation warnings and finalize().

Conventions
- Test method names follow CamelCase per project convention.
- Assertions on errors compare messages, the user-facing contract.
"""

from __future__ import annotations

import io
import unittest
import warnings
from unittest import TestCase
from unittest.mock import patch

from rich.console import Console

from argtree import (
    Argument,
    Command,
    ConversionError,
    DeprecatedSymbolWarning,
    Directive,
    EnvVar,
    MissingArgumentError,
    Option,
    ParseExit,
    Parser,
    RequiredOptionError,
    Settings,
    SymbolKind,
    SymbolRef,
    UnmatchedTokenError,
    join,
    parse,
)


def messages(result):
    return [error.message for error in result.errors]


def bindings(result):
    return {symbol.name: value.value for symbol, value in result.results.items()}


class TestEndToEnd(TestCase):
    """Behavioral tests for the basic command/option scenario."""

    def setUp(self):
        self.root = Command("root", Command("verb", Option("-x", type=int)))

    def testVerbWithOptionValue(self):
        result = parse(self.root, "verb -x 123")
        self.assertEqual(result.errors, ())
        self.assertEqual(result["-x"], 123)
        self.assertEqual(result.unmatched, ())
        self.assertTrue(result.succeeded)
        self.assertEqual(result.command.name, "verb")

    def testTextAndArgvRoundTrip(self):
        text = parse(self.root, "verb -x 123")
        argv = parse(self.root, ["verb", "-x", "123"])
        self.assertEqual(text["-x"], argv["-x"])
        self.assertEqual(text.errors, argv.errors)
        self.assertEqual([token.text for token in text.tokens], [token.text for token in argv.tokens])

    def testAliasesAreCaseAndKebabInsensitive(self):
        root = Command("root", Command("verb", Option("--dry-run", type=bool)))
        for text in ("verb --dryRun", "VERB --DRY-RUN", "verb --dry_run"):
            result = parse(root, text)
            self.assertEqual(result.errors, (), text)
            self.assertIs(result["--dry-run"], True, text)

    def testValueResultCarriesTokens(self):
        result = parse(self.root, "verb -x 123")
        value = result.results[result.find("-x")]
        self.assertEqual([token.text for token in value.tokens], ["123"])
        self.assertFalse(value.implicit)
        self.assertIsNone(value.error)

    def testUnknownAliasLookupRaises(self):
        result = parse(self.root, "verb -x 123")
        with self.assertRaises(KeyError):
            result["--missing"]
        self.assertIn("-x", result)
        self.assertNotIn("--missing", result)

    def testUnboundSymbolReadsAsNone(self):
        result = parse(self.root, "verb")
        self.assertIsNone(result["-x"])
        self.assertNotIn("-x", result)

    def testParserIsReusable(self):
        parser = Parser(self.root)
        self.assertEqual(parser.parse("verb -x 1")["-x"], 1)
        self.assertEqual(parser.parse("verb -x 2")["-x"], 2)

    def testParserRejectsNonCommandRoot(self):
        with self.assertRaises(TypeError):
            Parser(Option("-x"))


class TestRootName(TestCase):
    """Behavioral tests for a leading token naming the root command."""

    def setUp(self):
        self.root = Command("the-command", Option("--option1"), Argument("value", nargs="?"))

    def testLeadingRootNameIsSkipped(self):
        result = parse(self.root, ["the-command", "--option1", "a"])
        self.assertEqual(result.errors, ())
        self.assertEqual(result.unmatched, ())
        self.assertEqual(result["--option1"], "a")
        self.assertNotIn("value", result)

    def testOnlyTheFirstTokenIsTheRootName(self):
        result = parse(self.root, "the-command the-command")
        self.assertEqual(result.errors, ())
        self.assertEqual(result["value"], "the-command")

    def testRootNameAfterDirectives(self):
        result = parse(self.root, "[custom] the-command --option1 a")
        self.assertEqual(result.errors, ())
        self.assertEqual(result["--option1"], "a")

    def testRootAliasesAreAccepted(self):
        root = Command("tool", Option("-x"), aliases=("t",))
        result = parse(root, "T -x 1")
        self.assertEqual(result.errors, ())
        self.assertEqual(result["-x"], "1")

    def testRootSymbolsTakePrecedence(self):
        root = Command("tool", Command("tool", Option("-x")))
        result = parse(root, "tool -x 1")
        self.assertEqual(result.errors, ())
        self.assertIsNot(result.command, root)
        self.assertEqual(result.command.name, "tool")

    def testRootNameDoesNotShowInTheDiagram(self):
        self.assertEqual(parse(self.root, "the-command v").diagram(), "[ the-command <v> ]")


class TestProperties(TestCase):
    """Round-trip and arity properties over several trees and inputs."""

    def setUp(self):
        self.cases = [
            (
                Command(
                    "root",
                    Command("verb", Option("-x", type=int), Option("--name"), Argument("rest", nargs="*")),
                ),
                [
                    "verb -x 123",
                    'verb --name "a b" c',
                    'verb --name:"x y" -x=4',
                    'verb "" --name ""',
                    "verb -x abc stray",
                ],
            ),
            (
                Command(
                    "root",
                    Option("-a", type=bool),
                    Option("-b", type=bool),
                    Option("-o"),
                    Option("--pair", nargs=2),
                    Argument("src"),
                    Argument("dst", nargs="*"),
                ),
                ["-abofile one two", "--pair 1 2 one", "one -- -a two", "--pair 1", "-a false x"],
            ),
            (
                Command(
                    "root",
                    Directive("diagram"),
                    Option("--items", nargs="*"),
                    Argument("first", nargs=(1, 3)),
                    Argument("second", nargs="?"),
                ),
                ["[diagram] a b --items x y", "[suggest:3] a b c d", "--items", ""],
            ),
        ]

    def testRejoinedTokensBindTheSame(self):
        for root, inputs in self.cases:
            for text in inputs:
                first = parse(root, text)
                again = parse(root, join(token.text for token in first.tokens))
                self.assertEqual(bindings(again), bindings(first), text)
                self.assertEqual(messages(again), messages(first), text)
                self.assertEqual(
                    [token.text for token in again.unmatched],
                    [token.text for token in first.unmatched],
                    text,
                )

    def testQuotedWhitespaceSurvivesTheRoundTrip(self):
        root = self.cases[0][0]
        first = parse(root, 'verb --name "a b"')
        again = parse(root, join(token.text for token in first.tokens))
        self.assertEqual(again["--name"], "a b")
        self.assertNotIn("rest", again)

    def testArityInvariant(self):
        for root, inputs in self.cases:
            for text in inputs:
                result = parse(root, text)
                short = {error.symbol for error in result.errors if isinstance(error, MissingArgumentError)}
                for symbol, value in result.results.items():
                    if value.implicit or symbol in short or symbol.kind is SymbolKind.DIRECTIVE:
                        continue
                    self.assertGreaterEqual(len(value.tokens), symbol.arity.minimum, text)
                    self.assertLessEqual(len(value.tokens), symbol.arity.maximum, text)


class TestOptions(TestCase):
    """Behavioral tests for option value consumption."""

    def setUp(self):
        self.root = Command(
            "root",
            Option("--items", nargs="*"),
            Option("--pair", nargs=2),
            Option("--flag", type=bool),
            Option("--switch", nargs=0),
            Option("--name"),
            Option("--maybe", nargs="?"),
            Argument("rest", nargs="*"),
        )

    def testUnboundedOptionStopsAtAlias(self):
        result = parse(self.root, "--items a b --flag")
        self.assertEqual(result["--items"], ["a", "b"])
        self.assertIs(result["--flag"], True)

    def testFixedArityOptionStopsWhenFull(self):
        result = parse(self.root, "--pair a b c")
        self.assertEqual(result["--pair"], ["a", "b"])
        self.assertEqual(result["rest"], ["c"])

    def testBareFlagIsTrue(self):
        self.assertIs(parse(self.root, "--flag")["--flag"], True)
        self.assertIs(parse(self.root, "--switch")["--switch"], True)

    def testFlagTakesOnlyBooleans(self):
        result = parse(self.root, "--flag false")
        self.assertIs(result["--flag"], False)
        result = parse(self.root, "--flag value")
        self.assertIs(result["--flag"], True)
        self.assertEqual(result["rest"], ["value"])

    def testOptionalValueWithoutTokenIsNone(self):
        result = parse(self.root, "--maybe")
        self.assertEqual(result.errors, ())
        self.assertIn("--maybe", result)
        self.assertIsNone(result["--maybe"])

    def testRepeatedOptionLastWins(self):
        self.assertEqual(parse(self.root, "--name a --name b")["--name"], "b")

    def testRepeatedOptionDropsEarlierConversionError(self):
        root = Command("root", Option("-x", type=int))
        result = parse(root, "-x abc -x 5")
        self.assertEqual(result.errors, ())
        self.assertTrue(result.succeeded)
        self.assertEqual(result["-x"], 5)
        self.assertIsNone(result.results[result.find("-x")].error)

    def testRepeatedOptionKeepsLatestConversionError(self):
        root = Command("root", Option("-x", type=int))
        result = parse(root, "-x abc -x def")
        self.assertEqual(messages(result), ["Cannot parse argument 'def' for option '-x' as expected type 'int'."])
        self.assertIs(result.results[result.find("-x")].error, result.errors[0])

    def testAttachedValue(self):
        self.assertEqual(parse(self.root, "--name:value")["--name"], "value")
        self.assertEqual(parse(self.root, "--name=a=b")["--name"], "a=b")

    def testOptionDoesNotSwallowAliases(self):
        result = parse(self.root, "--name --flag")
        self.assertEqual(messages(result), ["Required argument missing for option: '--name'."])
        self.assertIsInstance(result.errors[0], MissingArgumentError)
        self.assertIs(result["--flag"], True)

    def testMissingValueAtEnd(self):
        result = parse(self.root, "--pair a")
        self.assertEqual(messages(result), ["Required argument missing for option: '--pair'."])

    def testNegativeNumbersAreValues(self):
        root = Command("root", Option("-n", type=int))
        self.assertEqual(parse(root, "-n -5")["-n"], -5)

    def testBundledFlags(self):
        root = Command("root", Option("-a", type=bool), Option("-b", type=bool), Option("-o"))
        result = parse(root, "-abofile")
        self.assertEqual(result.errors, ())
        self.assertIs(result["-a"], True)
        self.assertIs(result["-b"], True)
        self.assertEqual(result["-o"], "file")


class TestArguments(TestCase):
    """Behavioral tests for positional slots."""

    def testSlotsFillInDeclarationOrder(self):
        root = Command("root", Argument("src"), Argument("dst", nargs="*"))
        result = parse(root, "a b c")
        self.assertEqual(result["src"], "a")
        self.assertEqual(result["dst"], ["b", "c"])

    def testMissingArgument(self):
        root = Command("root", Argument("src"))
        result = parse(root, "")
        self.assertEqual(messages(result), ["Required argument missing for command: 'root'."])

    def testTooFewValues(self):
        root = Command("root", Argument("pair", nargs=2))
        self.assertEqual(messages(parse(root, "a")), ["Required argument missing for command: 'root'."])

    def testOptionClosesPositionalSlot(self):
        root = Command("root", Argument("first", nargs=(1, 3)), Argument("second", nargs="?"), Option("-x"))
        result = parse(root, "a b -x 1 c")
        self.assertEqual(result["first"], ["a", "b"])
        self.assertEqual(result["second"], "c")
        self.assertEqual(result["-x"], "1")

    def testDoubleDashPassthrough(self):
        root = Command("root", Option("-x"), Argument("rest", nargs="*"))
        result = parse(root, "-- -x y")
        self.assertEqual(result.errors, ())
        self.assertEqual(result["rest"], ["-x", "y"])
        self.assertNotIn("-x", result)

    def testConvertedArguments(self):
        root = Command("root", Argument("numbers", type=int, nargs="+"))
        self.assertEqual(parse(root, "1 2 3")["numbers"], [1, 2, 3])

    def testSubcommandsAndArguments(self):
        root = Command("root", Command("copy", Argument("src"), Argument("dst")), Command("move"))
        result = parse(root, "copy a b")
        self.assertEqual(result.command.name, "copy")
        self.assertEqual((result["src"], result["dst"]), ("a", "b"))

    def testRecursiveOptionInSubcommand(self):
        root = Command("root", Option("--verbose", type=bool, recursive=True), Command("sub"))
        result = parse(root, "sub --verbose")
        self.assertEqual(result.errors, ())
        self.assertIs(result["--verbose"], True)


class TestErrors(TestCase):
    """Behavioral tests for batched parse errors."""

    def setUp(self):
        self.root = Command(
            "root",
            Command("verb", Option("-x", type=int), Option("--name")),
            Option("--verbose", type=bool),
        )

    def testConversionFailureIsRecorded(self):
        result = parse(self.root, "verb -x abc")
        self.assertEqual(messages(result), ["Cannot parse argument 'abc' for option '-x' as expected type 'int'."])
        self.assertIsInstance(result.errors[0], ConversionError)
        self.assertIsNone(result["-x"])
        self.assertIsNotNone(result.results[result.find("-x")].error)
        self.assertIsInstance(result.errors[0].options["exception"], ValueError)

    def testUnmatchedTokenWithSuggestion(self):
        result = parse(self.root, "verb --nme")
        self.assertEqual(result.unmatched[0].text, "--nme")
        self.assertIsInstance(result.errors[0], UnmatchedTokenError)
        self.assertEqual(result.errors[0].message, "Unrecognized command or argument '--nme'. Did you mean '--name'?")
        self.assertEqual(result.errors[0].options["suggestions"], ("--name",))

    def testUnmatchedTokenSuggestsCommands(self):
        result = parse(self.root, "vreb")
        self.assertEqual(messages(result), ["Unrecognized command or argument 'vreb'. Did you mean 'verb'?"])

    def testUnmatchedTokenWithoutSuggestion(self):
        result = parse(self.root, "verb zzzzzzzz")
        self.assertEqual(messages(result), ["Unrecognized command or argument 'zzzzzzzz'."])

    def testSuggestionsDisabled(self):
        result = parse(self.root, "verb --nme", Settings(suggestions=False))
        self.assertEqual(messages(result), ["Unrecognized command or argument '--nme'."])

    def testUnmatchedTokensAllowed(self):
        root = Command("root", Option("-x"), treat_unmatched_tokens_as_errors=False)
        result = parse(root, "stray -x 1")
        self.assertEqual(result.errors, ())
        self.assertEqual([token.text for token in result.unmatched], ["stray"])
        self.assertEqual(result["-x"], "1")

    def testRequiredOption(self):
        root = Command("root", Option("--name", required=True))
        result = parse(root, "")
        self.assertEqual(messages(result), ["Option '--name' is required."])
        self.assertIsInstance(result.errors[0], RequiredOptionError)

    def testRequiredOptionSatisfiedByDefault(self):
        root = Command("root", Option("--name", required=True, default="anonymous"))
        result = parse(root, "")
        self.assertEqual(result.errors, ())
        self.assertEqual(result["--name"], "anonymous")

    def testEveryProblemIsReported(self):
        root = Command("root", Option("--name", required=True), Option("-n", type=int))
        result = parse(root, "-n abc stray")
        self.assertEqual(len(result.errors), 3)
        self.assertFalse(result.succeeded)

    def testFinalizeRaisesParseExit(self):
        result = parse(self.root, "verb -x abc")
        with self.assertRaises(ParseExit) as context:
            result.finalize()
        self.assertEqual(list(context.exception.exceptions), list(result.errors))

    def testFinalizeReturnsResultWithoutErrors(self):
        result = parse(self.root, "verb -x 1")
        self.assertIs(result.finalize(), result)

    def testFinalizeExitsInShellMode(self):
        result = parse(self.root, "verb -x abc")
        with self.assertRaises(SystemExit) as context:
            result.finalize(shell=True)
        self.assertEqual(context.exception.code, 1)


class TestDefaults(TestCase):
    """Behavioral tests for implicit values."""

    def testLiteralDefault(self):
        root = Command("root", Option("--level", type=int, default=3))
        result = parse(root, "")
        self.assertEqual(result["--level"], 3)
        self.assertTrue(result.results[result.find("--level")].implicit)

    def testExplicitValueWins(self):
        root = Command("root", Option("--level", type=int, default=3))
        result = parse(root, "--level 5")
        self.assertEqual(result["--level"], 5)
        self.assertFalse(result.results[result.find("--level")].implicit)

    def testSymbolReferenceDefault(self):
        root = Command("root", Option("--input"), Option("--output", default=SymbolRef("--input", str.upper)))
        self.assertEqual(parse(root, "--input data")["--output"], "DATA")
        self.assertNotIn("--output", parse(root, ""))

    def testEnvironmentDefaultUsesConverter(self):
        root = Command("root", Option("--port", type=int, default=EnvVar("PORT", environ={"PORT": "8080"})))
        self.assertEqual(parse(root, "")["--port"], 8080)

    def testBrokenDefaultIsReported(self):
        root = Command("root", Option("--port", type=int, default=EnvVar("PORT", environ={"PORT": "http"})))
        result = parse(root, "")
        self.assertEqual(messages(result), ["Cannot resolve the default value of option '--port'."])
        self.assertNotIn("--port", result)

    def testCyclicDefaultsDoNotResolve(self):
        root = Command("root", Option("-a", default=SymbolRef("-b")), Option("-b", default=SymbolRef("-a")))
        result = parse(root, "")
        self.assertEqual(result.errors, ())
        self.assertNotIn("-a", result)
        self.assertNotIn("-b", result)

    def testDefaultsOnlyForTheMatchedChain(self):
        root = Command("root", Command("one", Option("-a", default=1)), Command("two", Option("-b", default=2)))
        result = parse(root, "one")
        self.assertEqual(result["-a"], 1)
        self.assertNotIn("-b", result)

    def testArgumentDefault(self):
        root = Command("root", Argument("target", default="all"))
        self.assertEqual(parse(root, "")["target"], "all")
        self.assertEqual(parse(root, "docs")["target"], "docs")


class TestDirectivesAndDiagram(TestCase):
    """Behavioral tests for directives, diagrams and warnings."""

    def setUp(self):
        self.root = Command(
            "root",
            Directive("diagram"),
            Command("verb", Option("-x", type=int), Option("-y", type=int, default=5)),
            Command("old", deprecated=True),
        )

    def testDirectivesAreCollected(self):
        result = parse(self.root, "[diagram] [suggest:4] [custom] verb -x 1")
        self.assertEqual(result.errors, ())
        self.assertEqual(dict(result.directives), {"diagram": (), "suggest": ("4",), "custom": ()})
        self.assertIn("diagram", result)
        self.assertEqual(result["diagram"], [])

    def testDiagram(self):
        result = parse(self.root, "verb -x 123")
        self.assertEqual(result.diagram(), "[ root [ verb [ -x <123> ] *[ -y <5> ] ] ]")

    def testDiagramDirectivePrintsOnFinalize(self):
        console = Console(file=io.StringIO(), width=200, color_system=None)
        with patch("argtree.faults.console", console):
            result = parse(self.root, "[diagram] verb -x 123")
            self.assertIs(result.finalize(), result)
        self.assertIn("[ root [ verb [ -x <123> ] *[ -y <5> ] ] ]", console.file.getvalue())

    def testNoDiagramWithoutTheDirective(self):
        console = Console(file=io.StringIO(), width=200, color_system=None)
        with patch("argtree.faults.console", console):
            parse(self.root, "verb -x 123").finalize()
        self.assertEqual(console.file.getvalue(), "")

    def testDirectiveSymbolIsNotDeprecated(self):
        result = parse(self.root, "[diagram] verb")
        self.assertEqual(result.warnings, ())
        self.assertEqual(result.errors, ())

    def testDiagramShowsUnmatchedTokens(self):
        result = parse(self.root, "verb -x 1 stray")
        self.assertTrue(result.diagram().endswith("???--> stray"))

    def testDeprecatedSymbolWarns(self):
        result = parse(self.root, "old")
        self.assertEqual(len(result.warnings), 1)
        self.assertIsInstance(result.warnings[0], DeprecatedSymbolWarning)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            result.finalize()
        self.assertTrue(any(isinstance(warning.message, DeprecatedSymbolWarning) for warning in caught))


if __name__ == "__main__":
    unittest.main()
