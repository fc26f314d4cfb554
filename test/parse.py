"""
Parser behavioral tests (tokens, option values, coercion, terminators).

Scope
- Validate token/option separation, quoting and inline values.
- Validate coercion per declared type (boolean, string, number, array, nargs).
- Validate unknown options, negations, short clusters and the "--" terminator.
- Validate remove_option_tokens.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (parse_command, remove_option_tokens).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from clide import parse_command, remove_option_tokens
from clide.faults import UsageError


class TestParseCommand(TestCase):
    """Behavioral tests for parse_command."""

    def testMixedOptionsAndQuotedValues(self):
        parsed = parse_command('foo -a -b=bval -c="c1 c2"', {
            "a": {"type": "boolean"},
            "b": {"type": "string"},
            "c": {"type": "string"},
        })
        self.assertEqual(parsed.tokens, ["foo"])
        self.assertEqual(parsed.options, {"a": True, "b": "bval", "c": "c1 c2"})

    def testValuesAreStoredUnderAliases(self):
        parsed = parse_command("-v build", {"verbose": {"type": "boolean", "alias": ["v"]}})
        self.assertEqual(parsed.tokens, ["build"])
        self.assertEqual(parsed.options, {"verbose": True, "v": True})

    def testUnknownOptionsBecomeTrue(self):
        parsed = parse_command("--force deploy --tag=v1", {})
        self.assertEqual(parsed.tokens, ["deploy"])
        self.assertEqual(parsed.options, {"force": True, "tag": True})

    def testStringConsumesNextWord(self):
        parsed = parse_command("--name alice bob", {"name": "string"})
        self.assertEqual(parsed.tokens, ["bob"])
        self.assertEqual(parsed.options["name"], "alice")

    def testStringWithoutValueIsEmpty(self):
        parsed = parse_command("--name", {"name": "string"})
        self.assertEqual(parsed.options["name"], "")

    def testNumbers(self):
        schema = {"count": "number", "ratio": "number"}
        parsed = parse_command("--count 5 --ratio=1.5e3", schema)
        self.assertEqual(parsed.options["count"], 5)
        self.assertEqual(parsed.options["ratio"], 1500.0)

    def testNegativeNumberIsAValue(self):
        parsed = parse_command("--offset -5", {"offset": "number"})
        self.assertEqual(parsed.tokens, [])
        self.assertEqual(parsed.options["offset"], -5)

    def testUnparsableNumberIsKeptRaw(self):
        parsed = parse_command("--count many", {"count": "number"})
        self.assertEqual(parsed.options["count"], "many")

    def testArrayStopsAtNextOption(self):
        parsed = parse_command("--tags a b --dry", {"tags": "array", "dry": "boolean"})
        self.assertEqual(parsed.options["tags"], ["a", "b"])
        self.assertIs(parsed.options["dry"], True)

    def testInlineArrayIsSplitOnCommas(self):
        parsed = parse_command("-opt=a,b,c", {"opt": "array"})
        self.assertEqual(parsed.options["opt"], ["a", "b", "c"])

    def testArrayRepetitionsAccumulate(self):
        parsed = parse_command("--tag a --tag b", {"tag": {"type": "array", "alias": ["t"]}})
        self.assertEqual(parsed.options["tag"], ["a", "b"])
        self.assertEqual(parsed.options["t"], ["a", "b"])

    def testNargsCapturesExactCount(self):
        parsed = parse_command("--point 1 2 rest", {"point": {"type": "number", "nargs": 2}})
        self.assertEqual(parsed.options["point"], [1, 2])
        self.assertEqual(parsed.tokens, ["rest"])

    def testNegatedBoolean(self):
        parsed = parse_command("--no-color", {"color": {"type": "boolean", "default": True}})
        self.assertIs(parsed.options["color"], False)

    def testInlineFalseBoolean(self):
        parsed = parse_command("--color=false", {"color": "boolean"})
        self.assertIs(parsed.options["color"], False)

    def testShortCluster(self):
        schema = {"a": "boolean", "b": "boolean", "c": "string"}
        parsed = parse_command("-abc value", schema)
        self.assertEqual(parsed.options, {"a": True, "b": True, "c": "value"})
        self.assertEqual(parsed.tokens, [])

    def testTerminatorEndsOptionScanning(self):
        parsed = parse_command("run -- --not-an-option -x", {"x": "boolean"})
        self.assertEqual(parsed.tokens, ["run", "--not-an-option", "-x"])
        self.assertEqual(parsed.options, {})

    def testCamelCaseKeysAreRecognized(self):
        parsed = parse_command("--dryRun", {"dry-run": "boolean"})
        self.assertEqual(parsed.options, {"dry-run": True})

    def testListInputIsTakenAsWords(self):
        parsed = parse_command(["greet", "--name", "a b"], {"name": "string"})
        self.assertEqual(parsed.tokens, ["greet"])
        self.assertEqual(parsed.options["name"], "a b")

    def testUnbalancedQuoteRaises(self):
        with self.assertRaises(UsageError):
            parse_command('foo "bar', {})

    def testParsingIsPure(self):
        schema = {"name": "string"}
        first = parse_command("x --name y", schema)
        second = parse_command("x --name y", schema)
        self.assertEqual(first, second)
        self.assertEqual(schema, {"name": "string"})


class TestRemoveOptionTokens(TestCase):
    """Behavioral tests for remove_option_tokens."""

    def testRemovesDeclaredBooleans(self):
        self.assertEqual(remove_option_tokens("foo --help bar", {"help": "boolean"}), "foo bar")

    def testRemovesConsumedValues(self):
        line = remove_option_tokens("deploy --env prod staging --force", {"env": "string"})
        self.assertEqual(line, "deploy staging --force")

    def testKeepsQuoting(self):
        self.assertEqual(remove_option_tokens("say 'a b' -v", {"v": "boolean"}), "say 'a b'")


if __name__ == "__main__":
    unittest.main()
