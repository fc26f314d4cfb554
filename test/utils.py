"""
Utility behavioral tests (sentinel, renaming, mirrors, tokens, file names).

Scope
- Validate the Unset sentinel and coalesce.
- Validate rename in both call forms and the copies returned by mirror.
- Validate key case conversions and shell-style token helpers.
- Validate parameter file names and extension removal.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import asyncio
import copy
import unittest
from unittest import TestCase

from clide.faults import UsageError
from clide.utils import (
    Unset,
    UnsetType,
    camel_case,
    coalesce,
    join_tokens,
    maybe_await,
    mirror,
    parse_file_name,
    remove_file_extension,
    rename,
    snake_case,
    split_tokens,
)


class TestUnset(TestCase):
    """Behavioral tests for the Unset sentinel."""

    def testSingletonAndFalsey(self):
        self.assertIs(UnsetType(), Unset)
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testCannotBeSubclassed(self):
        with self.assertRaises(TypeError):
            type("Other", (UnsetType,), {})

    def testCoalescePreservesFalseyValues(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertEqual(coalesce("", "x"), "")


class TestRename(TestCase):
    """Behavioral tests for rename and mirror."""

    def testDirectForm(self):
        function = rename(lambda: None, "named")
        self.assertEqual(function.__name__, "named")
        self.assertEqual(function.__qualname__, "named")

    def testDecoratorForm(self):
        @rename("handler")
        def function():
            pass

        self.assertEqual(function.__name__, "handler")

    def testInvalidArguments(self):
        with self.assertRaises(TypeError):
            rename("not callable", "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 1)
        with self.assertRaises(TypeError):
            rename()

    def testMirrorReturnsCopies(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = {"a": [1, 2]}

        holder = Holder()
        holder.items["a"].append(3)
        self.assertEqual(holder.items, {"a": [1, 2]})
        with self.assertRaises(AttributeError):
            holder.items = {}

    def testMaybeAwait(self):
        async def value():
            return 1

        self.assertEqual(asyncio.run(maybe_await(value())), 1)
        self.assertEqual(asyncio.run(maybe_await(2)), 2)


class TestTokens(TestCase):
    """Behavioral tests for case conversion and token helpers."""

    def testCaseConversions(self):
        self.assertEqual(camel_case("dry-run"), "dryRun")
        self.assertEqual(camel_case("dry_run_now"), "dryRunNow")
        self.assertEqual(snake_case("dry-run"), "dry_run")
        self.assertEqual(snake_case("dryRun"), "dry_run")

    def testSplitKeepsQuotedWords(self):
        self.assertEqual(split_tokens('deploy -m "first release"'), ["deploy", "-m", "first release"])
        self.assertEqual(split_tokens(("a", 1)), ["a", "1"])

    def testSplitUnbalancedQuoteRaises(self):
        with self.assertRaises(UsageError):
            split_tokens('deploy "oops')

    def testJoinQuotesWhenNeeded(self):
        self.assertEqual(join_tokens(["deploy", "first release"]), "deploy 'first release'")


class TestFileNames(TestCase):
    """Behavioral tests for parse_file_name and remove_file_extension."""

    def testPlainNames(self):
        self.assertEqual(parse_file_name("build.py"), ("build", None, False, ".py"))
        self.assertEqual(parse_file_name("users"), ("users", None, False, None))

    def testParameterNames(self):
        self.assertEqual(parse_file_name("[id].py"), ("[id]", "id", False, ".py"))
        self.assertEqual(parse_file_name("[...ids]"), ("[...ids]", "ids", True, None))

    def testRemoveFileExtension(self):
        self.assertEqual(remove_file_extension("foo.py"), "foo")
        self.assertEqual(remove_file_extension("foo.test.py"), "foo.test")
        self.assertEqual(remove_file_extension(".env"), ".env")
        self.assertEqual(remove_file_extension("[...ids]"), "[...ids]")


if __name__ == "__main__":
    unittest.main()
