"""
Context lifecycle behavioral tests (prepare, execute, hooks, faults, exit).

Scope
- Validate plugin initialization, chain resolution, schema merging and parsing.
- Validate execution results, repeated execution and readiness faults.
- Validate every lifecycle hook's ability to observe, replace or veto.
- Validate the error funnel (ignore, replace, wrap) and the exit request.

Conventions
- Test method names follow CamelCase per project convention.
- Command trees live in temporary directories and are served by an
  in-memory loader.
"""

from __future__ import annotations

import io
import os
import tempfile
import unittest
from unittest import IsolatedAsyncioTestCase

from rich.console import Console

from clide import Client, CommandUnit, Context, Hook, Plugin, ResolvedCommand
from clide.faults import (
    ClideError,
    ContextNotReadyError,
    NotFoundError,
    OptionsError,
    RequiredSubcommandError,
)


def build_tree(root, units, directories=()):
    """
    Write placeholder files for units (keyed by path relative to root, without
    extension) and return a loader serving them from memory.
    """
    for name in directories:
        os.makedirs(os.path.join(root, name), exist_ok=True)
    for name in units:
        path = os.path.join(root, name + ".py")
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as file:
            file.write("")

    def load(path):
        return units.get(os.path.relpath(path, root))

    return load


class TestContext(IsolatedAsyncioTestCase):
    """Behavioral tests for Context."""

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.root = self.directory.name
        self.output = io.StringIO()
        self.client = Client(Console(file=self.output), Console(file=self.output))
        self.ran = []

    def tearDown(self):
        self.directory.cleanup()

    def context(self, command_string, units, **options):
        load = build_tree(self.root, units)
        return Context(command_string, self.root, client=self.client, load_fn=load, **options)

    def recorder(self, name, **metadata):
        async def handler(state):
            self.ran.append(name)
            await state.next(state.data)
        return CommandUnit(handler, **metadata)

    async def testPrepareResolvesAndMergesOptions(self):
        context = self.context("deploy --force staging --region eu", {
            "deploy": self.recorder("deploy", options={"force": {"type": "boolean", "alias": ["f"]}}),
            "deploy/staging": self.recorder("staging", options={"region": "string"}),
        })
        await context.prepare()
        self.assertTrue(context.is_ready)
        self.assertEqual([resolved.command_name for resolved in context.resolved_commands], ["deploy", "staging"])
        self.assertEqual(set(context.options), {"force", "region"})
        self.assertEqual(context.parsed_options, {"force": True, "f": True, "region": "eu"})

    async def testPrepareIsIdempotent(self):
        resolves = []
        context = self.context("a", {"a": self.recorder("a")})
        context.hooks.on(Hook.BEFORE_RESOLVE, resolves.append)
        await context.prepare()
        await context.prepare()
        self.assertEqual(len(resolves), 1)

    async def testExecuteStoresLatestResult(self):
        async def increment(state):
            await state.next(state.data + 1)

        context = self.context("inc", {"inc": CommandUnit(increment)})
        await context.prepare()
        self.assertEqual(await context.execute(1), 2)
        self.assertEqual(context.result, 2)
        await context.execute(10)
        self.assertEqual(context.result, 11)

    async def testExecuteBeforePrepareRaises(self):
        context = self.context("a", {"a": self.recorder("a")})
        with self.assertRaises(ContextNotReadyError):
            await context.execute()

    async def testNonMiddlewareOptionsStillParseAndValidate(self):
        async def bar(state):
            self.ran.append(await state.options.env())

        units = {
            "foo": self.recorder("foo", is_middleware=False, options={"env": {"choices": ["dev", "prod"]}}),
            "foo/bar": CommandUnit(bar),
        }
        context = self.context("foo --env prod bar", units)
        await context.prepare()
        await context.execute()
        self.assertEqual(self.ran, ["prod"])

        invalid = self.context("foo --env nope bar", units)
        await invalid.prepare()
        with self.assertRaises(OptionsError):
            await invalid.execute()

    async def testSpreadParameterSkipsContextOptions(self):
        seen = []

        async def files(state):
            seen.append(dict(state.params))

        context = self.context("files a --name x b", {"files/[...paths]": CommandUnit(files)}, options={"name": "string"})
        await context.prepare()
        await context.execute()
        self.assertEqual(seen, [{"paths": ["a", "b"]}])
        self.assertEqual(context.parsed_options["name"], "x")

    async def testRequiredSubcommandRaises(self):
        context = self.context("users", {"users/list": self.recorder("list")})
        with self.assertRaises(RequiredSubcommandError) as context_manager:
            await context.prepare()
        self.assertEqual(context_manager.exception.message, 'subcommand required for command "users"')

    async def testIgnoredRequiredSubcommandStillParsesOptions(self):
        errors = []

        def ignore(payload):
            errors.append(payload.error)
            payload.ignore()

        context = self.context("users --verbose", {"users/list": self.recorder("list")}, options={"verbose": "boolean"})
        context.hooks.on(Hook.ERROR, ignore)
        await context.prepare()
        self.assertTrue(context.is_ready)
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], RequiredSubcommandError)
        self.assertIs(context.parsed_options["verbose"], True)

    async def testResolutionErrorsGoThroughTheErrorHook(self):
        errors = []
        context = self.context("missing", {})
        context.hooks.on(Hook.ERROR, lambda payload: errors.append(payload.error))
        with self.assertRaises(NotFoundError):
            await context.prepare()
        self.assertEqual(len(errors), 1)

    async def testIgnoredErrorProducesNoResult(self):
        async def fail(state):
            raise RuntimeError("boom")

        context = self.context("fail", {"fail": CommandUnit(fail)})
        context.hooks.on(Hook.ERROR, lambda payload: payload.ignore())
        await context.prepare()
        self.assertIsNone(await context.execute("data"))
        self.assertIsNone(context.result)

    async def testErrorsAreWrapped(self):
        async def fail(state):
            raise RuntimeError("boom")

        context = self.context("fail", {"fail": CommandUnit(fail)})
        await context.prepare()
        with self.assertRaises(ClideError) as context_manager:
            await context.execute()
        self.assertEqual(context_manager.exception.message, "boom")
        self.assertIsInstance(context_manager.exception.__cause__, RuntimeError)

    async def testFailedExecutionClearsPreviousResult(self):
        async def flaky(state):
            if state.data == "fail":
                raise RuntimeError("boom")
            await state.next(state.data)

        context = self.context("flaky", {"flaky": CommandUnit(flaky)})
        await context.prepare()
        self.assertEqual(await context.execute("ok"), "ok")
        with self.assertRaises(ClideError):
            await context.execute("fail")
        self.assertIsNone(context.result)

    async def testErrorCanBeReplaced(self):
        context = self.context("missing", {})
        context.hooks.on(Hook.ERROR, lambda payload: payload.set_error(ClideError("replaced")))
        with self.assertRaises(ClideError) as context_manager:
            await context.prepare()
        self.assertEqual(context_manager.exception.message, "replaced")

    async def testPluginsAreInitialized(self):
        class Verbose(Plugin):
            name = "verbose"
            version = "1.0.0"

            async def init(self, context):
                context.add_options({"verbose": {"type": "boolean", "alias": ["v"]}})
                return True

        context = self.context("a -v", {"a": self.recorder("a")}, plugins=[Verbose(), Plugin(name="lazy", init=lambda context: False)])
        await context.prepare()
        self.assertTrue(context.plugins["verbose"].is_ready)
        self.assertEqual(context.plugins["verbose"].version, "1.0.0")
        self.assertFalse(context.plugins["lazy"].is_ready)
        self.assertIs(context.parsed_options["verbose"], True)

    async def testBeforeResolveCanProvideTheChain(self):
        provided = ResolvedCommand(self.recorder("virtual"), "virtual", "", ("virtual",), "", "")

        def provide(payload):
            payload.add_resolved_commands([provided])
            payload.skip()

        context = self.context("anything", {})
        context.hooks.on(Hook.BEFORE_RESOLVE, provide)
        await context.prepare()
        await context.execute()
        self.assertEqual(self.ran, ["virtual"])

    async def testBeforeResolveNextCanStopResolution(self):
        context = self.context("a b", {"a": self.recorder("a"), "a/b": self.recorder("b")})
        context.hooks.on(Hook.BEFORE_RESOLVE_NEXT, lambda payload: payload.skip())
        await context.prepare()
        self.assertEqual([resolved.command_name for resolved in context.resolved_commands], ["a"])

    async def testBeforeParseCanProvideValues(self):
        context = self.context("a --x", {"a": self.recorder("a")})
        context.hooks.on(Hook.BEFORE_PARSE, lambda payload: payload.set_parsed_options_and_skip({"given": 1}))
        await context.prepare()
        self.assertEqual(context.parsed_options, {"given": 1})

    async def testAfterParseCanReplaceValues(self):
        context = self.context("a", {"a": self.recorder("a")})
        context.hooks.on(Hook.AFTER_PARSE, lambda payload: payload.set_parsed_options({"patched": True}))
        await context.prepare()
        self.assertEqual(context.parsed_options, {"patched": True})

    async def testBeforeExecuteCanSkip(self):
        context = self.context("a", {"a": self.recorder("a")})
        context.hooks.on(Hook.BEFORE_EXECUTE, lambda payload: payload.set_result_and_skip("cached"))
        await context.prepare()
        self.assertEqual(await context.execute(), "cached")
        self.assertEqual(self.ran, [])

    async def testSkippedExecutionDoesNotNeedPrepare(self):
        context = self.context("a", {"a": self.recorder("a")})
        context.hooks.on(Hook.BEFORE_EXECUTE, lambda payload: payload.skip())
        self.assertEqual(await context.execute("initial"), "initial")

    async def testAfterExecuteCanReplaceResult(self):
        context = self.context("a", {"a": self.recorder("a")})
        context.hooks.on(Hook.AFTER_EXECUTE, lambda payload: payload.set_result(payload.result * 2))
        await context.prepare()
        self.assertEqual(await context.execute(21), 42)

    async def testExitRaisesSystemExit(self):
        context = self.context("a", {})
        with self.assertRaises(SystemExit) as context_manager:
            await context.exit(3, "bye")
        self.assertEqual(context_manager.exception.code, 3)
        self.assertIn("bye", self.output.getvalue())

    async def testExitCanBeCancelledOrChanged(self):
        context = self.context("a", {})
        context.hooks.on(Hook.BEFORE_EXIT, lambda payload: payload.cancel())
        self.assertIsNone(await context.exit(1))

        changed = self.context("a", {})
        changed.hooks.on(Hook.BEFORE_EXIT, lambda payload: payload.set_code(0))
        with self.assertRaises(SystemExit) as context_manager:
            await changed.exit(1)
        self.assertEqual(context_manager.exception.code, 0)

    async def testParseAndResolveHelpersHaveNoSideEffects(self):
        context = self.context("a", {"a": self.recorder("a")})
        parsed = context.parse_command("a --name x", {"name": "string"})
        self.assertEqual(parsed.options, {"name": "x"})
        self.assertEqual(dict(context.options), {})
        resolved = await context.resolve_command()
        self.assertEqual(resolved.command_name, "a")
        self.assertEqual(context.resolved_commands, ())


if __name__ == "__main__":
    unittest.main()
