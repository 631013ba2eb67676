"""
Plugins module behavioral tests (Plugin spec, plugin decorator, chain runner).

Scope
- Validate Plugin construction and the plugin() decorator/factory modes.
- Validate chain(): ordering, argument slices, halting, double next, required checks.

Conventions
- Test method names follow CamelCase per project convention.
- Async paths run under IsolatedAsyncioTestCase.
"""
import unittest
from unittest import IsolatedAsyncioTestCase, TestCase

from argotree import Option, Outcome, Plugin, ParsedArgs, chain, plugin
from argotree.faults import RequiredOptionMissingError


async def passthrough(ctx, args, next, node):
    await next()


class TestPlugin(TestCase):
    """Behavioral tests for Plugin specifications."""

    def testDefaults(self):
        spec = Plugin(passthrough)
        self.assertIs(spec.middleware, passthrough)
        self.assertEqual(dict(spec.options), {})
        self.assertFalse(spec.recursive)

    def testOptionsAreMerged(self):
        spec = Plugin(passthrough, {"logLevel": Option()})
        self.assertEqual(list(spec.options), ["log-level"])

    def testMiddlewareMustBeCoroutineFunction(self):
        def middleware(ctx, args, next, node):
            pass

        with self.assertRaises(TypeError):
            Plugin(middleware)

    def testBareDecorator(self):
        @plugin
        async def timing(ctx, args, next, node):
            await next()

        self.assertIsInstance(timing, Plugin)
        self.assertFalse(timing.recursive)

    def testDecoratorWithMetadata(self):
        @plugin({"verbose": Option(bool)}, recursive=True)
        async def verbose(ctx, args, next, node):
            await next()

        self.assertIsInstance(verbose, Plugin)
        self.assertTrue(verbose.recursive)
        self.assertEqual(list(verbose.options), ["verbose"])

    def testDirectFactory(self):
        spec = plugin(passthrough, {"a": Option()}, recursive=True)
        self.assertIsInstance(spec, Plugin)
        self.assertTrue(spec.recursive)

    def testDecoratorRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            plugin(recursive=True)("nope")

    def testOutcomeTruthiness(self):
        self.assertTrue(Outcome.COMPLETED)
        self.assertFalse(Outcome.HALTED)


class TestChain(IsolatedAsyncioTestCase):
    """Behavioral tests for chain()."""

    async def testEmptyChainRunsTerminal(self):
        calls = []

        async def terminal():
            calls.append("terminal")

        outcome = await chain((), None, ParsedArgs(), terminal)
        self.assertIs(outcome, Outcome.COMPLETED)
        self.assertEqual(calls, ["terminal"])

    async def testOrderAroundNext(self):
        calls = []

        def tracer(label):
            async def middleware(ctx, args, next, node):
                calls.append(label + ":before")
                await next()
                calls.append(label + ":after")
            return Plugin(middleware)

        async def terminal():
            calls.append("terminal")

        await chain([tracer("a"), tracer("b")], None, ParsedArgs(), terminal)
        self.assertEqual(calls, ["a:before", "b:before", "terminal", "b:after", "a:after"])

    async def testHaltingSkipsRestAndTerminal(self):
        counter = {"handler": 0, "second": 0}

        async def stop(ctx, args, next, node):
            pass

        async def second(ctx, args, next, node):
            counter["second"] += 1
            await next()

        async def terminal():
            counter["handler"] += 1

        outcome = await chain([Plugin(stop), Plugin(second)], None, ParsedArgs(), terminal)
        self.assertIs(outcome, Outcome.HALTED)
        self.assertEqual(counter, {"handler": 0, "second": 0})

    async def testNextTwiceRaises(self):
        async def twice(ctx, args, next, node):
            await next()
            await next()

        async def terminal():
            pass

        with self.assertRaises(RuntimeError):
            await chain([Plugin(twice)], None, ParsedArgs(), terminal)

    async def testPluginSeesOnlyItsOwnSlice(self):
        seen = []

        async def middleware(ctx, args, next, node):
            seen.append(dict(args))
            seen.append(args.positional)
            await next()

        async def terminal():
            pass

        args = ParsedArgs(("build",), (), {"log_level": "debug", "other": 1})
        await chain([Plugin(middleware, {"logLevel": Option()})], None, args, terminal)
        self.assertEqual(seen, [{"log_level": "debug"}, ()])

    async def testContextAndNodeAreShared(self):
        ctx = {}
        node = object()

        async def middleware(ctx, args, next, current):
            ctx["node"] = current
            await next()

        async def terminal():
            ctx["terminal"] = True

        await chain([Plugin(middleware)], ctx, ParsedArgs(), terminal, node)
        self.assertEqual(ctx, {"node": node, "terminal": True})

    async def testRequiredPluginOptionChecked(self):
        calls = []

        async def middleware(ctx, args, next, node):
            calls.append("middleware")
            await next()

        async def terminal():
            calls.append("terminal")

        with self.assertRaises(RequiredOptionMissingError):
            await chain([Plugin(middleware, {"token": Option(required=True)})], None, ParsedArgs(), terminal)
        self.assertEqual(calls, [])

    async def testTerminalOutcomeIsReturned(self):
        async def terminal():
            return Outcome.HALTED

        self.assertIs(await chain([Plugin(passthrough)], None, ParsedArgs(), terminal), Outcome.HALTED)

    async def testErrorsPropagateUnchanged(self):
        async def failing(ctx, args, next, node):
            raise LookupError("boom")

        async def terminal():
            pass

        with self.assertRaises(LookupError):
            await chain([Plugin(failing)], None, ParsedArgs(), terminal)

    async def testRejectsNonPlugins(self):
        async def terminal():
            pass

        with self.assertRaises(TypeError):
            await chain([passthrough], None, ParsedArgs(), terminal)


if __name__ == "__main__":
    unittest.main()
