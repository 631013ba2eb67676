"""
Faults module behavioral tests (codes, rendering, trigger, host hooks).

Conventions
- Test method names follow CamelCase per project convention.
- Host hooks (__prog__, __codes__, __docs__) are patched onto __main__ and removed afterwards.
"""
import copy
import io
import sys
import unittest
from unittest import TestCase, mock

from rich.console import Console
from rich.panel import Panel

from argotree.faults import *
from argotree.faults import console


def render(renderable):
    console = Console(file=io.StringIO(), width=80, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class TestFaultCode(TestCase):
    """Stable codes and host normalization."""

    def testCodesAreGroupedByDomain(self):
        self.assertEqual(FaultCode.UNKNOWN_COMMAND, 11101)
        self.assertEqual(FaultCode.REQUIRED_OPTION, 11205)

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "11201")

    def testNormalizeReadsHostCodes(self):
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__codes__", {FaultCode.UNKNOWN_OPTION: "E-OPT"}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "E-OPT")

    def testGetdoc(self):
        self.assertIsNone(getdoc(FaultCode.INVALID_VALUE))
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__docs__", {FaultCode.INVALID_VALUE: "see docs"}, create=True):
            self.assertEqual(getdoc(FaultCode.INVALID_VALUE), "see docs")

    def testGetdocRejectsPlainIntegers(self):
        with self.assertRaises(TypeError):
            getdoc(11201)


class TestCommandException(TestCase):
    """Message, options and rendering."""

    def setUp(self):
        self.fault = UnknownOptionError(
            "unknown option '--bogus'",
            title="unknown option",
            code=FaultCode.UNKNOWN_OPTION,
            key="bogus",
            hint="remove it",
        )

    def testMessageAndOptions(self):
        self.assertEqual(str(self.fault), "unknown option '--bogus'")
        self.assertEqual(self.fault.code, FaultCode.UNKNOWN_OPTION)
        self.assertEqual(self.fault.hint, "remove it")
        with self.assertRaises(TypeError):
            self.fault.options["key"] = "other"

    def testTaxonomy(self):
        self.assertIsInstance(self.fault, ValidationError)
        self.assertIsInstance(self.fault, CommandException)
        self.assertTrue(issubclass(UnknownCommandError, DispatchError))
        self.assertTrue(issubclass(CommandRequiredError, DispatchError))
        self.assertFalse(issubclass(DispatchError, ValidationError))

    def testRenderPlain(self):
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__prog__", "demo", create=True):
            output = render(self.fault)
        self.assertIn("[ demo — 11201 | Unknown Option ]", output)
        self.assertIn("unknown option '--bogus'", output)
        self.assertIn("→ remove it", output)

    def testRenderUsesToolName(self):
        tool = mock.Mock()
        tool.name = "tool"
        output = render(copy.replace(self.fault, tool=tool))
        self.assertIn("[ tool — 11201", output)

    def testRenderFancyUsesPanel(self):
        panel = copy.replace(self.fault, fancy=True).__rich__()
        self.assertIsInstance(panel, Panel)
        self.assertIsNone(panel.width)
        self.assertIn("unknown option '--bogus'", render(panel))

    def testReplaceKeepsTypeMessageAndCause(self):
        try:
            try:
                raise KeyError("bogus")
            except KeyError as error:
                raise self.fault from error
        except UnknownOptionError as fault:
            replica = copy.replace(fault, shell=True)
        self.assertIsInstance(replica, UnknownOptionError)
        self.assertEqual(replica.message, self.fault.message)
        self.assertIsInstance(replica.__cause__, KeyError)
        self.assertTrue(replica.options["shell"])
        self.assertNotIn("shell", self.fault.options)


class TestTrigger(TestCase):
    """Surfacing faults."""

    def testRaisesOutsideShell(self):
        fault = CommandRequiredError("a command is required", code=FaultCode.COMMAND_REQUIRED)
        with self.assertRaises(CommandRequiredError) as context:
            trigger(fault)
        self.assertIsNot(context.exception, fault)

    def testPrintsAndExitsInShell(self):
        fault = CommandRequiredError("a command is required", code=FaultCode.COMMAND_REQUIRED)
        with console.capture() as capture:
            with self.assertRaises(SystemExit) as context:
                trigger(fault, shell=True)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("a command is required", capture.get())

    def testRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))


if __name__ == "__main__":
    unittest.main()
