"""
Commands module behavioral tests (tree construction, entry points, diagnostics).

Scope
- Validate construction invariants: unique names, single default child, sealed trees,
  version on roots only, parents without positionals, colliding option names.
- Validate invoke()/main()/__invoke__ for shell and non-shell commands.
- Validate message() and the rich rendering of diagnostics.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (command, invoke, Argument, Option, Flag, Group).
"""

from __future__ import annotations

import contextlib
import io
import unittest
from unittest import TestCase

from argotree import command, invoke, Command, Argument, Option, Flag, Group
from argotree.faults import (
    HelpRequest,
    ParsingError,
    UnexpectedArgumentError,
    UnrecognizedOptionError,
    VersionRequest,
)


class TestConstruction(TestCase):
    """Behavioral tests for command trees."""

    def testNameDerivedFromCallback(self):
        @command
        def has_version_flag():
            pass

        self.assertEqual(has_version_flag.name, "has-version-flag")
        self.assertIsNone(has_version_flag.parent)
        self.assertIs(has_version_flag.root, has_version_flag)

    def testDescrDefaultsToDocstring(self):
        @command
        def tool():
            """Do things."""

        self.assertEqual(tool.descr, "Do things.")

    def testExplicitMetadata(self):
        @command(name="cli", descr="Command line.", version="1.2.3")
        def tool():
            pass

        self.assertEqual((tool.name, tool.descr, tool.version), ("cli", "Command line.", "1.2.3"))

    def testInvalidNamesRejected(self):
        def tool():
            pass

        with self.assertRaises(ValueError):
            command(tool, name="two words")
        with self.assertRaises(ValueError):
            command(tool, name="-dash")
        with self.assertRaises(ValueError):
            command(tool, name="")

    def testPathAndChildren(self):
        @command
        def root():
            pass

        @root.command
        def middle():
            pass

        @middle.command
        def leaf():
            pass

        self.assertEqual(leaf.path, (root, middle, leaf))
        self.assertIs(leaf.root, root)
        self.assertEqual(tuple(root.children), ("middle",))

    def testDuplicateChildNamesRejected(self):
        @command
        def tool():
            pass

        def first():
            pass

        tool.command(first, name="x")
        with self.assertRaises(ValueError):
            tool.command(first, name="x")

    def testSingleDefaultChild(self):
        @command
        def tool():
            pass

        @tool.command(default=True)
        def first():
            pass

        def second():
            pass

        with self.assertRaises(ValueError):
            tool.command(second, default=True)
        self.assertIs(tool.default, first)
        self.assertNotIn("second", tool.children)

    def testRootCannotBeDefault(self):
        def tool():
            pass

        with self.assertRaises(TypeError):
            command(tool, default=True)

    def testParentWithPositionalsCannotHaveChildren(self):
        @command
        def tool(source=Argument(), /):
            pass

        def child():
            pass

        with self.assertRaises(ValueError):
            tool.command(child)

    def testVersionOnlyOnRoot(self):
        @command
        def tool():
            pass

        def child():
            pass

        with self.assertRaises(ValueError):
            tool.command(child, version="1.0.0")

    def testCollidingNamesRejected(self):
        def same(first=Option("--name"), second=Option("--name")):
            pass

        def folded(first=Option("--Name"), second=Option("--name")):
            pass

        with self.assertRaises(ValueError):
            command(same)
        with self.assertRaises(ValueError):
            command(folded)

    def testSpecDeclaredTwiceRejected(self):
        shared = Option()

        def twice(first=Group({"name": shared}), second=Group({"name": shared})):
            pass

        with self.assertRaises((TypeError, ValueError)):
            command(twice)

    def testUnboundedPositionalMustBeLast(self):
        def tool(rest=Argument(nargs="*"), last=Argument(), /):
            pass

        with self.assertRaises(TypeError):
            command(tool)

    def testTreeSealedAfterParse(self):
        @command
        def tool():
            pass

        tool.parse([])

        def late():
            pass

        with self.assertRaises(TypeError):
            tool.command(late)

    def testCommandIsCallable(self):
        @command
        def add(left=Argument(type=int), right=Argument(type=int), /):
            return left + right

        self.assertEqual(add(2, 3), 5)

    def testReprShowsName(self):
        @command
        def tool():
            pass

        self.assertTrue(repr(tool).startswith("command(name='tool'"))

    def testDecoratorRejectsCommands(self):
        @command
        def tool():
            pass

        with self.assertRaises(TypeError):
            command()(tool)


class TestInvoke(TestCase):
    """Behavioral tests for invoke() and the process entry points."""

    def testInvokeWithString(self):
        @command
        def greet(name=Option(), *, loud=Flag()):
            return ("HELLO %s" if loud else "hello %s") % name

        self.assertEqual(invoke(greet, "--name 'big world' --loud"), "HELLO big world")

    def testInvokeWithList(self):
        @command
        def greet(name=Option()):
            return name

        self.assertEqual(invoke(greet, ["--name", ""]), "")

    def testInvokePlainCallable(self):
        def double(value=Argument(type=int), /):
            return value * 2

        self.assertEqual(invoke(double, ["21"]), 42)

    def testInvokeRaisesOutsideShell(self):
        @command
        def tool():
            pass

        with self.assertRaises(UnexpectedArgumentError):
            invoke(tool, ["extra"])

    def testInvokeRejectsNonCallables(self):
        with self.assertRaises(TypeError):
            invoke(42, [])

    def testParseRejectsNonStringItems(self):
        @command
        def tool():
            pass

        with self.assertRaises(TypeError):
            tool.parse(["--x", 3])

    def testParseAsRoot(self):
        @command
        def tool(name=Option()):
            pass

        @tool.command
        def child():
            pass

        self.assertIs(child.parse_as_root(["--name", "x", "child"]).command, child)

    def testMainExitsWithOneOnFailure(self):
        @command
        def tool():
            pass

        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            tool.main(["--bogus"])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("Usage: tool", stderr.getvalue())
        self.assertIn("--bogus", stderr.getvalue())

    def testMainExitsWithZeroOnHelp(self):
        @command
        def tool(name=Option(descr="Who to greet.")):
            pass

        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout), self.assertRaises(SystemExit) as context:
            tool.main(["--help"])
        self.assertEqual(context.exception.code, 0)
        self.assertIn("USAGE: tool --name <name>", stdout.getvalue())

    def testMainPrintsVersion(self):
        @command(version="3.1.4")
        def tool():
            pass

        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout), self.assertRaises(SystemExit) as context:
            tool.main(["--version"])
        self.assertEqual(context.exception.code, 0)
        self.assertEqual(stdout.getvalue().strip(), "3.1.4")

    def testMainRunsCallback(self):
        @command
        def tool(name=Option()):
            return name.upper()

        self.assertEqual(tool.main(["--name", "x"]), "X")

    def testShellCommandExitsThroughInvoke(self):
        @command(shell=True)
        def tool():
            pass

        with contextlib.redirect_stderr(io.StringIO()), self.assertRaises(SystemExit):
            invoke(tool, ["--bogus"])

    def testShellFlagInherited(self):
        @command(shell=True, colorful=True)
        def tool():
            pass

        @tool.command
        def child():
            pass

        self.assertTrue(child.shell)
        self.assertTrue(child.colorful)
        self.assertFalse(child.fancy)


class TestMessages(TestCase):
    """Behavioral tests for message() and trigger()."""

    def testMessageForEachKind(self):
        @command(version="1.0.0")
        def tool():
            pass

        self.assertEqual(tool.message(), tool.helptext())
        self.assertEqual(tool.message(tool), tool.helptext())
        self.assertEqual(tool.message(VersionRequest(tool)), "1.0.0")
        self.assertEqual(tool.message(HelpRequest(tool)), tool.helptext())
        with self.assertRaises(ParsingError) as context:
            tool.parse(["--nope"])
        self.assertEqual(tool.message(context.exception), str(context.exception))
        with self.assertRaises(TypeError):
            tool.message(42)

    def testTriggerKeepsAttributedCommand(self):
        @command
        def tool():
            pass

        @tool.command
        def child():
            pass

        with self.assertRaises(UnrecognizedOptionError) as context:
            tool.parse(["child", "--nope"])
        with self.assertRaises(UnrecognizedOptionError) as retriggered:
            tool.trigger(context.exception, hint="custom")
        self.assertIs(retriggered.exception.command, child)
        self.assertEqual(retriggered.exception.hint, "custom")

    def testTriggerAttributesBareFaults(self):
        @command
        def tool():
            pass

        with self.assertRaises(ParsingError) as context:
            tool.trigger(ParsingError("boom"))
        self.assertIs(context.exception.command, tool)


if __name__ == "__main__":
    unittest.main()
