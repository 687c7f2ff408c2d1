"""
Rendering behavioral tests (usage lines and help screens).

Scope
- Validate usage synopses for every spec kind and arity.
- Validate the exact plain-text help screens (sections, column alignment, built-ins).
- Validate help for shared groups, default children and shadowed built-ins.

Conventions
- Test method names follow CamelCase per project convention.
- Callbacks carry no docstrings unless the OVERVIEW section is under test.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from rich.panel import Panel

from argotree import command, Argument, Option, Flag, Group
from argotree.faults import HelpRequest
from argotree.rendering import COLUMN, render, synopsis, usage


def row(label, descr):
    return ("  " + label).ljust(COLUMN) + descr


class TestUsage(TestCase):
    """Behavioral tests for usage synopses."""

    def testSynopsisForms(self):
        @command
        def tool(
                source=Argument(),
                extra=Argument(nargs="?"),
                rest=Argument(nargs="*"),
                /,
                name=Option(),
                level=Option(default="info"),
                tags=Option(nargs="+"),
                *,
                verbose=Flag(counting=True),
                force=Flag(),
        ):
            pass

        layout = tool.layout
        self.assertEqual(synopsis(layout["source"]), "<source>")
        self.assertEqual(synopsis(layout["extra"]), "[<extra>]")
        self.assertEqual(synopsis(layout["rest"]), "[<rest> ...]")
        self.assertEqual(synopsis(layout["name"]), "--name <name>")
        self.assertEqual(synopsis(layout["level"]), "[--level <level>]")
        self.assertEqual(synopsis(layout["tags"]), "--tags <tags> ...")
        self.assertEqual(synopsis(layout["verbose"]), "[--verbose ...]")
        self.assertEqual(synopsis(layout["force"]), "[--force]")
        self.assertEqual(
            usage(tool),
            "tool --name <name> [--level <level>] --tags <tags> ... [--verbose ...] [--force]"
            " <source> [<extra>] [<rest> ...]",
        )

    def testHiddenSpecsAreOmitted(self):
        @command
        def tool(name=Option(), secret=Option(default="x", hidden=True)):
            pass

        self.assertEqual(usage(tool), "tool --name <name>")
        self.assertNotIn("--secret", tool.helptext())

    def testChildUsageIncludesPathAndSharedOptions(self):
        @command
        def foo(name=Option()):
            pass

        @foo.command
        def a(shared=Group(foo), bar=Option(type=int)):
            pass

        self.assertEqual(a.usage(), "foo a --name <name> --bar <bar>")
        self.assertEqual(foo.usage(), "foo --name <name> [<subcommand>]")


class TestHelpText(TestCase):
    """Behavioral tests for plain-text help screens."""

    def testParentHelp(self):
        @command
        def foo(name=Option()):
            pass

        @foo.command
        def a(shared=Group(foo), bar=Option(type=int)):
            pass

        @foo.command
        def b(baz=Option()):
            pass

        self.assertEqual(foo.helptext(), "\n".join([
            "USAGE: foo --name <name> [<subcommand>]",
            "",
            "OPTIONS:",
            "  --name <name>",
            row("-h, --help", "Show help information."),
            "",
            "SUBCOMMANDS:",
            "  a",
            "  b",
            "",
            "  See 'foo help <subcommand>' for detailed help.",
        ]))

    def testChildHelp(self):
        @command
        def foo(name=Option()):
            pass

        @foo.command
        def a(shared=Group(foo), bar=Option(type=int, descr="The bar value.")):
            pass

        self.assertEqual(a.helptext(), "\n".join([
            "USAGE: foo a --name <name> --bar <bar>",
            "",
            "OPTIONS:",
            "  --name <name>",
            row("--bar <bar>", "The bar value."),
            row("-h, --help", "Show help information."),
        ]))

    def testOverviewArgumentsAndDefaults(self):
        @command(version="2.0.0")
        def tool(
                path=Argument(descr="File to read."),
                /,
                times=Option(type=int, default=3, descr="Repeat count."),
                *,
                verbose=Flag(short=True, descr="Talk more."),
        ):
            """Read a file several times."""

        self.assertEqual(tool.helptext(), "\n".join([
            "OVERVIEW: Read a file several times.",
            "",
            "USAGE: tool [--times <times>] [--verbose] <path>",
            "",
            "ARGUMENTS:",
            row("<path>", "File to read."),
            "",
            "OPTIONS:",
            row("--times <times>", "Repeat count. (default: 3)"),
            row("-v, --verbose", "Talk more."),
            row("--version", "Show the version."),
            row("-h, --help", "Show help information."),
        ]))

    def testDefaultChildMarkerAndDescriptions(self):
        @command
        def tool():
            pass

        @tool.command(default=True)
        def run():
            """Run the project.

            Longer explanation that only the child's own help shows.
            """

        @tool.command(descr="List the targets.")
        def ls():
            pass

        screen = tool.helptext().splitlines()
        self.assertIn(row("run (default)", "Run the project."), screen)
        self.assertIn(row("ls", "List the targets."), screen)

    def testLongLabelsWrapToNextLine(self):
        @command
        def tool(configuration_directory=Option(descr="Where settings live.")):
            pass

        screen = tool.helptext().splitlines()
        index = screen.index("  --configuration-directory <configuration-directory>")
        self.assertEqual(screen[index + 1], " " * COLUMN + "Where settings live.")

    def testDeprecatedNote(self):
        @command
        def tool(*, legacy=Flag(descr="Old switch.", deprecated=True)):
            pass

        self.assertIn(row("--legacy", "Old switch. (deprecated)"), tool.helptext().splitlines())

    def testShadowedBuiltinShowsRemainingName(self):
        @command
        def tool(host=Option("-h", "--host", default="localhost")):
            pass

        screen = tool.helptext().splitlines()
        self.assertIn(row("--help", "Show help information."), screen)
        self.assertIn(row("-h, --host <host>", "(default: localhost)"), screen)

    def testHelpRequestMatchesHelptext(self):
        @command
        def tool(name=Option()):
            pass

        with self.assertRaises(HelpRequest) as context:
            tool.parse(["--help"])
        self.assertEqual(str(context.exception), tool.helptext())
        self.assertEqual(tool.message(context.exception), tool.helptext())

    def testFancyRenderIsAPanel(self):
        @command(fancy=True)
        def tool():
            pass

        self.assertIsInstance(render(tool, fancy=True, width=60), Panel)
        self.assertNotIsInstance(render(tool, width=60), Panel)


if __name__ == "__main__":
    unittest.main()
