"""
Invocations module behavioral tests (namespaces, bound paths, callback calls).

Scope
- Validate Namespace attribute access, ancestor fallback, equality and iteration.
- Validate populate() for groups, defaults and list copies.
- Validate Invocation.arguments() and run() against the leaf callback.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argotree import command, Argument, Option, Flag, Group
from argotree.invocations import Namespace, populate


class TestNamespace(TestCase):
    """Behavioral tests for Namespace."""

    def testOwnValues(self):
        namespace = Namespace({"name": "x", "count": 2})
        self.assertEqual(namespace.name, "x")
        self.assertEqual(list(namespace), ["name", "count"])
        self.assertIn("count", namespace)
        self.assertEqual(vars(namespace), {"name": "x", "count": 2})

    def testAncestorFallback(self):
        parent = Namespace({"name": "x"})
        child = Namespace({"count": 2}, ancestor=parent)
        self.assertEqual(child.name, "x")
        self.assertNotIn("name", child)
        with self.assertRaises(AttributeError):
            child.missing

    def testEquality(self):
        self.assertEqual(Namespace({"a": 1}), Namespace({"a": 1}))
        self.assertNotEqual(Namespace({"a": 1}), Namespace({"a": 2}))
        with self.assertRaises(TypeError):
            hash(Namespace())

    def testRepr(self):
        self.assertEqual(repr(Namespace({"a": 1})), "namespace(a=1)")


class TestPopulate(TestCase):
    """Behavioral tests for populate()."""

    def testInitialValues(self):
        def tool(
                files=Argument(nargs="*"),
                /,
                name=Option(default="x"),
                level=Option(nargs="?"),
                *,
                verbose=Flag(counting=True),
                force=Flag(),
        ):
            pass

        namespace = populate(command(tool).layout, {})
        self.assertEqual(
            vars(namespace),
            {"files": [], "name": "x", "level": None, "verbose": 0, "force": False},
        )

    def testGroupsNest(self):
        group = Group({"host": Option(default="localhost")})
        namespace = populate({"network": group}, {})
        self.assertEqual(namespace.network, Namespace({"host": "localhost"}))

    def testListsAreCopied(self):
        spec = Option(nargs="*").__bind__("tags")
        values = {spec: ["a"]}
        namespace = populate({"tags": spec}, values)
        namespace.tags.append("b")
        self.assertEqual(values[spec], ["a"])


class TestInvocation(TestCase):
    """Behavioral tests for Invocation."""

    def testArgumentsFollowLayout(self):
        @command
        def tool(source=Argument(), /, name=Option(), *, force=Flag()):
            return source, name, force

        invocation = tool.parse(["--force", "--name", "n", "src"])
        self.assertEqual(invocation.arguments(), (("src", "n"), {"force": True}))
        self.assertEqual(invocation(), ("src", "n", True))

    def testGroupValuePassedAsNamespace(self):
        @command
        def tool(name=Option()):
            pass

        @tool.command
        def child(shared=Group(tool)):
            return shared

        invocation = tool.parse(["--name", "x", "child"])
        self.assertEqual(invocation.run(), Namespace({"name": "x"}))

    def testReprNamesThePath(self):
        @command
        def tool():
            pass

        @tool.command
        def child():
            pass

        self.assertEqual(repr(tool.parse(["child"])), "invocation(command='tool child', namespace=namespace())")


if __name__ == "__main__":
    unittest.main()
