"""
Validation chain behavioral tests (per-node hooks, root to leaf).

Scope
- Validate hook ordering along the resolved path.
- Validate failure reporting: returned values and raised exceptions become
  ValidationFailure with the hook's error verbatim, and deeper hooks never run.
- Validate that hooks may adjust their own node's values.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argotree import command, Option, Flag, Group
from argotree.faults import HelpRequest, ValidationFailure


def tree(order, failing=None):
    @command
    def base(base_flag=Option(type=int, default=0)):
        pass

    @base.command
    def sub(shared=Group(base), sub_flag=Option(type=int, default=0)):
        pass

    @sub.command
    def sub_sub(shared=Group(sub), sub_sub_flag=Option(type=int, default=0)):
        pass

    @base.validator
    def check_base(namespace):
        order.append("base")
        if failing == "base":
            return "base-flag must be positive"

    @sub.validator
    def check_sub(namespace):
        order.append("sub")
        if failing == "sub" and namespace.sub_flag <= 0:
            raise ValueError("sub-flag must be positive")

    @sub_sub.validator
    def check_sub_sub(namespace):
        order.append("sub-sub")
        return True

    return base, sub, sub_sub


class TestValidationChain(TestCase):
    """Behavioral tests for the validation chain."""

    def testHooksRunRootToLeaf(self):
        order = []
        base, sub, sub_sub = tree(order)
        base.parse(["--base-flag", "1", "sub", "--sub-flag", "2", "sub-sub", "--sub-sub-flag", "3"])
        self.assertEqual(order, ["base", "sub", "sub-sub"])

    def testOnlyPathHooksRun(self):
        order = []
        base, sub, sub_sub = tree(order)
        base.parse(["sub"])
        self.assertEqual(order, ["base", "sub"])

    def testReturnedErrorStopsTheChain(self):
        order = []
        base, sub, sub_sub = tree(order, failing="base")
        with self.assertRaises(ValidationFailure) as context:
            base.parse(["sub", "sub-sub"])
        self.assertEqual(order, ["base"])
        self.assertEqual(context.exception.error, "base-flag must be positive")
        self.assertIs(context.exception.command, base)
        self.assertEqual(str(context.exception), "validation failed for 'base': base-flag must be positive")

    def testRaisedErrorIsKeptVerbatim(self):
        order = []
        base, sub, sub_sub = tree(order, failing="sub")
        with self.assertRaises(ValidationFailure) as context:
            base.parse(["sub", "--sub-flag", "0", "sub-sub"])
        self.assertEqual(order, ["base", "sub"])
        self.assertIsInstance(context.exception.error, ValueError)
        self.assertIs(context.exception.__cause__, context.exception.error)
        self.assertIs(context.exception.command, sub)

    def testHookMayAdjustValues(self):
        @command
        def tool(name=Option(default="")):
            return name

        @tool.validator
        def strip(namespace):
            namespace.name = namespace.name.strip()

        self.assertEqual(tool.parse(["--name", "  x  "]).run(), "x")

    def testValidatorRegisteredOnce(self):
        @command
        def tool():
            pass

        tool.validator(lambda namespace: None)
        with self.assertRaises(TypeError):
            tool.validator(lambda namespace: None)
        with self.assertRaises(TypeError):
            command(lambda: None).validator(42)

    def testHooksSkippedOnHelp(self):
        order = []
        base, sub, sub_sub = tree(order)
        with self.assertRaises(HelpRequest):
            base.parse(["sub", "--help"])
        self.assertEqual(order, [])

    def testStringOptionsAndLeafFlag(self):
        order = []

        @command
        def base(base_flag=Option()):
            pass

        @base.command
        def sub(shared=Group(base), sub_flag=Option()):
            pass

        @sub.command
        def subsub(shared=Group(sub), *, sub_sub_flag=Flag()):
            pass

        base.validator(lambda namespace: order.append(namespace.base_flag))
        sub.validator(lambda namespace: order.append(namespace.sub_flag))

        invocation = base.parse(["--base-flag", "base", "sub", "--sub-flag", "sub", "subsub", "--sub-sub-flag"])
        self.assertIs(invocation.command, subsub)
        self.assertTrue(invocation.sub_sub_flag)
        self.assertEqual(order, ["base", "sub"])

    def testFlagsSeenByHooks(self):
        seen = []

        @command
        def tool(*, dry_run=Flag()):
            pass

        @tool.validator
        def record(namespace):
            seen.append(namespace.dry_run)

        tool.parse(["--dry-run"])
        self.assertEqual(seen, [True])


if __name__ == "__main__":
    unittest.main()
