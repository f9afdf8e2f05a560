"""
Command tree registration tests (add, child lookup, concurrency).

Scope
- Validate every rejection of Command.add, its fault type and message.
- Validate the check order when several problems apply at once.
- Validate that a rejected add leaves the tree untouched.
- Validate concurrent registrations and lookups.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import threading
import unittest
from unittest import TestCase

from arbor import Command
from arbor.faults import (
    AlreadyParentedError,
    CycleDetectedError,
    DefinitionError,
    DuplicateNameError,
    InvalidChildError,
    MissingNameError,
)


class TestAdd(TestCase):
    """Rejections raised while wiring a tree."""

    def setUp(self):
        self.app = Command("failing-app")
        self.app.add(Command("hello"))

    def assertRejected(self, child, kind, message):
        with self.assertRaises(kind) as context:
            self.app.add(child)
        self.assertEqual(str(context.exception), message)
        self.assertIs(context.exception.command, self.app)
        return context.exception

    def testAddingANilCommand(self):
        self.assertRejected(None, InvalidChildError, "command 'failing-app': adding a nil command (None)")

    def testNonCommandIsAlsoATypeError(self):
        with self.assertRaises(TypeError):
            self.app.add("hello")

    def testCommandWithoutAName(self):
        self.assertRejected(Command(""), MissingNameError, "command 'failing-app': adding a command without usage")

    def testCommandWithoutNameSpaces(self):
        self.assertRejected(Command("    "), MissingNameError, "command 'failing-app': adding a command without usage")

    def testRepeatedCommand(self):
        self.assertRejected(
            Command("hello"),
            DuplicateNameError,
            "command 'failing-app': adding 'hello': command name already in use",
        )

    def testRepeatedCommandCaps(self):
        self.assertRejected(
            Command("HELLO"),
            DuplicateNameError,
            "command 'failing-app': adding 'hello': command name already in use",
        )

    def testCommandWithOtherParent(self):
        other = Command("other")
        used = other.add(Command("used"))
        self.assertRejected(
            used,
            AlreadyParentedError,
            "command 'failing-app': adding 'used': command has another parent: 'other'",
        )
        self.assertIs(used.parent, other)

    def testAddingCommandToItself(self):
        loop = Command("loop")
        with self.assertRaises(CycleDetectedError) as context:
            loop.add(loop)
        self.assertEqual(
            str(context.exception),
            "command 'loop': adding 'loop': adding a command to itself or its children",
        )

    def testAddingCommandToItsChildren(self):
        loop = Command("loop")
        parent = Command("parent")
        parent.add(loop)
        with self.assertRaises(CycleDetectedError) as context:
            loop.add(parent)
        self.assertEqual(
            str(context.exception),
            "command 'parent loop': adding 'parent': adding a command to itself or its children",
        )

    def testAddingAnAncestorAtDepth(self):
        root = Command("root")
        leaf = root.add(Command("a")).add(Command("b")).add(Command("c"))
        with self.assertRaises(CycleDetectedError):
            leaf.add(root)
        self.assertIsNone(root.parent)

    def testCycleIsCheckedBeforeTheName(self):
        # A nameless command added to itself is reported as a cycle.
        nameless = Command("")
        with self.assertRaises(CycleDetectedError):
            nameless.add(nameless)

    def testDuplicateIsCheckedBeforeTheParent(self):
        other = Command("other")
        hello = other.add(Command("hello"))
        with self.assertRaises(DuplicateNameError):
            self.app.add(hello)

    def testDefinitionErrorsAreValueErrors(self):
        with self.assertRaises(ValueError):
            self.app.add(Command("hello"))
        with self.assertRaises(DefinitionError):
            self.app.add(Command(""))

    def testRejectionLeavesTreeUntouched(self):
        before = self.app.children
        with self.assertRaises(DuplicateNameError):
            self.app.add(Command("Hello"))
        self.assertEqual(self.app.children, before)

    def testAddReturnsChild(self):
        child = Command("child")
        self.assertIs(self.app.add(child), child)
        self.assertIs(child.parent, self.app)


class TestLookup(TestCase):
    """Child lookup by name."""

    def testCaseInsensitive(self):
        app = Command("app")
        hello = app.add(Command("Hello [--utf8]"))
        self.assertEqual(hello.name, "hello")
        self.assertIs(app.child("HELLO"), hello)
        self.assertIs(app.child("hello"), hello)

    def testMissing(self):
        app = Command("app")
        self.assertIsNone(app.child("missing"))
        self.assertIsNone(app.child(""))
        self.assertFalse(app.has_children())


class TestConcurrentRegistration(TestCase):
    """Registrations from several threads."""

    def testEveryDistinctNameIsAdded(self):
        app = Command("app")
        names = [f"child{index}" for index in range(64)]
        threads = [threading.Thread(target=app.add, args=(Command(name),)) for name in names]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(sorted(app.children), sorted(names))

    def testOnlyOneOfCompetingDuplicatesWins(self):
        app = Command("app")
        barrier = threading.Barrier(8, timeout=10)
        outcomes = []

        def register(child):
            barrier.wait()
            try:
                app.add(child)
            except DuplicateNameError:
                outcomes.append("rejected")
            else:
                outcomes.append("added")

        threads = [threading.Thread(target=register, args=(Command("same"),)) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sorted(outcomes), ["added"] + ["rejected"] * 7)

    def testSameChildUnderCompetingParents(self):
        child = Command("child")
        parents = [Command(f"parent{index}") for index in range(8)]
        barrier = threading.Barrier(len(parents), timeout=10)
        added = []

        def register(parent):
            barrier.wait()
            try:
                parent.add(child)
            except AlreadyParentedError:
                pass
            else:
                added.append(parent)

        threads = [threading.Thread(target=register, args=(parent,)) for parent in parents]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(added), 1)
        self.assertIs(child.parent, added[0])


if __name__ == "__main__":
    unittest.main()
