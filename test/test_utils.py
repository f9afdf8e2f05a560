"""
Tests for the shared helpers.

This module verifies:
- Unset: singleton identity, falsy semantics, copies and pickles resolving
  to the same object, finality.
- coalesce: only Unset is replaced.
- rename: both call forms and their argument checks.
- mirror: read-only access and detached container copies.
"""
import copy
import pickle
import unittest
from unittest import TestCase

from arbor.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` sentinel.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the exported instance on every call.
        """
        self.assertIs(UnsetType(), Unset)

    def testFalsyButNotNone(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertEqual(repr(Unset), "Unset")

    def testCopiesKeepIdentity(self) -> None:
        """
        Copying or pickling the sentinel yields the sentinel itself.
        """
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})


class CoalesceTest(TestCase):

    def testReplacesUnset(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))

    def testKeepsFalsyValues(self) -> None:
        # None, "" and 0 are real values.
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce("", "fallback"), "")
        self.assertEqual(coalesce(0, 1), 0)


class RenameTest(TestCase):

    def testDirectForm(self) -> None:
        def original():
            pass

        self.assertIs(rename(original, "renamed"), original)
        self.assertEqual(original.__name__, "renamed")
        self.assertEqual(original.__qualname__, "renamed")

    def testDecoratorForm(self) -> None:
        @rename("decorated")
        def original():
            pass

        self.assertEqual(original.__name__, "decorated")

    def testInvalidArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename(object(), "name")
        with self.assertRaises(TypeError):
            rename(len, 1)
        with self.assertRaises(TypeError):
            rename()


class MirrorTest(TestCase):

    class Holder:
        items = mirror("items")
        text = mirror("text")

        def __init__(self):
            self._items = {"a": [1, 2]}
            self._text = "value"

    def testReadOnly(self) -> None:
        holder = self.Holder()
        self.assertEqual(holder.text, "value")
        with self.assertRaises(AttributeError):
            holder.text = "other"

    def testContainersAreDetached(self) -> None:
        """
        Mutating a mirrored container never reaches the backing field.
        """
        holder = self.Holder()
        holder.items["a"].append(3)
        holder.items["b"] = []
        self.assertEqual(holder.items, {"a": [1, 2]})

    def testRequiresName(self) -> None:
        with self.assertRaises(TypeError):
            mirror(1)


if __name__ == "__main__":
    unittest.main()
