"""
Tests for the internal helpers.

This module verifies:
- The Unset sentinel: singleton identity, falsy semantics, copying, pickling and
  finality.
- coalesce/freeze/mirror semantics.
- mglob expansion over a real package.
"""
import copy
import pickle
import unittest
from threading import Thread, Lock
from types import MappingProxyType
from unittest import TestCase

from commandeer.utils import *


class UnsetTest(TestCase):
    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsyAndRepr(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")
        self.assertNotEqual(Unset, None)

    def testCopyPickleIdentity(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy([Unset])[0], Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testUnionWithTypes(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance(Unset, Unset | None)
        self.assertNotIsInstance(None, str | Unset)

    def testThreadSafeConstruction(self):
        results = []
        lock = Lock()

        def worker():
            instance = UnsetType()
            with lock:
                results.append(instance)

        threads = [Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertTrue(all(instance is Unset for instance in results))

    def testFinal(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})


class HelpersTest(TestCase):
    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce("", "fallback"), "")
        self.assertIsNone(coalesce(None, "fallback"))

    def testFreeze(self):
        self.assertEqual(freeze([1, 2]), (1, 2))
        self.assertIsInstance(freeze({"a": 1}), MappingProxyType)
        self.assertEqual(freeze({1, 2}), frozenset({1, 2}))
        self.assertEqual(freeze("text"), "text")

    def testMirrorIsReadOnly(self):
        class Box:
            items = mirror("items")

            def __init__(self):
                self._items = [1, 2]

        box = Box()
        self.assertEqual(box.items, (1, 2))
        with self.assertRaises(AttributeError):
            box.items = ()

    def testRename(self):
        @rename("renamed")
        def original():
            pass

        self.assertEqual((original.__name__, original.__qualname__), ("renamed", "renamed"))
        with self.assertRaises(TypeError):
            rename(3)


class MglobTest(TestCase):
    def testConcretePatternUntouched(self):
        self.assertEqual(mglob("some.module"), ["some.module"])

    def testChildren(self):
        modules = mglob("commandeer.*")
        self.assertIn("commandeer.grammar", modules)
        self.assertIn("commandeer.dispatcher", modules)
        self.assertNotIn("commandeer", modules)
        self.assertEqual(modules, sorted(modules))

    def testCharacterClass(self):
        self.assertEqual(mglob("commandeer.[gh]*"), ["commandeer.grammar", "commandeer.handlers"])

    def testMissingPackage(self):
        self.assertEqual(mglob("commandeer_absent.*"), [])

    def testPatternValidation(self):
        with self.assertRaises(ValueError):
            mglob("*.commands")
        with self.assertRaises(TypeError):
            mglob(3)


if __name__ == "__main__":
    unittest.main()
