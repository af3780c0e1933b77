"""
Handler cache tests (get-or-create-once, factories, concurrency).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import time
import unittest
from threading import Barrier, Lock, Thread
from unittest import TestCase

from commandeer import HandlerCache


class Warps:
    pass


class TestHandlerCache(TestCase):
    def testResolveCreatesOnce(self):
        cache = HandlerCache()
        first = cache.resolve(Warps)
        self.assertIsInstance(first, Warps)
        self.assertIs(cache.resolve(Warps), first)
        self.assertIn(Warps, cache)
        self.assertEqual(len(cache), 1)

    def testClear(self):
        cache = HandlerCache()
        first = cache.resolve(Warps)
        cache.clear()
        self.assertNotIn(Warps, cache)
        self.assertIsNot(cache.resolve(Warps), first)

    def testCustomFactory(self):
        calls = []

        def factory(owner):
            calls.append(owner)
            return "instance of " + owner.__name__

        cache = HandlerCache(factory)
        self.assertEqual(cache.resolve(Warps), "instance of Warps")
        cache.resolve(Warps)
        self.assertEqual(calls, [Warps])

    def testFactoryFailureNotCached(self):
        def factory(owner):
            raise RuntimeError("database offline")

        cache = HandlerCache(factory=factory)
        with self.assertRaises(RuntimeError):
            cache.resolve(Warps)
        self.assertNotIn(Warps, cache)

    def testOwnerMustBeClass(self):
        with self.assertRaises(TypeError):
            HandlerCache().resolve(Warps())

    def testFactoryMustBeCallable(self):
        with self.assertRaises(TypeError):
            HandlerCache(factory="Warps")

    def testConcurrentFirstUseBuildsOneInstance(self):
        created = []
        lock = Lock()
        barrier = Barrier(16)

        class Slow:
            def __init__(self):
                time.sleep(0.01)
                with lock:
                    created.append(self)

        cache = HandlerCache()
        results = []

        def worker():
            barrier.wait()
            instance = cache.resolve(Slow)
            with lock:
                results.append(instance)

        threads = [Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(created), 1)
        self.assertEqual(len(results), 16)
        self.assertTrue(all(instance is created[0] for instance in results))


if __name__ == "__main__":
    unittest.main()
