"""Unit tests for the bounded active-node queue."""

from __future__ import annotations

import unittest

from epicascade.active_set import ActiveSet


class TestFifoOrder(unittest.TestCase):

    def test_pop_returns_push_order(self):
        q = ActiveSet(5)
        for node in (4, 0, 3):
            q.push(node)
        self.assertEqual([q.pop(), q.pop(), q.pop()], [4, 0, 3])
        self.assertTrue(q.is_empty())

    def test_wrap_around_keeps_order(self):
        q = ActiveSet(3)
        out = []
        for start in range(0, 12, 2):
            q.push(start)
            q.push(start + 1)
            out.append(q.pop())
            out.append(q.pop())
        self.assertEqual(out, list(range(12)))

    def test_len_tracks_contents(self):
        q = ActiveSet(4)
        self.assertEqual(len(q), 0)
        q.push(1); q.push(2); q.push(3)
        self.assertEqual(len(q), 3)
        q.pop()
        q.push(4); q.push(5)
        self.assertEqual(len(q), 4)


class TestCapacity(unittest.TestCase):

    def test_full_after_capacity_pushes(self):
        q = ActiveSet(3)
        self.assertEqual(q.capacity, 3)
        for node in range(3):
            self.assertFalse(q.is_full())
            q.push(node)
        self.assertTrue(q.is_full())
        self.assertFalse(q.is_empty())

    def test_push_when_full_raises(self):
        q = ActiveSet(2)
        q.push(0); q.push(1)
        with self.assertRaises(OverflowError):
            q.push(2)

    def test_pop_when_empty_raises(self):
        q = ActiveSet(2)
        with self.assertRaises(IndexError):
            q.pop()
        q.push(7)
        q.pop()
        with self.assertRaises(IndexError):
            q.pop()

    def test_zero_capacity_is_empty_and_full(self):
        q = ActiveSet(0)
        self.assertTrue(q.is_empty())
        self.assertTrue(q.is_full())

    def test_negative_capacity_raises(self):
        with self.assertRaises(ValueError):
            ActiveSet(-1)


if __name__ == "__main__":
    unittest.main()
