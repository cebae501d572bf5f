import copy
import pickle
import unittest

from value_observers.cell import MutationCell
from value_observers.errors import BorrowError, BorrowMutError


class MutationCellTest(unittest.TestCase):
    def test_many_readers_allowed(self):
        cell = MutationCell([1])
        first = cell.borrow()
        second = cell.borrow()
        self.assertEqual(first.value, [1])
        self.assertEqual(second.value, [1])
        self.assertTrue(cell.is_borrowed)
        first.release()
        second.release()
        self.assertFalse(cell.is_borrowed)

    def test_read_while_writing_fails_fast(self):
        cell = MutationCell(0)
        writer = cell.borrow_mut()
        with self.assertRaises(BorrowError):
            cell.borrow()
        writer.release()
        with cell.borrow() as value:
            self.assertEqual(value, 0)

    def test_write_while_reading_fails_fast(self):
        cell = MutationCell(0)
        with cell.borrow():
            with self.assertRaises(BorrowMutError):
                cell.borrow_mut()
            with self.assertRaises(BorrowMutError):
                cell.replace(1)
        self.assertEqual(cell.replace(1), 0)

    def test_second_writer_fails_fast(self):
        cell = MutationCell(0)
        with cell.borrow_mut():
            with self.assertRaises(BorrowMutError):
                cell.borrow_mut()
            self.assertTrue(cell.is_mutably_borrowed)
            self.assertTrue(cell.is_borrowed)
        self.assertFalse(cell.is_mutably_borrowed)

    def test_write_view_assigns_and_mutates(self):
        cell = MutationCell([])
        with cell.borrow_mut() as view:
            view.value.append("a")
        with cell.borrow_mut() as view:
            view.value = view.value + ["b"]
        self.assertEqual(cell.into_inner(), ["a", "b"])

    def test_released_view_cannot_be_used(self):
        cell = MutationCell(3)
        view = cell.borrow()
        view.release()
        view.release()
        self.assertFalse(cell.is_borrowed)
        with self.assertRaises(BorrowError):
            _ = view.value

    def test_dropped_view_releases_borrow(self):
        cell = MutationCell(3)
        view = cell.borrow_mut()
        del view
        self.assertEqual(cell.replace(4), 3)

    def test_view_released_when_block_raises(self):
        cell = MutationCell(0)
        with self.assertRaises(KeyError):
            with cell.borrow_mut():
                raise KeyError("boom")
        self.assertFalse(cell.is_mutably_borrowed)

    def test_get_copy_is_detached(self):
        cell = MutationCell({"k": [1]})
        snapshot = cell.get_copy()
        snapshot["k"].append(2)
        with cell.borrow() as value:
            self.assertEqual(value, {"k": [1]})

    def test_pickle_and_copy_start_unborrowed(self):
        cell = MutationCell([1, 2])
        with cell.borrow():
            restored = pickle.loads(pickle.dumps(cell))
            duplicate = copy.deepcopy(cell)
        self.assertFalse(restored.is_borrowed)
        self.assertEqual(restored.into_inner(), [1, 2])
        self.assertEqual(duplicate.into_inner(), [1, 2])

    def test_pickle_while_writing_fails_fast(self):
        cell = MutationCell(1)
        with cell.borrow_mut():
            with self.assertRaises(BorrowError):
                pickle.dumps(cell)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
