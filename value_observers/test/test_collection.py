import pickle
import unittest

from value_observers.cell import MutationCell
from value_observers.errors import DuplicateObserverError, SnapshotFormatError
from value_observers.observers import (
    ExitKind,
    Observer,
    ObserverCollection,
    RefCellValueObserver,
    ValueObserver,
)
from value_observers.ownership import Slot


class RecordingObserver(Observer):
    def __init__(self, name, log):
        super().__init__(name)
        self.log = log

    def pre_exec(self, state, input):
        self.log.append((self.name, "pre", input))

    def post_exec(self, state, input, exit_kind):
        self.log.append((self.name, "post", exit_kind))


class ObserverCollectionTest(unittest.TestCase):
    def setUp(self):
        self.counter = Slot(0)
        self.trace = MutationCell([])
        self.collection = ObserverCollection([
            ValueObserver("counter", self.counter),
            RefCellValueObserver("trace", self.trace),
        ])

    def test_lookup_by_name(self):
        self.assertEqual(self.collection.names(), ["counter", "trace"])
        self.assertIn("counter", self.collection)
        self.assertIsInstance(self.collection["trace"], RefCellValueObserver)
        self.assertIsNone(self.collection.match_name("missing"))
        with self.assertRaises(KeyError):
            self.collection["missing"]
        self.assertEqual(len(self.collection), 2)

    def test_duplicate_name_rejected(self):
        with self.assertRaises(DuplicateObserverError):
            self.collection.add(ValueObserver("counter", Slot(1)))

    def test_hooks_run_in_insertion_order(self):
        log = []
        collection = ObserverCollection([RecordingObserver("a", log), RecordingObserver("b", log)])
        collection.pre_exec_all(None, b"in")
        collection.post_exec_all(None, b"in", ExitKind.OK)
        collection.pre_exec_child_all(None, b"in")
        collection.post_exec_child_all(None, b"in", ExitKind.OK)
        self.assertEqual(log, [
            ("a", "pre", b"in"), ("b", "pre", b"in"),
            ("a", "post", ExitKind.OK), ("b", "post", ExitKind.OK),
        ])

    def test_pre_exec_all_keeps_accumulated_values(self):
        self.counter.value = 3
        self.collection.pre_exec_all(None, None)
        self.assertEqual(self.collection["counter"].get_ref(), 3)

    def test_hashes_track_content(self):
        before = self.collection.hashes()
        combined = self.collection.combined_hash()
        self.assertEqual(set(before), {"counter", "trace"})
        self.counter.value += 1
        after = self.collection.hashes()
        self.assertNotEqual(before["counter"], after["counter"])
        self.assertEqual(before["trace"], after["trace"])
        self.assertNotEqual(combined, self.collection.combined_hash())

    def test_base_observer_has_no_hash(self):
        collection = ObserverCollection([RecordingObserver("r", [])])
        self.assertEqual(collection.hashes(), {"r": None})
        self.assertIsInstance(collection.combined_hash(), int)

    def test_base_observer_serialises_without_kind(self):
        collection = ObserverCollection([RecordingObserver("r", [])])
        payload = collection.to_dict()
        self.assertEqual(payload, {"observers": [{"name": "r", "hash": None}]})
        with self.assertRaises(SnapshotFormatError):
            ObserverCollection.from_dict(payload)

    def test_dict_round_trip_owns_everything(self):
        self.counter.value = 5
        with self.trace.borrow_mut() as view:
            view.value.extend([1, 2])
        restored = ObserverCollection.from_dict(self.collection.to_dict())
        self.assertEqual(restored.names(), ["counter", "trace"])
        self.assertTrue(all(observer.is_owned for observer in restored))
        self.assertEqual(restored.hashes(), self.collection.hashes())
        self.counter.value = 6
        self.assertEqual(restored["counter"].get_ref(), 5)

    def test_pickle_round_trip(self):
        restored = pickle.loads(pickle.dumps(self.collection))
        self.assertEqual(restored.hashes(), self.collection.hashes())
        self.assertTrue(restored["counter"].is_owned)

    def test_from_dict_rejects_bad_payload(self):
        with self.assertRaises(SnapshotFormatError):
            ObserverCollection.from_dict({"observers": "nope"})
        with self.assertRaises(SnapshotFormatError):
            ObserverCollection.from_dict({"observers": [{"kind": "map", "name": "x", "value": 1}]})
        with self.assertRaises(SnapshotFormatError):
            ObserverCollection.from_dict({"observers": [{"kind": "value", "value": 1}]})


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
