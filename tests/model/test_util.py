from unittest import TestCase

from firemodel import set_firestore
from firemodel.model._util import PathSet, dict_dup, get_path, set_path, mark_as_changed, \
  sub_paths, split_path

from ..helpers import FiremodelTestCase, FakeGeoPoint, FakeTimestamp, FakeDocumentReference, \
  FAKE_TYPES


class ModelUtilTest(TestCase):
  def test_dup(self):
    orig = {"a": 1, "b": {"c": [1, {"d": 2}]}}
    copy = dict_dup(orig)
    self.assertEqual(copy, orig)
    self.assertIsNot(copy, orig)
    self.assertIsNot(copy["b"]["c"], orig["b"]["c"])

  def test_get_path(self):
    self.assertEqual(get_path(["a", "b", "c"], {"a": {"b": {"c": 1}}}), 1)
    self.assertIsNone(get_path(["x", "y", "z"], {"x": {"y": 1}}))
    self.assertEqual(get_path(["x"], {}, default=5), 5)
    self.assertEqual(get_path(["a", "1", "b"], {"a": [0, {"b": 2}]}), 2)
    self.assertEqual(get_path(["a", 0], {"a": ["x"]}), "x")
    self.assertIsNone(get_path(["a", "3"], {"a": ["x"]}))
    self.assertIsNone(get_path(["a", "b"], {"a": ["x"]}))

  def test_set_path(self):
    data = {}
    set_path(["a", "b"], 1, data)
    self.assertEqual(data, {"a": {"b": 1}})

    # Missing and null parents are created.
    data = {"a": None}
    set_path(["a", "b"], 1, data)
    self.assertEqual(data, {"a": {"b": 1}})

    data = {"a": 3}
    self.assertRaises(TypeError, lambda: set_path(["a", "b"], 1, data))
    self.assertEqual(data, {"a": 3})

  def test_set_path_in_list(self):
    data = {"a": [{"b": 1}, 2]}
    set_path(["a", "0", "b"], 3, data)
    set_path(["a", 1], 4, data)
    self.assertEqual(data, {"a": [{"b": 3}, 4]})
    self.assertRaises(IndexError, lambda: set_path(["a", "2"], 5, data))
    self.assertRaises(IndexError, lambda: set_path(["a", "x"], 5, data))

  def test_split_path(self):
    self.assertEqual(split_path("a.b.c"), ["a", "b", "c"])
    self.assertEqual(split_path(("a", "b")), ["a", "b"])

  def test_mark_nested(self):
    changed = set()
    mark_as_changed(changed, {"a": {"b": 1, "c": 2}})
    self.assertEqual(changed, {"a", "a.b", "a.c"})

  def test_mark_ancestors(self):
    changed = set()
    mark_as_changed(changed, "hi", ["profile", "bio"])
    self.assertEqual(changed, {"profile", "profile.bio"})

  def test_mark_leaf_at_root(self):
    changed = set()
    mark_as_changed(changed, 3)
    self.assertEqual(changed, set())

  def test_mark_arrays(self):
    changed = set()
    mark_as_changed(changed, {"tags": ["x", {"y": 1}]})
    self.assertEqual(changed, {"tags", "tags.0", "tags.1", "tags.1.y"})

  def test_mark_is_presence_not_diff(self):
    changed = set()
    value = {"a": {"b": 1}}
    mark_as_changed(changed, value)
    first = set(changed)
    changed.clear()
    mark_as_changed(changed, value)
    self.assertEqual(changed, first)

  def test_sub_paths(self):
    paths = {"a", "a.b", "a.b.c", "ab.x", "d"}
    self.assertEqual(sub_paths(paths, "a"), {"b", "b.c"})
    self.assertEqual(sub_paths(paths, "d"), set())
    self.assertEqual(sub_paths(paths, "z"), set())


class PathSetTest(TestCase):
  def test_insertion_order(self):
    paths = PathSet()
    for path in ["c", "a", "b", "a"]:
      paths.add(path)
    self.assertEqual(list(paths), ["c", "a", "b"])
    self.assertEqual(len(paths), 3)

  def test_set_equality(self):
    self.assertEqual(PathSet(["a", "b"]), {"b", "a"})
    self.assertNotEqual(PathSet(["a"]), {"a", "b"})

  def test_discard(self):
    paths = PathSet(["a", "b"])
    paths.discard("a")
    paths.discard("nope")
    self.assertEqual(list(paths), ["b"])
    self.assertNotIn("a", paths)

  def test_repr(self):
    self.assertEqual(repr(PathSet(["x", "y"])), "PathSet(['x', 'y'])")


class MarkOpaqueTest(FiremodelTestCase):
  def test_driver_types_are_leaves(self):
    reference = self.client.collection("users").document("ann")
    changed = set()
    mark_as_changed(changed, {
      "home": FakeGeoPoint(1, 2),
      "seen": FakeTimestamp(2020, 1, 1),
      "friend": reference,
    })
    self.assertEqual(changed, {"home", "seen", "friend"})
    self.assertIsInstance(reference, FakeDocumentReference)

  def test_mapping_driver_types_are_not_walked(self):
    class MappingGeoPoint(dict):
      pass
    set_firestore(self.client, FAKE_TYPES._replace(geopoint=(MappingGeoPoint,)))

    changed = set()
    mark_as_changed(changed, {"home": MappingGeoPoint(latitude=1, longitude=2), "plain": {"x": 1}})
    self.assertEqual(changed, {"home", "plain", "plain.x"})
