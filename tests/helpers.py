import itertools
import operator
from collections import namedtuple
from datetime import datetime, timezone
from logging import getLogger, WARNING
from unittest import IsolatedAsyncioTestCase

from firemodel import DriverTypes, set_firestore, reset_firestore
from firemodel.model._util import dict_dup


class FiremodelTestCase(IsolatedAsyncioTestCase):
  """Registers a fresh in-memory :any:`FakeClient` for every test."""

  def setUp(self):
    super(FiremodelTestCase, self).setUp()

    # Turn off debug logging about unhandled events.
    getLogger("firemodel").setLevel(WARNING)

    self.client = FakeClient()
    set_firestore(self.client, FAKE_TYPES)

  def tearDown(self):
    reset_firestore()
    super(FiremodelTestCase, self).tearDown()

  def assert_raises(self, exception_class, action):
    """Like self.assertRaises and returns the exception too."""
    with self.assertRaises(exception_class) as cm:
      action()
    return cm.exception

  async def assert_raises_async(self, exception_class, awaitable):
    """Awaits :samp:`awaitable`, expecting :samp:`exception_class`, and returns the exception."""
    with self.assertRaises(exception_class) as cm:
      await awaitable
    return cm.exception


#region Fake driver

class FakeTimestamp(datetime):
  """Stands in for the driver's timestamp type, which is also a datetime subclass."""
  pass


class FakeGeoPoint(object):
  def __init__(self, latitude, longitude):
    self.latitude = latitude
    self.longitude = longitude

  def __eq__(self, other):
    return isinstance(other, FakeGeoPoint) and \
      (self.latitude, self.longitude) == (other.latitude, other.longitude)

  def __repr__(self):
    return "FakeGeoPoint(%s, %s)" % (self.latitude, self.longitude)


class FakeSnapshot(object):
  def __init__(self, reference, data, create_time=None, update_time=None):
    self.reference = reference
    self.id = reference.id
    self.exists = data is not None
    self._data = data
    self.create_time = create_time
    self.update_time = update_time

  def to_dict(self):
    return dict_dup(self._data) if self._data is not None else None


class FakeDocumentReference(object):
  def __init__(self, client, collection_path, document_id):
    self._client = client
    self._collection_path = collection_path
    self.id = document_id

  @property
  def path(self):
    return "%s/%s" % (self._collection_path, self.id)

  async def get(self):
    return self._snapshot()

  async def set(self, data, merge=False):
    self._client.writes.append(("set", self.path, dict_dup(data), merge))
    documents = self._client.documents(self._collection_path)
    now = FakeTimestamp.now(timezone.utc)
    record = documents.get(self.id)
    if record is None:
      record = documents[self.id] = {"data": {}, "create_time": now}
      stored = {}
    else:
      stored = record["data"] if merge else {}
    stored.update(dict_dup(data))
    record["data"] = stored
    record["update_time"] = now

  async def delete(self):
    self._client.writes.append(("delete", self.path, None, False))
    self._client.documents(self._collection_path).pop(self.id, None)

  def on_snapshot(self, callback):
    # Like the real watch, a missing document is reported with no snapshot at all.
    watch = FakeWatch(callback)
    snapshot = self._snapshot()
    watch.emit([snapshot] if snapshot.exists else [], [])
    return watch

  def _snapshot(self):
    record = self._client.documents(self._collection_path).get(self.id)
    if record is None:
      return FakeSnapshot(self, None)
    return FakeSnapshot(self, record["data"], record["create_time"], record["update_time"])

  def __eq__(self, other):
    return isinstance(other, FakeDocumentReference) and self.path == other.path

  def __repr__(self):
    return "FakeDocumentReference(%s)" % self.path


_OPERATORS = {
  "==": operator.eq,
  "!=": operator.ne,
  "<": operator.lt,
  "<=": operator.le,
  ">": operator.gt,
  ">=": operator.ge,
  "in": lambda value, options: value in options,
  "array-contains": lambda value, item: item in value,
}


class FakeQuery(object):
  def __init__(self, client, collection_path, filters=(), limit=None):
    self._client = client
    self._collection_path = collection_path
    self.filters = list(filters)
    self._limit = limit

  def where(self, key, op, value):
    return FakeQuery(self._client, self._collection_path, self.filters + [(key, op, value)], self._limit)

  def limit(self, count):
    return FakeQuery(self._client, self._collection_path, self.filters, count)

  async def get(self):
    return self._snapshots()

  def on_snapshot(self, callback):
    watch = FakeWatch(callback)
    snapshots = self._snapshots()
    watch.emit(snapshots, [FakeChange("ADDED", snapshot) for snapshot in snapshots])
    return watch

  def _snapshots(self):
    documents = self._client.documents(self._collection_path)
    snapshots = []
    for document_id in documents:
      record = documents[document_id]
      if all(self._matches(record["data"], *f) for f in self.filters):
        reference = FakeDocumentReference(self._client, self._collection_path, document_id)
        snapshots.append(
          FakeSnapshot(reference, record["data"], record["create_time"], record["update_time"]))
    if self._limit is not None:
      snapshots = snapshots[:self._limit]
    return snapshots

  @staticmethod
  def _matches(data, key, op, value):
    if key not in data:
      return False
    return _OPERATORS[op](data[key], value)


class FakeCollection(FakeQuery):
  _ids = itertools.count(1)

  def document(self, document_id=None):
    if document_id is None:
      document_id = "doc%d" % next(FakeCollection._ids)
    return FakeDocumentReference(self._client, self._collection_path, document_id)


_ChangeType = namedtuple("ChangeType", ["name"])


class FakeChange(object):
  def __init__(self, type_name, document):
    self.type = _ChangeType(type_name)
    self.document = document


class FakeWatch(object):
  """Returned by on_snapshot. Tests push further changes with :samp:`emit`."""

  def __init__(self, callback):
    self.callback = callback
    self.unsubscribed = False

  def emit(self, snapshots, changes):
    if not self.unsubscribed:
      self.callback(snapshots, changes, datetime.now(timezone.utc))

  def unsubscribe(self):
    self.unsubscribed = True


class FakeClient(object):
  """In-memory stand-in for a Firestore client."""

  def __init__(self):
    self.store = {}
    """Dict {collection_path: {document_id: {"data", "create_time", "update_time"}}}."""
    self.writes = []
    """Log of (operation, path, data, merge) tuples."""

  def collection(self, collection_path):
    return FakeCollection(self, collection_path)

  def documents(self, collection_path):
    return self.store.setdefault(collection_path, {})

  def put(self, collection_path, document_id, data):
    """Stores a document directly, bypassing any model."""
    now = FakeTimestamp.now(timezone.utc)
    self.documents(collection_path)[document_id] = \
      {"data": dict_dup(data), "create_time": now, "update_time": now}
    return FakeSnapshot(
      FakeDocumentReference(self, collection_path, document_id), dict_dup(data), now, now)


FAKE_TYPES = DriverTypes(
  snapshot=(FakeSnapshot,),
  reference=(FakeDocumentReference,),
  geopoint=(FakeGeoPoint,),
  timestamp=(FakeTimestamp,))

#endregion
