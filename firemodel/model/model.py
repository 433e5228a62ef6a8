import logging
from collections import namedtuple
from datetime import datetime, timezone

from .._json import to_json
from .._util import resolve
from ..errors import StructureError
from ..firestore import get_firestore
from .hooks import registry
from .schema import Schema
from ._util import PathSet, dict_dup, get_path, mark_as_changed, set_path, split_path

logger = logging.getLogger(__name__)

Where = namedtuple("Where", ["key", "op", "value"])
"""An extra :samp:`where` clause for :any:`Model.get_all_by`, e.g. :samp:`Where("age", ">=", 18)`."""


class _ModelMetaClass(type):
  """
  Checks every Model subclass when it is defined and registers it in :any:`registry`.
  A subclass setting neither :samp:`__collection_path__` nor :samp:`__schema__` is abstract.
  """

  def __init__(cls, name, bases, dct):
    # pylint: disable=bad-mcs-method-argument
    super(_ModelMetaClass, cls).__init__(name, bases, dct)

    collection_path = getattr(cls, "__collection_path__", None)
    schema = getattr(cls, "__schema__", None)
    if collection_path is None and schema is None:
      return

    if collection_path is None:
      raise StructureError("%s must define __collection_path__." % name)
    if not isinstance(collection_path, str):
      raise StructureError("%s's __collection_path__ must be a string." % name)
    if schema is None:
      raise StructureError("%s must define __schema__." % name)
    if not isinstance(schema, Schema):
      raise StructureError("%s's __schema__ must be an instance of Schema." % name)

    registry.register(cls, collection_path, schema)


class Model(metaclass=_ModelMetaClass):
  """
  Base class for all models.

  A model binds a collection to a :any:`Schema`. The basic format is::

    class User(Model):
      __collection_path__ = "users"
      __schema__ = schema({
        "name": field("Name").string().required(),
        "age": field("Age").integer().optional(),
      })

    user = await User.create({"name": "Ann"})
    user.set("age", 31)
    await user.save()

  Values are read and written with :any:`get` and :any:`set`.
  :any:`set` records the changed paths; :any:`save` then re-validates only those
  and runs the hooks registered for them.

  A database client must be registered with :any:`set_firestore` first.
  """

  #: Path of the collection in the database.
  #: If neither this nor :samp:`__schema__` is set, this is an abstract class.
  __collection_path__ = None

  #: :any:`Schema` of the documents.
  __schema__ = None

  def __init__(self, snapshot, data=None):
    """
    :param snapshot: Driver document snapshot this instance is loaded from.
    :param data:
      Initial data. If given, every path in it is marked as changed;
      otherwise the snapshot's data is used and nothing is marked.
    """
    cls = self.__class__
    if cls.is_abstract():
      raise StructureError("%s can't be used directly and must be extended instead." % cls.__name__)
    if not isinstance(snapshot, get_firestore().types.snapshot):
      raise TypeError("%s must be constructed with a document snapshot, got: %s" % (cls.__name__, snapshot))

    self._snapshot = snapshot
    self._changed_paths = PathSet()
    if data is None:
      self._data = snapshot.to_dict() or {}
    else:
      self._data = data
      mark_as_changed(self._changed_paths, data)

  #region Common properties
  @property
  def id(self):
    """ID of the document."""
    return self._snapshot.id

  @property
  def created_at(self):
    """Creation time as an ISO 8601 string. The current time if the document was never saved."""
    create_time = self._snapshot.create_time
    if create_time is None:
      return datetime.now(timezone.utc).isoformat()
    return _iso_format(create_time)

  @property
  def updated_at(self):
    """Last update time as an ISO 8601 string, or None."""
    update_time = self._snapshot.update_time
    if update_time is None:
      return None
    return _iso_format(update_time)

  @property
  def collection_path(self):
    return self.__class__.__collection_path__

  @property
  def doc_ref(self):
    """Driver reference of this document."""
    return self.__class__.collection_ref().document(self.id)

  @property
  def data(self):
    """The current document data. Change it with :any:`set` so the change is tracked."""
    return self._data

  @property
  def changed_paths(self):
    """Copy of the paths changed since the last successful :any:`parse_data`."""
    return PathSet(self._changed_paths)
  #endregion

  #region Data access
  def get(self, path, default=None):
    """
    Value at a dot path, e.g. :samp:`user.get("profile.bio")`.
    :samp:`default` if the path doesn't exist.
    """
    return get_path(split_path(path), self._data, default)

  def set(self, path, value):
    """
    Sets the value at a dot path (or list of keys), creating parent objects as needed,
    and marks the path and everything inside :samp:`value` as changed.
    Numeric segments index into existing arrays, e.g. :samp:`user.set("tags.0", "x")`.
    """
    keys = split_path(path)
    set_path(keys, value, self._data)
    mark_as_changed(self._changed_paths, value, keys)
    return self
  #endregion

  #region Hooks and events
  @classmethod
  def prehook(cls, path, callback):
    """
    Adds :samp:`callback(data, instance)`, run before validation when :samp:`path` has changed.
    It may be a coroutine function.
    """
    cls._definition().prehooks.add(path, callback)

  @classmethod
  def posthook(cls, path, callback):
    """
    Adds :samp:`callback(data, instance)`, run after validation when :samp:`path` has changed.
    It may be a coroutine function.
    """
    cls._definition().posthooks.add(path, callback)

  @classmethod
  def on(cls, event, callback):
    """Subscribes :samp:`callback(instance)` to "created", "updated" or "deleted"."""
    cls._definition().events.on(event, callback)

  async def emit(self, event):
    """Calls the listeners of :samp:`event`."""
    await self.__class__._definition().events.dispatch(event, self)
  #endregion

  #region Persistence
  @classmethod
  async def create(cls, data=None):
    """Validates :samp:`data` against the whole schema and stores it as a new document."""
    # pylint: disable=protected-access
    if data is None:
      data = {}
    snapshot = await resolve(cls.collection_ref().document().get())

    instance = cls(snapshot, data)
    instance._data = await instance.parse_data(data, True)

    logger.debug("Creating %s/%s", cls.__collection_path__, instance.id)
    await resolve(instance.doc_ref.set(instance._data))

    await instance.emit("created")
    return instance

  async def save(self, merge=False):
    """
    Validates the changed paths and writes the document.

    :param merge: Passed to the driver's :samp:`set`; True or a list of field paths merges
      into the stored document instead of overwriting it.
    """
    data = await self.parse_data()

    logger.debug("Saving %s/%s", self.collection_path, self.id)
    await resolve(self.doc_ref.set(data, merge=merge))
    self._data = data

    await self.emit("updated")
    return self

  async def delete(self):
    """Deletes the document. The local data stays readable."""
    logger.debug("Deleting %s/%s", self.collection_path, self.id)
    await resolve(self.doc_ref.delete())

    await self.emit("deleted")

  async def validate(self, data=None, all=False):
    """
    Validates :samp:`data` without running hooks or saving.

    :param all: If true, every field is validated; otherwise only the changed paths.
    """
    # pylint: disable=redefined-builtin
    if data is None:
      data = {}
    schema = self.__class__._definition().schema
    if all:
      return await schema.validate(data)
    return await schema.validate_selected(data, self._changed_paths)

  async def run_hooks(self, hooks, data=None):
    """Runs the :any:`HookRegistry` callbacks of every changed path on :samp:`data`."""
    if data is None:
      data = {}
    if hooks is None:
      return data
    await hooks.run(self._changed_paths, data, self)
    return data

  async def parse_data(self, data=None, all=False):
    """
    Pre-hooks, validation, post-hooks; then forgets the changed paths.

    :param data: Defaults to the current data.
    :param all: Validate every field instead of only the changed ones.
    :return: Validated data.
    """
    # pylint: disable=redefined-builtin
    if data is None:
      data = self._data
    definition = self.__class__._definition()

    data = await self.run_hooks(definition.prehooks, data)
    data = await self.validate(data, all)
    data = await self.run_hooks(definition.posthooks, data)

    self._changed_paths = PathSet()
    return data
  #endregion

  #region Queries
  @classmethod
  def collection_ref(cls):
    """Driver reference of the model's collection."""
    return get_firestore().client.collection(cls._definition().collection_path)

  @classmethod
  async def get_by_id(cls, document_id):
    """The document with id :samp:`document_id`, or None if it doesn't exist."""
    snapshot = await resolve(cls.collection_ref().document(document_id).get())
    if not snapshot.exists:
      return None
    return cls(snapshot)

  @classmethod
  async def get_by(cls, key, value):
    """The first document whose :samp:`key` equals :samp:`value`, or None."""
    snapshots = list(await resolve(cls._where(key, value).limit(1).get()))
    if not snapshots:
      return None
    return cls(snapshots[0])

  @classmethod
  async def get_all_by(cls, key, value, modifiers=None):
    """
    Every document whose :samp:`key` equals :samp:`value`.

    :param modifiers: Extra :any:`Where` clauses (or 3-tuples) chained onto the query.
    """
    snapshots = await resolve(cls._where(key, value, modifiers).get())
    return [cls(snapshot) for snapshot in snapshots]

  @classmethod
  def get_by_id_subscribe(cls, document_id, callback):
    """
    Calls :samp:`callback(instance)` on every change to the document,
    with None when it doesn't exist.

    :return: The driver's watch; call :samp:`unsubscribe()` on it to stop.
    """
    def on_snapshot(snapshots, _changes, _read_time):
      # The driver sends no snapshot at all once the document is missing.
      if not snapshots:
        callback(None)
      for snapshot in snapshots:
        callback(cls(snapshot) if snapshot.exists else None)

    return cls.collection_ref().document(document_id).on_snapshot(on_snapshot)

  @classmethod
  def get_by_subscribe(cls, key, value, callback):
    """
    Like :any:`get_all_by_subscribe` without modifiers.
    """
    return cls.get_all_by_subscribe(key, value, None, callback)

  @classmethod
  def get_all_by_subscribe(cls, key, value, modifiers, callback):
    """
    Calls :samp:`callback(results, removed, added, modified)` on every change to the query results.
    Each argument is a list of instances.

    :return: The driver's watch; call :samp:`unsubscribe()` on it to stop.
    """
    def on_snapshot(snapshots, changes, _read_time):
      cls._query_subscription_callback(snapshots, changes, callback)

    return cls._where(key, value, modifiers).on_snapshot(on_snapshot)

  @classmethod
  def _query_subscription_callback(cls, snapshots, changes, callback):
    removed = []
    added = []
    modified = []
    for change in changes:
      change_type = change.type.name
      if change_type == "REMOVED":
        removed.append(cls(change.document))
      elif change_type == "ADDED":
        added.append(cls(change.document))
      elif change_type == "MODIFIED":
        modified.append(cls(change.document))
    results = [cls(snapshot) for snapshot in snapshots]
    callback(results, removed, added, modified)
  #endregion

  #region Serialization
  def to_dict(self):
    """Copy of the current data, for API responses."""
    return dict_dup(self._data)

  def to_json(self, pretty=False):
    return to_json(self._data, pretty=pretty)
  #endregion

  #region Standard methods
  def __eq__(self, other):
    # pylint: disable=protected-access
    return self is other or \
      (isinstance(other, Model) and self.__class__ == other.__class__ and
       self.id == other.id and self._data == other._data)

  def __ne__(self, other):
    return not self == other

  __hash__ = None

  def __repr__(self):
    fields = ["%s=%r" % (key, value) for key, value in self._data.items()]
    return "%s(id=%s, %s)" % (self.__class__.__name__, self.id, ", ".join(fields))
  #endregion

  #region Class methods
  @classmethod
  def is_abstract(cls):
    """A Model class is abstract if it is not in the registry."""
    return cls not in registry

  @classmethod
  def _definition(cls):
    return registry.lookup(cls)

  @classmethod
  def _where(cls, key, value, modifiers=None):
    query = cls.collection_ref().where(key, "==", value)
    for modifier in modifiers or ():
      modifier_key, op, modifier_value = modifier
      query = query.where(modifier_key, op, modifier_value)
    return query
  #endregion


def _iso_format(time):
  if hasattr(time, "isoformat"):
    return time.isoformat()
  # protobuf-style Timestamp
  return datetime.fromtimestamp(time.seconds, timezone.utc).isoformat()
