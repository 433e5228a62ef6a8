"""
Per-model registries of hooks and lifecycle listeners.

Each concrete :any:`Model` class gets one :any:`ModelDefinition` in :any:`registry`
when the class is created. Hooks and listeners are added to it by explicit
:any:`Model.prehook`, :any:`Model.posthook` and :any:`Model.on` calls,
normally at import time, before any document is loaded or saved.
"""
from weakref import WeakKeyDictionary

from .._util import async_for_each
from ..errors import StructureError
from .events import EventDispatcher


class HookRegistry(object):
  """Ordered callbacks keyed by dot path."""

  def __init__(self):
    self._hooks = {}

  def add(self, path, callback):
    if not isinstance(path, str):
      raise TypeError("Hook path must be a string, got: %s" % (path,))
    if not callable(callback):
      raise TypeError("Hook for `%s` is not callable." % path)
    self._hooks.setdefault(path, []).append(callback)

  def get(self, path):
    """Callbacks for exactly :samp:`path`, in registration order."""
    return list(self._hooks.get(path, ()))

  async def run(self, changed_paths, data, instance):
    """
    For each path in :samp:`changed_paths` that has callbacks,
    awaits :samp:`callback(data, instance)` for each of them in turn.
    Callbacks share :samp:`data`, so later ones see what earlier ones changed.
    """
    # Snapshot: hooks may mark more paths while running.
    for path in list(changed_paths):
      callbacks = self._hooks.get(path)
      if callbacks:
        await async_for_each(list(callbacks), lambda callback: callback(data, instance))

  def __contains__(self, path):
    return path in self._hooks

  def __len__(self):
    return len(self._hooks)


class ModelDefinition(object):
  """Everything firemodel knows about one model class."""

  def __init__(self, collection_path, schema):
    self.collection_path = collection_path
    """Path of the collection the documents live in."""
    self.schema = schema
    """:any:`Schema` of the documents."""
    self.prehooks = HookRegistry()
    """Hooks run before validation."""
    self.posthooks = HookRegistry()
    """Hooks run after validation."""
    self.events = EventDispatcher()
    """Listeners of created / updated / deleted."""


class ModelRegistry(object):
  """
  Maps model classes to their :any:`ModelDefinition`.
  Classes are held weakly, so a model class that goes out of scope is dropped with its definition.
  """

  def __init__(self):
    self._definitions = WeakKeyDictionary()

  def register(self, model_class, collection_path, schema):
    definition = ModelDefinition(collection_path, schema)
    self._definitions[model_class] = definition
    return definition

  def lookup(self, model_class):
    definition = self._definitions.get(model_class)
    if definition is None:
      raise StructureError("%s is not a registered model." % model_class.__name__)
    return definition

  def __contains__(self, model_class):
    return model_class in self._definitions

  def __len__(self):
    return len(self._definitions)


registry = ModelRegistry()
"""The process-wide :any:`ModelRegistry`."""
