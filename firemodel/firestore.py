"""
Registration of the external database client.

firemodel never talks to the network itself.
Every read, write, query and subscription is delegated to a client registered here::

  from google.cloud import firestore
  from firemodel import set_firestore

  set_firestore(firestore.AsyncClient())

The driver's value types (document snapshots, references, geopoints, timestamps)
are needed to classify values; by default they are taken from :samp:`google.cloud.firestore`.
"""
from collections import namedtuple

from firemodel.errors import StructureError

DriverTypes = namedtuple("DriverTypes", ["snapshot", "reference", "geopoint", "timestamp"])
"""Tuples of driver classes, usable directly as the second argument to :samp:`isinstance`."""


class _Firestore(object):
  def __init__(self, client, types):
    self.client = client
    """The database client. Sync and async Firestore clients are both accepted."""
    self.types = types
    """:any:`DriverTypes` of the client's library."""


_registered = None


def set_firestore(client, types=None):
  """
  Registers the database client used by every :any:`Model`.

  :param client: Object with a :samp:`collection(path)` method, like :samp:`firestore.Client`.
  :param types:
    :any:`DriverTypes`. If None, the types of :samp:`google.cloud.firestore` are used,
    which requires the :samp:`firestore` extra to be installed.
  """
  global _registered
  if client is None:
    raise StructureError("set_firestore must be called with a client.")
  if types is None:
    types = _google_types()
  if not isinstance(types, DriverTypes):
    raise StructureError("Expected DriverTypes, got: %s" % (types,))
  _registered = _Firestore(client, types)


def get_firestore():
  """Returns the registered client and types. Fails if :any:`set_firestore` was never called."""
  if _registered is None:
    raise StructureError("No database client registered; call set_firestore first.")
  return _registered


def reset_firestore():
  """Forgets the registered client."""
  global _registered
  _registered = None


def registered_types():
  """:any:`DriverTypes` of the registered client, or None."""
  return _registered.types if _registered is not None else None


def opaque_types():
  """
  Driver types that are objects but must be treated as atomic values.
  Empty when no client is registered.
  """
  if _registered is None:
    return ()
  types = _registered.types
  return types.reference + types.geopoint + types.timestamp


def _google_types():
  # pylint: disable=import-outside-toplevel
  from google.api_core.datetime_helpers import DatetimeWithNanoseconds
  from google.cloud import firestore

  return DriverTypes(
    snapshot=(firestore.DocumentSnapshot,),
    reference=(firestore.DocumentReference, firestore.AsyncDocumentReference),
    geopoint=(firestore.GeoPoint,),
    timestamp=(DatetimeWithNanoseconds,))
