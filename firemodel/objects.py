"""
Value kinds seen by a :any:`Field`.

Every value is classified into exactly one kind by :any:`kind_of`,
so type steps can compare kinds instead of inspecting Python types ad hoc.
"""
from collections.abc import Mapping
from datetime import date, datetime

from firemodel.firestore import registered_types


class _Absent(object):
  """
  Marks a key that is missing from the input, as opposed to a key set to None.
  There is exactly one instance, :any:`ABSENT`.
  """

  def __repr__(self):
    return "ABSENT"

  def __bool__(self):
    return False


ABSENT = _Absent()

STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
DATE = "date"
TIMESTAMP = "timestamp"
GEOPOINT = "geopoint"
REFERENCE = "reference"
OBJECT = "object"
ARRAY = "array"
ANY = "any"
NULL = "null"
ABSENT_KIND = "absent"
UNKNOWN = "unknown"

TYPE_TAGS = (STRING, NUMBER, BOOLEAN, DATE, TIMESTAMP, GEOPOINT, REFERENCE, OBJECT, ARRAY, ANY)
"""Kinds a Field can be declared as."""


def kind_of(value):
  """
  Classifies :samp:`value`.
  Driver types (timestamp, geopoint, reference) need a registered client;
  without one they fall through to the plain Python kinds.
  """
  # pylint: disable=too-many-return-statements
  if value is ABSENT:
    return ABSENT_KIND
  if value is None:
    return NULL
  if isinstance(value, bool):
    return BOOLEAN
  if isinstance(value, (int, float)):
    return NUMBER
  if isinstance(value, str):
    return STRING

  driver_kind = _driver_kind(value)
  if driver_kind is not None:
    return driver_kind

  if isinstance(value, (datetime, date)):
    return DATE
  if isinstance(value, Mapping):
    return OBJECT
  if isinstance(value, (list, tuple)):
    return ARRAY
  return UNKNOWN


def _driver_kind(value):
  types = registered_types()
  if types is None:
    return None
  if isinstance(value, types.timestamp):
    return TIMESTAMP
  if isinstance(value, types.geopoint):
    return GEOPOINT
  if isinstance(value, types.reference):
    return REFERENCE
  return None
