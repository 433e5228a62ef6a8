from base64 import urlsafe_b64encode
from datetime import date, datetime
from json import JSONEncoder, dumps

from firemodel.errors import FiremodelError
from firemodel.firestore import registered_types
from firemodel.objects import ABSENT


def to_json(dct, pretty=False, sort_keys=False):
  """
  Converts document data to a JSON string.
  Dates become ISO 8601 strings, geopoints :samp:`{"latitude", "longitude"}`,
  document references their :samp:`path`, and bytes urlsafe base64.
  """
  if pretty:
    return dumps(dct, cls=_FiremodelJSONEncoder, sort_keys=True, indent=2, separators=(", ", ": "))
  return dumps(dct, cls=_FiremodelJSONEncoder, sort_keys=sort_keys, separators=(",", ":"))


class _FiremodelJSONEncoder(JSONEncoder):
  """Converts driver types, :any:`datetime` and :any:`date` to JSON."""
  # pylint: disable=method-hidden,arguments-differ

  def default(self, obj):
    types = registered_types()
    if types is not None:
      if isinstance(obj, types.geopoint):
        return {"latitude": obj.latitude, "longitude": obj.longitude}
      elif isinstance(obj, types.reference):
        return obj.path
    if isinstance(obj, (datetime, date)):
      return obj.isoformat()
    elif isinstance(obj, (bytes, bytearray)):
      return urlsafe_b64encode(obj).decode("utf-8")
    elif obj is ABSENT:
      return None
    else:
      raise FiremodelError("Unserializable object {} of type {}".format(obj, type(obj)))
