from collections.abc import Mapping

from ..errors import StructureError, ValidationError
from ..objects import ABSENT
from .field import Field
from ._util import PathSet, sub_paths


class Schema(object):
  """
  The shape of the documents of one collection: a dict of {key: :any:`Field`}.

  Validation runs field by field in declaration order, awaiting each one,
  and stops at the first :any:`ValidationError`. The failing key is prefixed onto the error's path.

  Schemas are built once and only read afterwards.
  """

  def __init__(self, fields):
    if not isinstance(fields, Mapping):
      raise StructureError("Schema expects a dict of Fields, got: %s" % (fields,))
    for key, field in fields.items():
      if not isinstance(field, Field):
        raise StructureError("Schema field %r must be a Field, got: %s" % (key, field))
    self.fields = dict(fields)
    """Dict {key: :any:`Field`}."""

  async def validate(self, data=None, fields=None):
    """
    Validates every field.

    :param data: Document data. Keys without a Field are dropped from the result.
    :param fields: Fields to validate against. Defaults to this schema's fields.
    :return: New dict of validated data. Missing optional values are left out.
    """
    if data is None:
      data = {}
    if fields is None:
      fields = self.fields
    self._check_data(data)

    validated = {}
    for key, field in fields.items():
      await self._validate_field(validated, data, key, field)
    return validated

  async def validate_selected(self, data=None, changed_paths=None):
    """
    Validates only the fields touched by :samp:`changed_paths`.

    A field is touched if its key, or any path starting with :samp:`key.`, is in :samp:`changed_paths`.
    Nested object fields only re-validate the touched sub-paths.
    Replacing a whole nested object with :samp:`set("profile", {...})` marks only the keys
    inside the new object, so a required nested key that is missing from it is not reported.
    Validate with :samp:`all=True` to catch that.
    Untouched fields are copied from :samp:`data` as they are.
    """
    if data is None:
      data = {}
    if changed_paths is None:
      changed_paths = PathSet()
    self._check_data(data)

    validated = {}
    for key, field in self.fields.items():
      nested = sub_paths(changed_paths, key)
      if key in changed_paths or nested:
        await self._validate_field(validated, data, key, field, nested)
      elif key in data:
        validated[key] = data[key]
    return validated

  def __repr__(self):
    return "Schema(%s)" % ", ".join(self.fields)

  @staticmethod
  async def _validate_field(validated, data, key, field, changed_paths=None):
    try:
      value = await field.validate(data.get(key, ABSENT), changed_paths)
    except ValidationError as error:
      raise error.prefix(key)
    if value is not ABSENT:
      validated[key] = value

  @staticmethod
  def _check_data(data):
    if not isinstance(data, Mapping):
      raise ValidationError(None, data, "must be an object")
