import re
from collections.abc import Mapping
from datetime import datetime

from iso8601 import parse_date

from ..errors import StructureError, ValidationError
from ..objects import ABSENT, kind_of, STRING, NUMBER, BOOLEAN, DATE, TIMESTAMP, GEOPOINT, \
  REFERENCE, OBJECT, ARRAY, ANY
from .._util import resolve
from ._util import dict_dup

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


class Field(object):
  """
  Validates and transforms a single value of a document.

  A Field is built once, by chaining calls::

    age = Field("Age").integer().min(0).optional()
    tags = Field("Tags").array_of(Field("Tag").string().trim())

  Each type or constraint call appends a step. :any:`validate` runs the steps in the order
  they were added, each one receiving the output of the previous one.
  The flags set by :any:`optional`, :any:`nullable` and :any:`default` are checked before
  any step runs, so a default value or a None is returned without being checked.

  Fields are shared by every document of a schema, so validating never changes them.
  """

  def __init__(self, label=None):
    self.label = label
    """Name used in error messages. May be None; the schema key is still reported in the path."""
    self._stack = []
    self._type = None
    self._optional = False
    self._nullable = False
    self._required = False
    self._default = ABSENT
    self._schema = None
    self._items = None

  @property
  def type(self):
    """Type tag set by the type step, or None."""
    return self._type

  @property
  def schema(self):
    """Nested :any:`Schema` of an :any:`object_of` field."""
    return self._schema

  @property
  def items(self):
    """Nested Field of an :any:`array_of` field."""
    return self._items

  def is_optional(self):
    return self._optional

  def is_nullable(self):
    return self._nullable

  def has_default(self):
    return self._default is not ABSENT

  async def validate(self, value=ABSENT, changed_paths=None):
    """
    Validates one value.

    :param value: The value, or :any:`ABSENT` if the key is missing from the document.
    :param changed_paths:
      For object fields, paths below this field that changed.
      When given, only those are re-validated; see :any:`Schema.validate_selected`.
    :return: The validated (possibly transformed) value. :any:`ABSENT` for a missing optional value.
    """
    if value is ABSENT:
      if self.has_default():
        return dict_dup(self._default)
      if self._optional:
        return ABSENT
      raise self._error(value, "is required")

    if value is None and self._nullable:
      return None

    for step in self._stack:
      value = await resolve(step(value, changed_paths))
    return value

  #region Flags
  def optional(self):
    """Allows the value to be missing."""
    if self._required:
      raise StructureError("%s is required and can't be optional." % self._name())
    self._optional = True
    return self

  def nullable(self):
    """Allows the value to be None."""
    self._nullable = True
    return self

  def required(self):
    """Forbids the value to be missing. This is the default unless :any:`optional` or :any:`default` is used."""
    if self._optional or self.has_default():
      raise StructureError("%s can't be required and optional or defaulted." % self._name())
    self._required = True
    return self

  def default(self, value):
    """Value returned when the key is missing. It is not checked by the other steps."""
    if self._required:
      raise StructureError("%s is required and can't have a default." % self._name())
    self._default = value
    return self
  #endregion

  #region Types
  def string(self, message=None):
    return self._type_check(STRING, "must be a string", message)

  def number(self, message=None):
    return self._type_check(NUMBER, "must be a number", message)

  def integer(self, message=None):
    """A number with no fractional part. After :any:`number`, only adds the integer check."""
    if self._type != NUMBER:
      self._type_check(NUMBER, "must be an integer", message)
    return self._check(
      lambda value: isinstance(value, int) or value.is_integer(), "must be an integer", message)

  def boolean(self, message=None):
    return self._type_check(BOOLEAN, "must be a boolean", message)

  def date(self, fmt=None, message=None):
    """
    A date or datetime.
    Strings are parsed with :samp:`datetime.strptime(value, fmt)`, or as ISO 8601 if :samp:`fmt` is None.
    """
    self._define_type(DATE)

    def step(value, _changed_paths):
      kind = kind_of(value)
      if kind in (DATE, TIMESTAMP):
        return value
      if kind == STRING:
        try:
          return datetime.strptime(value, fmt) if fmt is not None else parse_date(value)
        except ValueError:
          pass
      raise self._error(value, message or "must be a date")
    return self._add(step)

  def timestamp(self, message=None):
    """A driver timestamp. Offset-aware datetimes and ISO 8601 strings are accepted too."""
    self._define_type(TIMESTAMP)

    def step(value, _changed_paths):
      kind = kind_of(value)
      if kind == TIMESTAMP:
        return value
      if kind == DATE and isinstance(value, datetime) and value.utcoffset() is not None:
        return value
      if kind == STRING:
        try:
          return parse_date(value)
        except ValueError:
          pass
      raise self._error(value, message or "must be a timestamp")
    return self._add(step)

  def geopoint(self, message=None):
    return self._type_check(GEOPOINT, "must be a geopoint", message)

  def reference(self, message=None):
    return self._type_check(REFERENCE, "must be a document reference", message)

  def object(self, message=None):
    return self._type_check(OBJECT, "must be an object", message)

  def array(self, message=None):
    return self._type_check(ARRAY, "must be an array", message)

  def any(self):
    """Accepts any value. Only :any:`optional`, :any:`nullable` and :any:`default` still apply."""
    self._define_type(ANY)
    return self
  #endregion

  #region Nested
  def object_of(self, fields, message=None):
    """
    An object whose entries are validated by a nested schema.

    :param fields: Dict of {key: :any:`Field`}, or a :any:`Schema`.
    """
    # pylint: disable=import-outside-toplevel,cyclic-import
    from .schema import Schema

    if isinstance(fields, Schema):
      schema = fields
    elif isinstance(fields, Mapping):
      schema = Schema(fields)
    else:
      raise StructureError("object_of expects a dict of Fields or a Schema, got: %s" % (fields,))

    if self._type != OBJECT:
      self.object(message)
    self._schema = schema

    async def step(value, changed_paths):
      if changed_paths:
        return await schema.validate_selected(value, changed_paths)
      return await schema.validate(value)
    return self._add(step)

  def array_of(self, field, message=None):
    """An array whose every element is validated by :samp:`field`."""
    if not isinstance(field, Field):
      raise StructureError("array_of expects a Field, got: %s" % (field,))

    if self._type != ARRAY:
      self.array(message)
    self._items = field

    async def step(value, _changed_paths):
      validated = []
      for index, item in enumerate(value):
        try:
          validated.append(await field.validate(item))
        except ValidationError as error:
          raise error.prefix(index)
      return validated
    return self._add(step)
  #endregion

  #region Constraints
  def min(self, minimum, message=None):
    return self._check(lambda value: value >= minimum, "must be at least %s" % (minimum,), message)

  def max(self, maximum, message=None):
    return self._check(lambda value: value <= maximum, "must be at most %s" % (maximum,), message)

  def range(self, minimum, maximum, message=None):
    return self._check(
      lambda value: minimum <= value <= maximum,
      "must be between %s and %s" % (minimum, maximum), message)

  def length(self, length, message=None):
    return self._check(lambda value: len(value) == length, "must have length %s" % length, message)

  def min_length(self, min_length, message=None):
    return self._check(
      lambda value: len(value) >= min_length, "must have length of at least %s" % min_length, message)

  def max_length(self, max_length, message=None):
    return self._check(
      lambda value: len(value) <= max_length, "must have length of at most %s" % max_length, message)

  def match(self, pattern, message=None):
    """Checks :samp:`pattern.search(value)`, so the pattern is not anchored unless it says so."""
    if isinstance(pattern, str):
      pattern = re.compile(pattern)
    elif not hasattr(pattern, "search"):
      raise StructureError("match expects a string or compiled pattern, got: %s" % (pattern,))
    return self._check(
      lambda value: pattern.search(value) is not None,
      "must match %s" % pattern.pattern, message)

  def one_of(self, values, message=None):
    values = list(values)
    return self._check(lambda value: value in values, "must be one of %s" % (values,), message)

  def equal(self, compare, message=None):
    return self._check(lambda value: value == compare, "must equal %s" % (compare,), message)

  def before(self, moment, message=None):
    return self._check(lambda value: value < moment, "must be before %s" % (moment,), message)

  def after(self, moment, message=None):
    return self._check(lambda value: value > moment, "must be after %s" % (moment,), message)

  def email(self, message=None):
    return self._check(
      lambda value: EMAIL_PATTERN.fullmatch(value) is not None, "must be a valid email", message)
  #endregion

  #region Transforms
  def trim(self, message=None):
    return self._transform(lambda value: value.strip(), message)

  def to_lower_case(self, message=None):
    return self._transform(lambda value: value.lower(), message)

  def to_upper_case(self, message=None):
    return self._transform(lambda value: value.upper(), message)

  def custom(self, func):
    """
    Adds :samp:`func(value)` as a step. It returns the new value, or an awaitable of it.
    Anything it raises propagates unchanged.
    """
    if not callable(func):
      raise StructureError("custom expects a callable, got: %s" % (func,))
    return self._add(lambda value, _changed_paths: func(value))
  #endregion

  def __repr__(self):
    return "Field(label=%r, type=%s, optional=%s, nullable=%s)" % \
           (self.label, self._type, self._optional, self._nullable)

  #region Private methods
  def _name(self):
    return "Field %r" % self.label if self.label is not None else "Field"

  def _error(self, value, message):
    return ValidationError(self.label, value, message)

  def _add(self, step):
    self._stack.append(step)
    return self

  def _define_type(self, tag):
    if self._type is not None:
      raise StructureError(
        "%s is already of type %s and can't become %s." % (self._name(), self._type, tag))
    self._type = tag

  def _type_check(self, tag, default_message, message):
    self._define_type(tag)
    return self._check(lambda value: kind_of(value) == tag, default_message, message)

  def _check(self, predicate, default_message, message=None):
    def step(value, _changed_paths):
      try:
        accepted = predicate(value)
      except (TypeError, ValueError, OverflowError):
        accepted = False
      if not accepted:
        raise self._error(value, message or default_message)
      return value
    return self._add(step)

  def _transform(self, func, message=None):
    def step(value, _changed_paths):
      if not isinstance(value, str):
        raise self._error(value, message or "must be a string")
      return func(value)
    return self._add(step)
  #endregion
