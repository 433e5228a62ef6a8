"""Error types that firemodel raises."""


class FiremodelError(Exception):
  """Base class for every error raised by firemodel itself."""
  pass


class StructureError(FiremodelError):
  """
  A model, schema or field was declared incorrectly.

  These are raised while classes and schemas are being defined
  (or when no database client has been registered),
  never while validating document data.
  """
  pass


class ValidationError(FiremodelError):
  """
  Document data failed a required, type or constraint check.

  Nested schemas and arrays re-raise the same error with their key prefixed
  onto :samp:`path`, so the caller of :any:`Model.save` sees e.g.
  :samp:`profile.bio` rather than just :samp:`bio`.
  """

  def __init__(self, label, value, message, path=None):
    self.label = label
    """Human-readable label of the failing :any:`Field`. May be None."""
    self.value = value
    """The value that was rejected."""
    self.message = message
    """Custom or default message of the failing constraint."""
    self.path = list(path) if path is not None else []
    """List of keys from the document root to the failing value."""
    super(ValidationError, self).__init__(message)

  @property
  def path_string(self):
    """Dot-joined :samp:`path`, e.g. :samp:`"tags.1"`."""
    return ".".join(str(segment) for segment in self.path)

  def prefix(self, segment):
    """Prepends :samp:`segment` to the path and returns this error, for re-raising."""
    self.path.insert(0, segment)
    return self

  def __str__(self):
    where = self.path_string or self.label
    if where is None:
      return self.message
    return "%s: %s" % (where, self.message)

  def __repr__(self):
    return "ValidationError(label=%s, value=%s, message=%s, path=%s)" % \
           (repr(self.label), repr(self.value), repr(self.message), repr(self.path))

  def __eq__(self, other):
    return self.__class__ == other.__class__ and \
      self.label == other.label and \
      self.message == other.message and \
      self.path == other.path

  def __ne__(self, other):
    # pylint: disable=unneeded-not
    return not self == other

  __hash__ = Exception.__hash__
