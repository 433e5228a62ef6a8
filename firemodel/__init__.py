from firemodel.errors import FiremodelError, StructureError, ValidationError
from firemodel.firestore import DriverTypes, set_firestore, get_firestore, reset_firestore
from firemodel.objects import ABSENT
from firemodel.model._util import mark_as_changed
from firemodel.model.field import Field
from firemodel.model.schema import Schema
from firemodel.model.model import Model, Where

__title__ = "firemodel"
__version__ = "1.0.0"
__author__ = "firemodel contributors"
__license__ = "MPL 2.0"
__copyright__ = "2026 firemodel contributors"


def field(label=None):
  """Shorthand for :samp:`Field(label)`."""
  return Field(label)


def schema(fields):
  """Shorthand for :samp:`Schema(fields)`."""
  return Schema(fields)
