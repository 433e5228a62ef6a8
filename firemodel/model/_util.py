from collections.abc import Mapping, MutableSet

from ..firestore import opaque_types


class PathSet(MutableSet):
  """
  Set of dot-separated paths that remembers insertion order.
  Compares equal to a plain :samp:`set` with the same members.
  """

  def __init__(self, paths=()):
    self._paths = dict.fromkeys(paths)

  def __contains__(self, path):
    return path in self._paths

  def __iter__(self):
    return iter(self._paths)

  def __len__(self):
    return len(self._paths)

  def add(self, value):
    self._paths[value] = None

  def discard(self, value):
    self._paths.pop(value, None)

  def __repr__(self):
    return "PathSet(%s)" % list(self._paths)


def mark_as_changed(changed_paths, value, path=()):
  """
  Adds :samp:`path`, every ancestor of it, and every path reachable inside :samp:`value`
  to :samp:`changed_paths`.
  e.g. :samp:`mark_as_changed(s, {"a": {"b": 1, "c": 2}})` adds "a", "a.b" and "a.c".

  Nothing is compared against previously stored data:
  passing an unchanged object marks it and all of its children again.

  :param changed_paths: Anything with an :samp:`add` method; usually a :any:`PathSet`.
  :param value: (Part of) document data.
  :param path: Keys leading to :samp:`value`, outermost first.
  """
  path = list(path)
  for i in range(len(path)):
    changed_paths.add(".".join(str(segment) for segment in path[:i + 1]))

  # Driver references, geopoints and timestamps are leaves even if they look like objects.
  if isinstance(value, opaque_types()):
    return
  if isinstance(value, Mapping):
    for key in value:
      mark_as_changed(changed_paths, value[key], path + [key])
  elif isinstance(value, (list, tuple)):
    for index, item in enumerate(value):
      mark_as_changed(changed_paths, item, path + [index])


def sub_paths(changed_paths, key):
  """
  Paths under :samp:`key` with the leading segment stripped.
  e.g. :samp:`sub_paths({"a", "a.b", "a.b.c", "d"}, "a")` is :samp:`{"b", "b.c"}`.
  """
  prefix = "%s." % key
  return PathSet(path[len(prefix):] for path in changed_paths if path.startswith(prefix))


def split_path(path):
  """Dot path or list of keys to a list of keys."""
  if isinstance(path, str):
    return path.split(".")
  return list(path)


def dict_dup(data):
  """Copy of JSON-like data. Lists and dicts are copied, everything else is shared."""
  if isinstance(data, dict):
    obj = {}
    for key in data:
      obj[key] = dict_dup(data[key])
    return obj
  elif isinstance(data, list):
    return [dict_dup(item) for item in data]
  else:
    return data


def get_path(path, data, default=None):
  """
  Recursively looks for :samp:`path` in :samp:`data`.
  e.g. :samp:`get_path(["a", "b"], {"a": {"b": 1}})` should be 1,
  and :samp:`get_path(["tags", "0"], {"tags": ["x"]})` should be "x".

  :param path: List of dict keys or list indexes, outermost to innermost.
  :param data: Dict of data (potentially nested).
  :return:
    :samp:`default` if the path can not be traversed to the end;
    else the value at the end of the path.
  """
  for path_elem in path:
    if isinstance(data, Mapping):
      if path_elem not in data:
        return default
      data = data[path_elem]
    elif isinstance(data, list):
      index = _list_index(path_elem)
      if index is None or not 0 <= index < len(data):
        return default
      data = data[index]
    else:
      return default
  return data


def set_path(path, value, data):
  """
  Opposite of get_path.
  If path does not fully exist yet, creates parts of the path as it goes.
  e.g. :samp:`set_path(["a", "b"], 1, {"a": {}})` should change data to be :samp:`{"a": {"b": 1}}`.

  Existing list elements are replaced in place.
  A path running through any other value, or past the end of a list, raises
  :samp:`TypeError` or :samp:`IndexError` and leaves :samp:`data` unchanged.
  """
  for depth, path_elem in enumerate(path[0:-1]):
    if isinstance(data, dict) and data.get(path_elem) is None:
      data[path_elem] = {}
    data = data[_slot(data, path_elem, path[:depth + 1])]
  data[_slot(data, path[-1], path)] = value


def _list_index(key):
  if isinstance(key, int) and not isinstance(key, bool):
    return key
  if isinstance(key, str) and key.isdigit():
    return int(key)
  return None


def _slot(container, key, path):
  """Key or index under which :samp:`key` is stored in :samp:`container`."""
  where = ".".join(str(segment) for segment in path)
  if isinstance(container, dict):
    return key
  if isinstance(container, list):
    index = _list_index(key)
    if index is None or not 0 <= index < len(container):
      raise IndexError(
        "Can't set %s: no element %s in an array of length %s." % (where, key, len(container)))
    return index
  raise TypeError("Can't set %s: the parent is %r, not an object or array." % (where, container))
