from firemodel._json import to_json


def logger(logger_func, event=None):
  """
  Function that can be a lifecycle listener of a :any:`Model`.
  Will call ``logger_func`` on a string representation of each instance it is called with.

  Use it like::

    import logging
    User.on("created", logger(logging.getLogger("users").info, "created"))
    await User.create({"name": "Ann"}) # Calls `info`

  :param logger_func: Callback taking a string to be logged.
  :param event: Event name to show. Listeners are not told which event fired.
  """
  return lambda instance: logger_func(show_event(instance, event))


def show_event(instance, event=None):
  """Translates a :any:`Model` instance (and the event it went through) to a string suitable for logging."""
  parts = []
  log = parts.append

  def _indent(s):
    """Adds extra spaces to the beginning of every newline."""
    indent_str = "  "
    return ("\n" + indent_str).join(s.split("\n"))

  prefix = "Firemodel %s" % event if event is not None else "Firemodel"
  log("%s %s %s/%s\n" % (prefix, instance.__class__.__name__, instance.collection_path, instance.id))
  log("  Data: %s\n" % _indent(to_json(instance.data, pretty=True)))
  changed = list(instance.changed_paths)
  if changed:
    log("  Changed paths: %s\n" % ", ".join(changed))

  return u"".join(parts)
