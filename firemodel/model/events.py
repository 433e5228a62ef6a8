import logging

from .._util import resolve

logger = logging.getLogger(__name__)

EVENTS = ("created", "updated", "deleted")
"""Lifecycle events emitted by :any:`Model`."""


class EventDispatcher(object):
  """
  Lifecycle event dispatch for one model class.
  Listeners of an event are called in the order they were added, each one awaited.
  """

  def __init__(self):
    self.callbacks = {}

  def on(self, event_type, callback):
    """
    Subscribe to an event.
    """
    if event_type not in EVENTS:
      raise ValueError("Unknown event `%s`; expected one of %s." % (event_type, ", ".join(EVENTS)))
    if not callable(callback):
      raise TypeError("Callback for event `%s` is not callable." % event_type)
    self.callbacks.setdefault(event_type, []).append(callback)

  def _noop(self, event_type, instance):
    """
    Default for events nobody listens to.
    """
    logger.debug("Unhandled model event %s; %r", event_type, instance)

  async def dispatch(self, event_type, instance):
    """
    Calls every listener of :samp:`event_type` with :samp:`instance`.
    """
    callbacks = self.callbacks.get(event_type)
    if not callbacks:
      return self._noop(event_type, instance)
    for callback in callbacks:
      await resolve(callback(instance))
