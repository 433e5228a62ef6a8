from inspect import isawaitable


async def resolve(value):
  """Awaits :samp:`value` if it is awaitable, so sync and async callbacks/clients can be mixed."""
  if isawaitable(value):
    return await value
  return value


async def async_for_each(items, callback):
  """
  Calls :samp:`callback(item)` for each item, awaiting each call before starting the next.
  """
  for item in items:
    await resolve(callback(item))
