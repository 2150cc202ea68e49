"""
Base class for put pipeline plugins.
"""

from typing import Any, Optional

from ..drivers.base import Driver


class Plugin:
    """
    Extension run around ``Storage.put``.

    A plugin is bound to one driver by ``init`` and keeps that reference for
    its whole lifetime; it never owns or closes the driver. Subclasses may
    define either hook:

    - ``async def before_put(self, data, path)``, result stored under
      ``before_put_key``
    - ``async def after_put(self, path)``, result stored under
      ``after_put_key``

    A hook returning ``None`` leaves its key out of the put result.
    """

    plugin_name: str = None

    before_put_key: Optional[str] = None
    after_put_key: Optional[str] = None

    def __init__(self):
        self.disk: Optional[Driver] = None

    def init(self, disk: Driver) -> None:
        self.disk = disk

    def __repr__(self):
        return f"<{self.__class__.__name__} disk={getattr(self.disk, 'name', None)!r}>"

    def hook(self, name: str) -> Any:
        """Return the hook callable when the plugin implements it."""
        return getattr(self, name, None)
