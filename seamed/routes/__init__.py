"""HTTP routes."""

from . import inventory, settings

ROUTERS = [inventory.router, settings.router]
