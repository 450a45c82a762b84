"""SeaMed Tracker inventory API.

A small REST service that keeps boat crews' medical supply inventories. Every
inventory request is authenticated with a bearer token from the identity
provider, and each user only ever sees and changes their own items.
"""
