"""Asynchronous Server Gateway Interface entry-point.

Serve with any ASGI server, e.g. ``uvicorn seamed.asgi:app --port 3001``.
"""

from seamed.factory import create_app

app = create_app()
