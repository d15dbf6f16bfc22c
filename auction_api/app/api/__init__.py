"""
API package containing the HTTP routes.

``router.py`` exposes a top‑level ``router`` which includes all of the
endpoint routers; ``deps.py`` holds the shared FastAPI dependencies.
"""
