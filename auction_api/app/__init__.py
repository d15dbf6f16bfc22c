"""
Application package initializer.

This package contains the FastAPI application and its submodules:
``core`` (configuration, logging, errors, the SQLite store), ``schemas``
(request and response models), ``services`` (auction rules) and ``api``
(HTTP routes).
"""

from .main import app, create_app  # noqa: F401
