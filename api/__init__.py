# Path: api/__init__.py
# Purpose: Package initializer for the artwork search HTTP layer.
# Layer: api.
# Details: Re-exports the app factory and the error-to-status mapping.

from .app import ERROR_STATUS, create_app, status_for

__all__ = ["ERROR_STATUS", "create_app", "status_for"]
