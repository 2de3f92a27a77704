"""HTTP interface for the contact manager and gift chat."""

from .app import create_app, main  # noqa: F401

__all__ = ["create_app", "main"]
