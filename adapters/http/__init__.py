"""HTTP host for the patient document store and the side-effect proxy."""

from .app import create_app

__all__ = ["create_app"]
