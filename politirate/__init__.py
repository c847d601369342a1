"""Politirate: leader ratings, citizen polls and support desk API."""

from .main import create_application

__all__ = ["create_application"]
