"""
HTTP Client Module

Async HTTP client for the generation backend.
"""

from .client import AsyncHTTPClient

__all__ = ["AsyncHTTPClient"]
