"""
Loginus API client layer.

Provides async HTTP communication with the Loginus backend.
"""

from loginus_id.api.http_client import AsyncHttpClient, extract_error_message, sanitize_for_log

__all__ = ["AsyncHttpClient", "extract_error_message", "sanitize_for_log"]
