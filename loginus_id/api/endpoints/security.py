"""Additional auth-factor endpoints."""

from typing import Any

from loginus_id.api.http_client import AsyncHttpClient
from loginus_id.models.auth import AuthFactorType


async def add_auth_factor(http: AsyncHttpClient, method: AuthFactorType | str) -> dict[str, Any]:
    """
    Attach an additional factor to the current user's login path.

    Not idempotent: callers must not issue two adds concurrently.

    Args:
        http: Configured async HTTP client.
        method: Factor type to add (e.g. "email-code").

    Returns:
        Response payload (usually empty).
    """
    return await http.request(
        "POST",
        "/auth/user-additional-factors",
        json={"method": str(method)},
    )


async def remove_auth_factor(http: AsyncHttpClient, factor_id: str) -> dict[str, Any]:
    """Detach an additional factor by id."""
    return await http.request("DELETE", f"/auth/user-additional-factors/{factor_id}")
