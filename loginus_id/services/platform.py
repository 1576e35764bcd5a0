"""
Host platform capabilities used by the invitation flow.

These define the interface for clipboard and native-share access so that a
desktop shell, a browser bridge or a test double can be swapped in without
changing the services.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Clipboard(Protocol):
    """Protocol for writing text to the system clipboard."""

    async def write_text(self, text: str) -> None:
        """
        Put ``text`` on the clipboard.

        Raises:
            ClipboardError: If the clipboard rejected the write.
        """
        ...


@runtime_checkable
class ShareTarget(Protocol):
    """
    Protocol for a native share sheet.

    Implementations must translate a user dismissal (the AbortError-class
    outcome) into ShareCancelledError, and any other failure into ShareError.
    """

    async def share(self, *, title: str, text: str, url: str) -> None:
        """
        Offer ``url`` to the platform share sheet.

        Raises:
            ShareCancelledError: If the user dismissed the sheet.
            ShareError: If sharing failed.
        """
        ...
