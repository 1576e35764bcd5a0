from types import TracebackType

from loginus_id.exceptions import OperationInProgressError


class BusyFlag:
    """
    In-flight marker for a single editor or generator instance.

    Mirrors a disabled "Save"/"Generate" control: while one request is pending
    the owner is busy and a second request is refused instead of queued.

    Example:
        ```python
        busy = BusyFlag("add factor")

        async with busy:
            assert busy.active
            await do_request()

        assert not busy.active
        ```
    """

    def __init__(self, operation: str = "request") -> None:
        self._operation = operation
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def acquire(self) -> None:
        """
        Mark the owner busy.

        Raises:
            OperationInProgressError: If a request is already in flight.
        """
        if self._active:
            msg = f"Another {self._operation} is already in progress"
            raise OperationInProgressError(msg, operation=self._operation)
        self._active = True

    def release(self) -> None:
        """Clear the busy mark. No-op if not busy."""
        self._active = False

    async def __aenter__(self) -> "BusyFlag":
        self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.release()

    def __bool__(self) -> bool:
        return self._active

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._operation!r}, active={self._active})"
