"""
Auth path editor: draft state plus synchronization with the backend.

The editor owns a draft copy of the user's auth path while it is open.
Local intents (toggle, reorder, move, reset) only touch the draft. Adding or
removing a factor goes through the API when a user id is known, and through
the draft alone otherwise. The draft is replaced only after the API call
succeeds, so a failed call leaves it exactly as it was.
"""

import inspect
from collections.abc import Awaitable, Callable, Collection, Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import structlog

from loginus_id.api.endpoints.security import add_auth_factor, remove_auth_factor
from loginus_id.api.http_client import AsyncHttpClient
from loginus_id.core.busy import BusyFlag
from loginus_id.exceptions import APIError, AuthenticationError, NetworkError, display_message
from loginus_id.models.auth import AuthFactor, AuthFactorType, AuthPath
from loginus_id.services.auth_path import (
    append_factor,
    available_factors,
    catalog_factors,
    drop_factor,
    find_factor,
    hydrate,
    is_available,
    move_by,
    reorder,
    toggle_factor,
)

logger = structlog.get_logger(__name__)

SaveCallback = Callable[[list[AuthFactor]], Awaitable[None] | None]

ADD_FAILED_MESSAGE = "Failed to add the authentication factor"
REMOVE_FAILED_MESSAGE = "Failed to remove the authentication factor"
SAVE_FAILED_MESSAGE = "Failed to save the sign-in path"
EMPTY_PATH_MESSAGE = "Add at least one authentication factor"


class EditorState(StrEnum):
    """Lifecycle of the editing surface."""

    CLOSED = "closed"
    OPEN = "open"
    EDITING = "editing"
    SAVING = "saving"


class Intent(StrEnum):
    """Commands the editor accepts through :meth:`AuthPathEditor.dispatch`."""

    ADD = "add"
    REMOVE = "remove"
    TOGGLE = "toggle"
    REORDER = "reorder"
    MOVE = "move"
    SAVE = "save"
    RESET = "reset"


class Outcome(StrEnum):
    """Result of dispatching an intent."""

    APPLIED = "applied"
    REJECTED = "rejected"
    FAILED = "failed"
    DISCARDED = "discarded"


@dataclass(frozen=True, kw_only=True)
class EditorSnapshot:
    """Read-only view of the editor for rendering."""

    state: EditorState
    path: AuthPath
    available: AuthPath
    error: str | None
    is_saving: bool


_PATH_TRANSITIONS: dict[Intent, Callable[..., AuthPath]] = {
    Intent.ADD: append_factor,
    Intent.REMOVE: drop_factor,
    Intent.TOGGLE: toggle_factor,
    Intent.REORDER: reorder,
    Intent.MOVE: move_by,
}


class AuthPathEditor:
    """
    Editor for the ordered sequence of login factors.

    State machine::

        CLOSED -> OPEN (hydrated) -> EDITING <-> SAVING -> CLOSED

    ``reset()`` brings an open editor back to OPEN with the hydrated path.
    A failed save goes back to EDITING with the error kept for display.

    Concurrency:
    - At most one API call per editor is in flight; a second add/remove/save
      while one is pending raises OperationInProgressError.
    - Closing or reopening the editor does not cancel a pending call, but its
      result is discarded when it arrives.
    """

    def __init__(
        self,
        http: AsyncHttpClient,
        on_save: SaveCallback,
        *,
        user_id: str | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        """
        Args:
            http: HTTP client for the add/remove factor calls.
            on_save: Receives the final factor list on save. May be async.
            user_id: Owner of the path. Without it every change stays local.
            on_close: Called whenever the editor closes.
        """
        self._http = http
        self._on_save = on_save
        self._on_close = on_close
        self._user_id = user_id

        self._state = EditorState.CLOSED
        self._hydrated: AuthPath = ()
        self._path: AuthPath = ()
        self._connected_accounts: frozenset[str] = frozenset()
        self._error: str | None = None
        self._busy = BusyFlag("auth path update")
        self._generation = 0

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state != EditorState.CLOSED

    @property
    def is_saving(self) -> bool:
        """True while an API call or the save callback is pending."""
        return self._busy.active

    @property
    def path(self) -> AuthPath:
        """Current draft path."""
        return self._path

    @property
    def hydrated_path(self) -> AuthPath:
        """Path as supplied on the last ``open()``."""
        return self._hydrated

    @property
    def error(self) -> str | None:
        """Message for the inline error banner, if any."""
        return self._error

    @property
    def is_remote(self) -> bool:
        """Whether add/remove go through the API."""
        return bool(self._user_id)

    @property
    def connected_accounts(self) -> frozenset[str]:
        return self._connected_accounts

    @property
    def available_factors(self) -> AuthPath:
        """Factors that can be added now; recomputed on every access."""
        return available_factors(self._path, self._connected_accounts)

    @property
    def catalog(self) -> AuthPath:
        """Full factor catalog with flags derived from the draft."""
        return catalog_factors(self._path, self._connected_accounts)

    @property
    def enabled_factors(self) -> AuthPath:
        return tuple(f for f in self._path if f.enabled)

    def snapshot(self) -> EditorSnapshot:
        return EditorSnapshot(
            state=self._state,
            path=self._path,
            available=self.available_factors,
            error=self._error,
            is_saving=self.is_saving,
        )

    def open(
        self,
        current_path: Iterable[AuthFactor | Mapping[str, Any]],
        connected_accounts: Collection[str] = (),
    ) -> None:
        """
        Open the editor with a fresh draft.

        Args:
            current_path: The user's saved path, as factors or dicts.
            connected_accounts: Keys of linked external accounts.
        """
        self._generation += 1
        self._hydrated = hydrate(current_path)
        self._path = self._hydrated
        self._connected_accounts = frozenset(connected_accounts)
        self._error = None
        self._state = EditorState.OPEN
        logger.debug("Auth path editor opened", factors=len(self._path), remote=self.is_remote)

    def update_connected_accounts(self, connected_accounts: Collection[str]) -> None:
        """Replace the linked-account set; availability follows on next read."""
        self._connected_accounts = frozenset(connected_accounts)

    def close(self) -> None:
        """Close the editor, dropping the draft and any pending result."""
        if self._state == EditorState.CLOSED:
            return
        self._generation += 1
        self._state = EditorState.CLOSED
        self._error = None
        logger.debug("Auth path editor closed")
        if self._on_close is not None:
            self._on_close()

    def dismiss_error(self) -> None:
        self._error = None

    async def dispatch(self, intent: Intent | str, *args: Any) -> Outcome:
        """
        Route an intent to its handler.

        Args:
            intent: What to do.
            *args: Intent payload (factor type, factor id, target id, offset).

        Returns:
            Outcome of the intent.
        """
        handlers: dict[Intent, Callable[..., Outcome | Awaitable[Outcome]]] = {
            Intent.ADD: self.add,
            Intent.REMOVE: self.remove,
            Intent.TOGGLE: self.toggle,
            Intent.REORDER: self.reorder,
            Intent.MOVE: self.move,
            Intent.SAVE: self.save,
            Intent.RESET: self.reset,
        }
        result = handlers[Intent(intent)](*args)
        if inspect.isawaitable(result):
            return await result
        return result

    async def add(self, factor_type: AuthFactorType | str) -> Outcome:
        """
        Add a factor to the end of the path, enabled.

        Returns:
            REJECTED if the factor is not available, FAILED if the API call
            failed, DISCARDED if the editor closed meanwhile, else APPLIED.

        Raises:
            OperationInProgressError: If another call is in flight.
        """
        self._require_open()
        if not is_available(factor_type, self._connected_accounts, self._path):
            logger.warning("Factor not available", factor_type=str(factor_type))
            return Outcome.REJECTED

        if not self.is_remote:
            return self._apply(Intent.ADD, factor_type)

        return await self._commit(
            Intent.ADD,
            lambda: add_auth_factor(self._http, factor_type),
            ADD_FAILED_MESSAGE,
            factor_type,
        )

    async def remove(self, factor_id: str) -> Outcome:
        """
        Remove a factor from the path.

        Required factors are never removed; the attempt is logged and rejected.

        Raises:
            OperationInProgressError: If another call is in flight.
        """
        self._require_open()
        factor = find_factor(self._path, factor_id)
        if factor is None:
            return Outcome.REJECTED
        if factor.required:
            logger.warning("Cannot remove required factor", factor_id=factor_id)
            return Outcome.REJECTED

        if not self.is_remote:
            return self._apply(Intent.REMOVE, factor_id)

        return await self._commit(
            Intent.REMOVE,
            lambda: remove_auth_factor(self._http, factor_id),
            REMOVE_FAILED_MESSAGE,
            factor_id,
        )

    def toggle(self, factor_id: str) -> Outcome:
        """Flip a factor on or off in the draft. Never calls the API."""
        self._require_open()
        factor = find_factor(self._path, factor_id)
        if factor is not None and factor.required:
            logger.warning("Cannot toggle required factor", factor_id=factor_id)
            return Outcome.REJECTED
        return self._apply(Intent.TOGGLE, factor_id)

    def reorder(self, from_id: str, to_id: str) -> Outcome:
        """Drop ``from_id`` onto ``to_id``'s slot (pointer drag)."""
        self._require_open()
        return self._apply(Intent.REORDER, from_id, to_id)

    def move(self, factor_id: str, offset: int) -> Outcome:
        """Shift a factor by ``offset`` slots (keyboard drag)."""
        self._require_open()
        return self._apply(Intent.MOVE, factor_id, offset)

    def reset(self) -> Outcome:
        """Revert every draft change to the hydrated path."""
        self._require_open()
        self._path = self._hydrated
        self._error = None
        self._state = EditorState.OPEN
        return Outcome.APPLIED

    async def save(self) -> Outcome:
        """
        Hand the draft to ``on_save`` and close.

        Returns:
            REJECTED for an empty path, FAILED if ``on_save`` raised (the
            editor returns to EDITING with the error kept), else APPLIED.

        Raises:
            OperationInProgressError: If another call is in flight.
        """
        self._require_open()
        if not self._path:
            self._error = EMPTY_PATH_MESSAGE
            return Outcome.REJECTED

        generation = self._generation
        async with self._busy:
            self._state = EditorState.SAVING
            self._error = None
            try:
                result = self._on_save(list(self._path))
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error("Saving auth path failed", error_type=type(e).__name__)
                if generation != self._generation:
                    return Outcome.DISCARDED
                self._state = EditorState.EDITING
                self._error = str(e) or SAVE_FAILED_MESSAGE
                return Outcome.FAILED

        if generation != self._generation:
            return Outcome.DISCARDED
        logger.info("Auth path saved", factors=len(self._path))
        self.close()
        return Outcome.APPLIED

    def _apply(self, intent: Intent, *args: Any) -> Outcome:
        updated = _PATH_TRANSITIONS[intent](self._path, *args)
        if updated is self._path:
            return Outcome.REJECTED
        self._path = updated
        self._state = EditorState.EDITING
        return Outcome.APPLIED

    async def _commit(
        self,
        intent: Intent,
        call: Callable[[], Awaitable[Any]],
        fallback_message: str,
        *args: Any,
    ) -> Outcome:
        generation = self._generation
        async with self._busy:
            try:
                await call()
            except (APIError, NetworkError, AuthenticationError) as e:
                if generation != self._generation:
                    logger.debug("Dropping failure for closed editor", intent=intent.value)
                    return Outcome.DISCARDED
                self._error = display_message(e, fallback_message)
                logger.error(
                    "Auth factor update failed",
                    intent=intent.value,
                    error_type=type(e).__name__,
                )
                return Outcome.FAILED

        if generation != self._generation:
            logger.debug("Dropping result for closed editor", intent=intent.value)
            return Outcome.DISCARDED

        self._error = None
        logger.info("Auth factor updated", intent=intent.value)
        return self._apply(intent, *args)

    def _require_open(self) -> None:
        if self._state == EditorState.CLOSED:
            msg = "Editor is closed. Call open() first."
            raise RuntimeError(msg)
