"""
RefreshGate - Single-flight credential refresh around a request function.

When many in-flight requests fail at once because the credential expired,
exactly one refresh runs. Every request that failed in that window waits for
it and is retried once. Requests issued while the refresh is running wait for
it to settle before they go out.
"""

import asyncio
from typing import Any

import httpx
from loguru import logger

from refresh_fetch.errors import RefreshError, ResponseError
from refresh_fetch.settings import global_settings
from refresh_fetch.types import RefreshFn, RequestFn, ShouldRefresh


class RefreshGate:
    """
    Wraps a request function with single-flight credential refresh.

    One gate coordinates one credential. Build one per session and pass it to
    every call site that uses that credential.

    The wrapped function must raise on an expired credential; a function that
    returns a 401 response never triggers a refresh.

    Usage:
        # Gate around a status-raising transport, normalizer outside
        transport = HttpxTransport(raise_for_status=True)
        gate = RefreshGate(
            request_fn=transport.request,
            refresh_fn=auth.refresh,
            should_refresh=refresh_on_status(401),
        )
        fetch_json = ResponseNormalizer(gate)

        # Or gate outside the normalizer, refreshing on ResponseError(401)
        gate = RefreshGate(ResponseNormalizer(transport), auth.refresh, refresh_on_status(401))

    Policy:
        - A request that finds a refresh pending waits for it to settle
          (success or failure) and is then issued exactly once.
        - A request that fails refreshably starts a refresh, or joins the one
          already running, and is retried exactly once if it succeeds.
        - If the refresh fails or is cancelled, the caller gets the request's
          original error. Pass ``surface_refresh_errors=True`` to get a
          RefreshError instead.

    There is no timeout here: if ``refresh_fn`` never settles, every waiting
    request stays pending with it.
    """

    def __init__(
        self,
        request_fn: RequestFn,
        refresh_fn: RefreshFn,
        should_refresh: ShouldRefresh,
        *,
        surface_refresh_errors: bool = False,
        name: str = "default",
        debug: bool | None = None,
    ):
        self._request_fn = request_fn
        self._refresh_fn = refresh_fn
        self._should_refresh = should_refresh
        self._surface_refresh_errors = surface_refresh_errors
        self.name = name
        self._debug = global_settings.debug if debug is None else debug

        # Non-null exactly while a refresh episode is in flight
        self._pending_refresh: asyncio.Task[None] | None = None
        self._stats = GateStats()

    @property
    def is_refreshing(self) -> bool:
        """Whether a refresh episode is currently in flight."""
        return self._pending_refresh is not None

    async def request(self, target: str, options: dict[str, Any] | None = None) -> Any:
        """
        Issue a request through the gate.

        Args:
            target: Passed unchanged to the wrapped request function
            options: Passed unchanged to the wrapped request function

        Returns:
            Whatever the wrapped request function returns

        Raises:
            Exception: The request's own error. On a failed refresh this is
                the error that triggered it, or RefreshError when refresh
                errors are surfaced.
        """
        self._stats.requests += 1

        pending = self._pending_refresh
        if pending is not None:
            self._stats.deferred += 1
            self._log(f"DEFER: Waiting for refresh before {target}")
            await self._settle(pending)
            return await self._request_fn(target, options)

        try:
            return await self._request_fn(target, options)
        except Exception as error:
            if not self._should_refresh(error):
                raise
            await self._wait_for_refresh(error)

        self._stats.retries += 1
        self._log(f"RETRY: {target}")
        return await self._request_fn(target, options)

    async def __call__(
        self, target: str, options: dict[str, Any] | None = None
    ) -> Any:
        return await self.request(target, options)

    async def _wait_for_refresh(self, error: Exception) -> None:
        """Join or start the refresh episode; re-raise ``error`` if it fails."""
        refresh = self._pending_refresh
        if refresh is None:
            refresh = self._start_refresh()
        else:
            self._stats.joined += 1
            self._log("JOIN: Attaching to in-flight refresh")

        refresh_error = await self._settle(refresh)
        if refresh_error is None:
            return
        if self._surface_refresh_errors:
            raise RefreshError(error) from refresh_error
        raise error

    def _start_refresh(self) -> "asyncio.Task[None]":
        # The slot is filled before the first await so that no other request
        # can observe the gate as idle once a refresh is decided.
        self._stats.refreshes += 1
        self._log("NEW: Starting credential refresh")
        task = asyncio.create_task(self._run_refresh())
        self._pending_refresh = task
        # A task cancelled before it starts never reaches the finally below
        task.add_done_callback(self._clear_refresh)
        return task

    async def _run_refresh(self) -> None:
        try:
            await self._refresh_fn()
        except (Exception, asyncio.CancelledError):
            self._stats.refresh_failures += 1
            self._log("FAILED: Credential refresh failed")
            raise
        finally:
            # Cleared before the task completes, so waiters resume on a clean slot
            self._pending_refresh = None
        self._log("DONE: Credential refresh completed")

    def _clear_refresh(self, task: "asyncio.Task[None]") -> None:
        if self._pending_refresh is task:
            self._pending_refresh = None

    @staticmethod
    async def _settle(refresh: "asyncio.Task[None]") -> BaseException | None:
        """Wait for a refresh to finish and return its error, if any."""
        try:
            # shield: one cancelled caller must not cancel everyone's refresh
            await asyncio.shield(refresh)
        except asyncio.CancelledError as exc:
            # Only a cancelled refresh counts as a failure; a cancelled caller
            # propagates.
            if not refresh.cancelled():
                raise
            return exc
        except Exception as exc:
            return exc
        return None

    def get_stats(self) -> "GateStats":
        """Get refresh gate statistics."""
        self._stats.refreshing = self.is_refreshing
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[RefreshGate:{self.name}] {message}")


class GateStats:
    """Statistics for a refresh gate."""

    def __init__(self):
        self.requests: int = 0  # Calls to request()
        self.refreshes: int = 0  # Refresh episodes started
        self.joined: int = 0  # Failures that attached to a running episode
        self.deferred: int = 0  # Requests held back by a pending refresh
        self.retries: int = 0  # Requests retried after a successful refresh
        self.refresh_failures: int = 0
        self.refreshing: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "requests": self.requests,
            "refreshes": self.refreshes,
            "joined": self.joined,
            "deferred": self.deferred,
            "retries": self.retries,
            "refresh_failures": self.refresh_failures,
            "refreshing": self.refreshing,
        }


def configure_refresh_fetch(
    request_fn: RequestFn,
    refresh_fn: RefreshFn,
    should_refresh: ShouldRefresh,
    **kwargs: Any,
) -> RefreshGate:
    """Build a RefreshGate; keyword options are passed through."""
    return RefreshGate(request_fn, refresh_fn, should_refresh, **kwargs)


def refresh_on_status(*statuses: int) -> ShouldRefresh:
    """
    Build a ``should_refresh`` predicate matching HTTP status errors.

    Matches ResponseError (from ResponseNormalizer) and httpx.HTTPStatusError
    (from ``response.raise_for_status()``). Defaults to 401.
    """
    wanted = frozenset(statuses or (401,))

    def should_refresh(error: Exception) -> bool:
        if isinstance(error, ResponseError):
            return error.status in wanted
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code in wanted
        return False

    return should_refresh
