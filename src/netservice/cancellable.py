from __future__ import annotations

import contextlib
import itertools
import logging
import threading
import typing

import trio

from .exceptions import OperationCancelled

log = logging.getLogger(__name__)

_TYPE_CANCEL_CALLBACK = typing.Callable[[], None]


class Cancellable:
    """
    Cooperative cancellation token.

    A single token is passed down through every call that may block or
    suspend. Cancelling it does not interrupt anything by itself; each
    operation checks the token at its suspension points and raises
    :class:`~netservice.exceptions.OperationCancelled`.

    The token may be cancelled from any thread.

    Example::

        >>> cancellable = Cancellable()
        >>> cancellable.cancel()
        >>> cancellable.is_cancelled()
        True
        >>> cancellable.raise_if_cancelled()
        Traceback (most recent call last):
          ...
        netservice.exceptions.OperationCancelled: Operation was cancelled
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._callbacks: dict[int, _TYPE_CANCEL_CALLBACK] = {}
        self._ids = itertools.count(1)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cancelled={self._cancelled})"

    def is_cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelled()

    def cancel(self) -> None:
        """
        Mark the token as cancelled and run the connected callbacks once.
        Cancelling an already cancelled token does nothing.
        """
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks = list(self._callbacks.values())

        log.debug("Cancelling %r, %d callback(s) connected", self, len(callbacks))
        for callback in callbacks:
            callback()

    def connect(self, callback: _TYPE_CANCEL_CALLBACK) -> int:
        """
        Run ``callback`` when the token is cancelled. If it already is, the
        callback runs immediately and ``0`` is returned.

        Returns a handler id for :meth:`disconnect`.
        """
        with self._lock:
            if not self._cancelled:
                handler_id = next(self._ids)
                self._callbacks[handler_id] = callback
                return handler_id

        callback()
        return 0

    def disconnect(self, handler_id: int) -> None:
        with self._lock:
            self._callbacks.pop(handler_id, None)

    def reset(self) -> None:
        """Make a cancelled token usable again. Callbacks stay connected."""
        with self._lock:
            self._cancelled = False


def check_cancelled(cancellable: Cancellable | None) -> None:
    if cancellable is not None:
        cancellable.raise_if_cancelled()


@contextlib.contextmanager
def open_cancel_scope(
    cancellable: Cancellable | None,
) -> typing.Generator[trio.CancelScope, None, None]:
    """
    Open a trio cancel scope that is cancelled along with ``cancellable``,
    and turn that cancellation into :class:`OperationCancelled`.

    Must be used from inside a trio task. The token may be cancelled from
    any thread.
    """
    check_cancelled(cancellable)

    with trio.CancelScope() as scope:
        handler_id = 0
        if cancellable is not None:
            trio_token = trio.lowlevel.current_trio_token()
            handler_id = cancellable.connect(
                lambda: trio_token.run_sync_soon(scope.cancel)
            )
        try:
            yield scope
        finally:
            if cancellable is not None:
                cancellable.disconnect(handler_id)

    if scope.cancelled_caught:
        raise OperationCancelled()
