import threading

from ganttcpm.domain.errors import ComputationCancelledError


class CancellationToken:
    """
    Cooperative cancellation flag shared between a caller and a computation.

    The computation polls the token once per topological step; setting it
    never interrupts anything by force.
    """

    def __init__(self):
        self._event = threading.Event()
        self.reason = None

    def cancel(self, reason="Computation was cancelled"):
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self):
        return self._event.is_set()

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise ComputationCancelledError(self.reason or "Computation was cancelled")


def check_cancelled(cancel_token):
    """Raise if the optional token has been cancelled."""
    if cancel_token is not None:
        cancel_token.raise_if_cancelled()
