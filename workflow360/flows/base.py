"""Shared plumbing for the auth flows: id, error string, loading flag, teardown."""

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from workflow360.core.errors import SOMETHING_WENT_WRONG, FlowStateError
from workflow360.flows.navigation import Navigator
from workflow360.flows.timers import DelayedAction
from workflow360.identity.client import IdentityProvider

logger = logging.getLogger(__name__)


class Flow:
    """Base class for a server-hosted auth page.

    Subclasses mutate state only from their async handlers. While a handler
    awaits the provider, `loading` is set and any other handler call is
    ignored; that flag is the only guard against double submission.
    """

    kind = "flow"

    def __init__(self, identity: IdentityProvider, navigator: Navigator | None = None, redirect_seconds: float = 2.0):
        self.id = uuid.uuid4().hex
        self.identity = identity
        self.navigator = navigator or Navigator()
        self.redirect_seconds = redirect_seconds
        self.redirect = DelayedAction()
        self.error = ""
        self.loading = False
        self.closed = False

    @property
    def step(self) -> Any:
        raise NotImplementedError

    def _require(self, action: str, *steps: Any) -> None:
        if self.step not in steps:
            raise FlowStateError(action, str(getattr(self.step, "value", self.step)))

    @contextmanager
    def _busy(self, fallback_message: str = SOMETHING_WENT_WRONG) -> Iterator[None]:
        """Hold `loading` for one remote round-trip; unexpected failures become `fallback_message`."""
        self.loading = True
        try:
            yield
        except Exception:
            logger.exception("%s flow %s: unexpected failure", self.kind, self.id)
            self.error = fallback_message
        finally:
            self.loading = False

    def _redirect_later(self, path: str) -> None:
        self.redirect.schedule(self.redirect_seconds, lambda: self.navigator.push(path))

    async def close(self) -> None:
        """Cancel every pending timer; safe to call more than once."""
        self.redirect.cancel()
        self.closed = True

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "step": getattr(self.step, "value", self.step),
            "error": self.error or None,
            "loading": self.loading,
            "redirect_to": self.navigator.location,
        }
