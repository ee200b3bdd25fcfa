"""Live flows of this worker, keyed by id, with guaranteed teardown."""

import logging
import time

from workflow360.core.errors import FlowNotFoundError
from workflow360.flows.base import Flow

logger = logging.getLogger(__name__)


class FlowRegistry:
    """Holds each flow until it is deleted or left idle for `max_idle_seconds`.

    Removing a flow always closes it (timers, subscriptions) and its session
    store, so nothing fires against a flow nobody can reach any more.
    """

    def __init__(self, max_idle_seconds: float = 30 * 60):
        self.max_idle_seconds = max_idle_seconds
        self._flows: dict[str, Flow] = {}
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._flows)

    def __contains__(self, flow_id: str) -> bool:
        return flow_id in self._flows

    async def add(self, flow: Flow) -> Flow:
        await self.sweep()
        self._flows[flow.id] = flow
        self._last_seen[flow.id] = time.monotonic()
        return flow

    def get(self, flow_id: str, kind: str | None = None) -> Flow:
        flow = self._flows.get(flow_id)
        if flow is None or (kind is not None and flow.kind != kind):
            raise FlowNotFoundError(flow_id)
        self._last_seen[flow_id] = time.monotonic()
        return flow

    async def discard(self, flow_id: str) -> None:
        flow = self._flows.pop(flow_id, None)
        self._last_seen.pop(flow_id, None)
        if flow is None:
            raise FlowNotFoundError(flow_id)
        await self._teardown(flow)

    async def sweep(self) -> int:
        """Tear down idle flows; returns how many were removed."""
        cutoff = time.monotonic() - self.max_idle_seconds
        stale = [flow_id for flow_id, seen in self._last_seen.items() if seen < cutoff]
        for flow_id in stale:
            await self.discard(flow_id)
        if stale:
            logger.info("Swept %d idle flows", len(stale))
        return len(stale)

    async def close_all(self) -> None:
        for flow_id in list(self._flows):
            await self.discard(flow_id)

    async def _teardown(self, flow: Flow) -> None:
        await flow.close()
        await flow.identity.store.close()
        await flow.identity.aclose()
