"""
WebSocket channel manager for real-time change delivery.

Clients subscribe to named channels (e.g. "availability", "posts",
"team:12") and receive a JSON event whenever a row behind that channel
changes.
"""

import asyncio
import json
import logging
from typing import Dict, List, Set, Optional, Any, Tuple
from datetime import datetime, timedelta
from fastapi import WebSocket
from sqlalchemy import event as sa_event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from teammind.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

# Timeout for WebSocket connections (30 seconds of inactivity)
WEBSOCKET_TIMEOUT_SECONDS = 30

AVAILABILITY_CHANNEL = "availability"
POSTS_CHANNEL = "posts"


def team_channel(team_id: int) -> str:
    """Channel name for a team's chat."""
    return f"team:{team_id}"


class RealtimeManager:
    """Manages WebSocket subscriptions per channel."""

    def __init__(self):
        # channel name -> set of subscribed sockets
        self.subscriptions: Dict[str, Set[WebSocket]] = {}
        # socket -> last activity timestamp
        self.connection_timestamps: Dict[WebSocket, datetime] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, channel: str, websocket: WebSocket):
        """
        Register a WebSocket on a channel.

        Args:
            channel: Channel name
            websocket: WebSocket connection object
        """
        async with self._lock:
            self.subscriptions.setdefault(channel, set()).add(websocket)
            self.connection_timestamps[websocket] = utcnow()
            logger.info(
                f"WebSocket subscribed to {channel} (subscribers: {len(self.subscriptions[channel])})"
            )

    async def unsubscribe(self, channel: str, websocket: WebSocket):
        """Remove a WebSocket from a channel."""
        async with self._lock:
            self._discard(channel, websocket)
            logger.info(f"WebSocket unsubscribed from {channel}")

    def _discard(self, channel: str, websocket: WebSocket):
        # Caller must hold the lock
        if channel in self.subscriptions:
            self.subscriptions[channel].discard(websocket)
            if not self.subscriptions[channel]:
                del self.subscriptions[channel]
        if not any(websocket in subs for subs in self.subscriptions.values()):
            self.connection_timestamps.pop(websocket, None)

    async def broadcast(self, channel: str, event: str, payload: Dict[str, Any]) -> int:
        """
        Send an event to every subscriber of a channel.

        Args:
            channel: Channel name
            event: Event type, e.g. "INSERT", "UPDATE", "DELETE"
            payload: Row data (serialized to JSON)

        Returns:
            Number of sockets the event was delivered to
        """
        async with self._lock:
            connections = self.subscriptions.get(channel, set()).copy()

        if not connections:
            return 0

        message_json = json.dumps(
            {"channel": channel, "event": event, "payload": payload}, default=str
        )

        # Send outside the lock to avoid blocking
        delivered = 0
        dead = []
        for websocket in connections:
            try:
                await websocket.send_text(message_json)
                delivered += 1
            except Exception as e:
                logger.warning(f"Error sending realtime event on {channel}: {e}")
                dead.append(websocket)

        if dead:
            async with self._lock:
                for websocket in dead:
                    self._discard(channel, websocket)

        return delivered

    async def get_subscriber_count(self, channel: str) -> int:
        """Number of sockets subscribed to a channel."""
        async with self._lock:
            return len(self.subscriptions.get(channel, set()))

    async def update_activity(self, websocket: WebSocket):
        """
        Update the last activity timestamp for a connection.
        Called when receiving ping or other messages from the client.
        """
        async with self._lock:
            if websocket in self.connection_timestamps:
                self.connection_timestamps[websocket] = utcnow()

    async def cleanup_stale_connections(self) -> int:
        """
        Drop connections with no activity within the timeout period.

        Returns:
            Number of connections removed
        """
        threshold = utcnow() - timedelta(seconds=WEBSOCKET_TIMEOUT_SECONDS)
        removed = 0
        async with self._lock:
            stale = [ws for ws, seen in self.connection_timestamps.items() if seen < threshold]
            for websocket in stale:
                for channel in list(self.subscriptions.keys()):
                    self._discard(channel, websocket)
                self.connection_timestamps.pop(websocket, None)
                removed += 1

        for websocket in stale:
            try:
                await websocket.close(code=1000, reason="Connection timeout")
            except Exception as e:
                logger.warning(f"Error closing stale connection: {e}")
        if removed:
            logger.info(f"Cleaned up {removed} stale WebSocket connections")
        return removed


# Global realtime manager instance
_realtime_manager: Optional[RealtimeManager] = None


def get_realtime_manager() -> RealtimeManager:
    """
    Get the global realtime manager instance.

    Returns:
        RealtimeManager instance
    """
    global _realtime_manager
    if _realtime_manager is None:
        _realtime_manager = RealtimeManager()
    return _realtime_manager


# ============================================================================
# Commit-gated delivery
# ============================================================================

# Session.info key holding (channel, event, payload) tuples awaiting commit
PENDING_EVENTS_KEY = "realtime_pending_events"


def queue_broadcast(session: AsyncSession, channel: str, event: str, payload: Dict[str, Any]) -> None:
    """
    Hold an event on the session until its transaction commits.

    Events are sent by ``publish_pending`` after commit and dropped on rollback.
    """
    session.info.setdefault(PENDING_EVENTS_KEY, []).append((channel, event, payload))


def pending_events(session: AsyncSession) -> List[Tuple[str, str, Dict[str, Any]]]:
    """Events queued on the session and not yet published."""
    return list(session.info.get(PENDING_EVENTS_KEY, []))


async def publish_pending(session: AsyncSession) -> int:
    """
    Broadcast every event queued on a committed session.

    Returns:
        Number of socket deliveries
    """
    events = session.info.pop(PENDING_EVENTS_KEY, [])
    manager = get_realtime_manager()
    delivered = 0
    for channel, event, payload in events:
        delivered += await manager.broadcast(channel, event, payload)
    return delivered


@sa_event.listens_for(Session, "after_soft_rollback")
def _discard_pending_events(session, previous_transaction):
    session.info.pop(PENDING_EVENTS_KEY, None)


# How often the sweeper drops idle sockets (seconds)
SWEEP_INTERVAL_SECONDS = 60


class ConnectionSweeper:
    """Background worker that periodically drops idle WebSocket connections."""

    def __init__(self, manager: Optional[RealtimeManager] = None,
                 interval_seconds: float = SWEEP_INTERVAL_SECONDS):
        self._manager = manager
        self._interval = interval_seconds
        self._worker_task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    def start(self) -> None:
        """Start the sweep loop."""
        if self._worker_task is None or self._worker_task.done():
            self._stop_event.clear()
            self._worker_task = asyncio.create_task(self._poll_loop())
            logger.info("Realtime connection sweeper started")

    def stop(self) -> None:
        """Stop the sweep loop."""
        self._stop_event.set()
        if self._worker_task and not self._worker_task.done():
            self._worker_task.cancel()
            logger.info("Realtime connection sweeper stopped")

    async def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                manager = self._manager or get_realtime_manager()
                await manager.cleanup_stale_connections()
            except Exception as e:
                logger.error(f"Error in realtime connection sweeper: {e}", exc_info=True)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                break
            except asyncio.TimeoutError:
                pass
