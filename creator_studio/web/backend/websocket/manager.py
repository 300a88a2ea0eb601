"""WebSocket connection manager for real-time updates.

Handles client connections and broadcasts job updates and notices
to clients subscribed to a project.
"""

import logging
from typing import Any, TYPE_CHECKING

from fastapi import WebSocket

if TYPE_CHECKING:
    from ..services.job_manager import Job

logger = logging.getLogger(__name__)


class WebSocketManager:
    """Manages WebSocket connections and subscriptions.

    Clients can subscribe to specific projects to receive
    real-time updates about job progress.
    """

    def __init__(self):
        """Initialize the WebSocket manager."""
        self._connections: dict[str, WebSocket] = {}
        self._project_subscriptions: dict[str, set[str]] = {}  # project_id -> client_ids

    async def connect(self, websocket: WebSocket, client_id: str) -> None:
        """Accept a new WebSocket connection.

        Args:
            websocket: The WebSocket connection.
            client_id: Unique client identifier.
        """
        await websocket.accept()
        self._connections[client_id] = websocket

    def disconnect(self, client_id: str) -> None:
        """Forget a client and all of its subscriptions.

        Args:
            client_id: The client identifier.
        """
        self._connections.pop(client_id, None)
        for subscribers in self._project_subscriptions.values():
            subscribers.discard(client_id)

    async def subscribe_to_project(self, client_id: str, project_id: str) -> None:
        """Subscribe a client to a project's job updates and notices.

        Args:
            client_id: The client identifier.
            project_id: The project to subscribe to.
        """
        self._project_subscriptions.setdefault(project_id, set()).add(client_id)

    async def unsubscribe_from_project(self, client_id: str, project_id: str) -> None:
        """Unsubscribe a client from a project.

        Args:
            client_id: The client identifier.
            project_id: The project to unsubscribe from.
        """
        if project_id in self._project_subscriptions:
            self._project_subscriptions[project_id].discard(client_id)

    async def broadcast_job_update(self, job: "Job") -> None:
        """Broadcast a job update to subscribed clients.

        Args:
            job: The job with updated status.
        """
        await self._broadcast(job.project_id, {"type": "job_update", "job": job.to_dict()})

    async def broadcast_notice(self, project_id: str, level: str, message: str) -> None:
        """Broadcast a user-facing notice to a project's subscribers.

        Args:
            project_id: The project the notice belongs to.
            level: One of success, error or info.
            message: Text shown as a toast.
        """
        await self._broadcast(
            project_id,
            {"type": "notice", "project_id": project_id, "level": level, "message": message},
        )

    async def _broadcast(self, project_id: str, message: dict[str, Any]) -> None:
        subscribers = self._project_subscriptions.get(project_id, set())

        disconnected = []
        for client_id in list(subscribers):
            websocket = self._connections.get(client_id)
            if websocket:
                try:
                    await websocket.send_json(message)
                except Exception as e:
                    logger.debug("Dropping client %s: %s", client_id, e)
                    disconnected.append(client_id)

        for client_id in disconnected:
            self.disconnect(client_id)

    @property
    def connection_count(self) -> int:
        """Get the number of active connections."""
        return len(self._connections)

    def get_subscribed_projects(self, client_id: str) -> list[str]:
        """Get projects a client is subscribed to.

        Args:
            client_id: The client identifier.

        Returns:
            List of project IDs.
        """
        return [
            project_id
            for project_id, subscribers in self._project_subscriptions.items()
            if client_id in subscribers
        ]
