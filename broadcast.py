# SchoolPortal - Portail scolaire
# Copyright (C) 2026 (linuxdev)
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Live broadcast channel

Fans chat events out to every connected client. The channel keeps no
history: a client only receives what is published while it is joined, and
the publishing client gets its own event back like everybody else.

Two kinds of events go through it:
- messages_update: the full message log, sent after a message was stored
- chat_message: an ephemeral line relayed from one client, never stored
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Set

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    MESSAGES_UPDATE = "messages_update"
    CHAT_MESSAGE = "chat_message"


def make_event(event_type: EventType, data: Any) -> Dict[str, Any]:
    return {"event": event_type.value, "data": data}


class BroadcastChannel:
    """
    Registry of live connections plus fan-out.

    A connection is any object with an async send_json(payload) method,
    in production a Starlette WebSocket. Membership only changes through
    join() and leave(); publish() works on a snapshot, so a peer leaving
    mid-publish may or may not get that event.
    """

    def __init__(self):
        self._connections: Set[Any] = set()
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def members(self) -> List[Any]:
        return list(self._connections)

    async def join(self, connection) -> None:
        async with self._lock:
            self._connections.add(connection)
        logger.info(f"Connection joined live channel ({self.connection_count} connected)")

    async def leave(self, connection) -> None:
        async with self._lock:
            self._connections.discard(connection)
        logger.info(f"Connection left live channel ({self.connection_count} connected)")

    async def publish(self, event: Dict[str, Any]) -> int:
        """
        Send an event to every joined connection, the sender included.

        A peer whose send fails is dropped and delivery continues with the
        others. Returns the number of peers that received the event.
        """
        async with self._lock:
            recipients = list(self._connections)

        delivered = 0
        dead = []
        for connection in recipients:
            try:
                await connection.send_json(event)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping connection after failed send: {e}")
                dead.append(connection)

        for connection in dead:
            await self.leave(connection)

        logger.debug(f"Published {event.get('event')} to {delivered}/{len(recipients)} connections")
        return delivered


# Process-wide channel shared by the HTTP and WebSocket routes
channel = BroadcastChannel()


def get_channel() -> BroadcastChannel:
    return channel
