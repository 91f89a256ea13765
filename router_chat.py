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

"""WebSocket side of the live channel.

Every connected client receives the messages_update events produced by
POST /messages. A client may also send
{"event": "chat_message", "data": {"author": ..., "text": ...}}; that event
is relayed as-is to all clients, the sender included, and is not written to
the message log.
"""

import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from broadcast import BroadcastChannel, EventType, get_channel, make_event

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket, channel: BroadcastChannel = Depends(get_channel)):
    await websocket.accept()
    await channel.join(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except ValueError:
                logger.debug("Dropping malformed frame on live channel")
                continue
            if not isinstance(frame, dict) or frame.get("event") != EventType.CHAT_MESSAGE.value:
                logger.debug("Ignoring unknown frame on live channel")
                continue
            await channel.publish(make_event(EventType.CHAT_MESSAGE, frame.get("data")))
    except WebSocketDisconnect:
        pass
    finally:
        await channel.leave(websocket)
