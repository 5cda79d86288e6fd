# src/ozark_collab/api/v1/endpoints/realtime.py
"""WebSocket stream of collaboration events."""

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from ozark_collab.core.errors import Unauthenticated
from ozark_collab.db.session import get_db
from ozark_collab.services.realtime import Broadcaster, get_broadcaster

from ..dependencies import resolve_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])

# Application-defined close code for a missing or rejected token.
CLOSE_UNAUTHENTICATED = 4001


@router.websocket("/ws")
async def realtime_stream(
    websocket: WebSocket,
    token: str = Query(""),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> None:
    """Subscribe to vote, comment, post and chat events.

    The stream is one-way; anything the client sends is ignored.
    """
    try:
        user = resolve_user(db, token)
    except Unauthenticated:
        await websocket.close(code=CLOSE_UNAUTHENTICATED)
        return
    user_id = user.id
    # Release the connection; the socket may stay open for hours.
    db.close()

    await broadcaster.connect(websocket, user_id)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)
