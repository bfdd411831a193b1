from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.core.events import manager

router = APIRouter()


@router.websocket("/ws")
async def changes_websocket(websocket: WebSocket):
    """Stream of change events for live dashboards"""
    await manager.connect(websocket)
    try:
        while True:
            # Push-only channel; reading keeps the connection open
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)
