from __future__ import annotations

from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
import redis

from gridwalk.api.deps import get_move_stream, get_redis, get_registry
from gridwalk.registry import SessionRegistry
from gridwalk.runtime import get_runtime
from gridwalk.streams import MoveStream, read_move_events

router = APIRouter()


@router.websocket("/ws")
async def play_ws(websocket: WebSocket) -> None:
    rt = get_runtime()
    connection_id = str(uuid4())
    await rt.hub.connect(connection_id, websocket)
    await rt.registry.register(connection_id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(code=message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await rt.registry.on_command(connection_id, raw)
    except WebSocketDisconnect:
        await rt.registry.on_close(connection_id)
    except Exception as e:
        await rt.registry.on_error(connection_id, e)
        raise
    finally:
        await rt.hub.disconnect(connection_id)


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/info")
async def info(registry: SessionRegistry = Depends(get_registry)) -> dict[str, object]:
    return {"name": "gridwalk", "version": "0.1.0", "connections": len(registry)}


@router.get("/moves")
async def list_moves_route(
    count: int = 20,
    start: str = "-",
    end: str = "+",
    r: redis.Redis = Depends(get_redis),
    stream: MoveStream = Depends(get_move_stream),
) -> dict[str, object]:
    """Debug endpoint: read the move-event stream.

    Intended for local/dev checks when redis-cli isn't available.
    """

    if count < 1 or count > 200:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 200")

    try:
        entries = read_move_events(r=r, stream=stream, count=count, start=start, end=end)
    except redis.RedisError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    messages = [{"id": mid, "fields": fields} for mid, fields in entries]
    return {"stream": stream.key, "messages": messages}
