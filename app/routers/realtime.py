from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from app.database import SessionLocal
from app.logging_config import ContextLogger, get_logger
from app.schemas.realtime import AdminSendMessage, RealtimeFrame
from app.services.admin_message_service import send_admin_message
from app.services.realtime import (
    ADMIN_MESSAGE_ERROR,
    ADMIN_ROOM,
    ADMIN_SEND_MESSAGE,
    JOIN_ADMIN,
    SYSTEM_METRICS,
    connection_manager,
)
from app.services.result import Result
from app.services.viber_service import get_viber_service

logger = get_logger("realtime_router")

router = APIRouter()


async def handle_frame(websocket: WebSocket, frame: RealtimeFrame) -> None:
    metrics = websocket.app.state.metrics

    if frame.event == JOIN_ADMIN:
        await connection_manager.join(websocket, ADMIN_ROOM)
        await connection_manager.send_to(websocket, SYSTEM_METRICS, metrics.get_metrics())
        return

    if frame.event == ADMIN_SEND_MESSAGE:
        data = frame.data if isinstance(frame.data, dict) else {}
        try:
            request = AdminSendMessage.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Invalid admin message: {e}")
            await connection_manager.send_to(
                websocket,
                ADMIN_MESSAGE_ERROR,
                {
                    "error": f"Invalid admin message: {e.errors()[0]['msg']}",
                    "customerViberId": data.get("customerViberId"),
                    "customerId": data.get("customerId"),
                },
            )
            return

        db = SessionLocal()
        try:
            result = await send_admin_message(db, request, get_viber_service(), connection_manager, metrics)
        except Exception as e:
            logger.exception(f"Admin message crashed: {e}")
            result = Result.failure(str(e), "unexpected_error")
        finally:
            db.close()

        if not result.ok:
            logger.error(
                "Admin message failed",
                extra={"context": {"error": result.error, "code": result.error_code}},
            )
            await connection_manager.send_to(
                websocket,
                ADMIN_MESSAGE_ERROR,
                {
                    "error": result.error,
                    "customerViberId": request.customer_viber_id,
                    "customerId": request.customer_id,
                },
            )
        return

    logger.info(f"Ignoring realtime event: {frame.event}")


@router.websocket("/ws")
async def admin_socket(websocket: WebSocket):
    client = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else "unknown"
    log = ContextLogger(logger, {"client": client})
    await connection_manager.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = RealtimeFrame.model_validate_json(raw)
            except ValidationError as e:
                log.warning(f"Invalid realtime frame: {e}")
                continue
            try:
                await handle_frame(websocket, frame)
            except Exception as e:
                log.exception(f"Realtime frame handling failed: {e}")
    except WebSocketDisconnect:
        pass
    finally:
        await connection_manager.disconnect(websocket)
