from fastapi import Depends
from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection

from app.database import get_db
from app.services.event_handlers import WebhookHandlers
from app.services.metrics_service import MetricsCollector
from app.services.rate_limiter import RateLimiter
from app.services.realtime import Broadcaster, get_broadcaster
from app.services.viber_service import ViberService, get_viber_service


def get_metrics(connection: HTTPConnection) -> MetricsCollector:
    return connection.app.state.metrics


def get_rate_limiter(connection: HTTPConnection) -> RateLimiter:
    return connection.app.state.rate_limiter


def get_handlers(
    db: Session = Depends(get_db),
    dispatcher: ViberService = Depends(get_viber_service),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    metrics: MetricsCollector = Depends(get_metrics),
) -> WebhookHandlers:
    return WebhookHandlers(db, dispatcher, broadcaster, metrics)
