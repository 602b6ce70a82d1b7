from app.services.customer_service import (
    update_customer,
    upsert_customer,
)
from app.services.message_service import (
    NON_TEXT_SENTINEL,
    insert_message,
)
from app.services.metrics_service import MetricsCollector
from app.services.rate_limiter import RateLimiter
from app.services.result import Result
