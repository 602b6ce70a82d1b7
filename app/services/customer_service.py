from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from app.logging_config import get_logger
from app.models import Customer
from app.services.result import Result

logger = get_logger("customer_service")


def build_customer_upsert(viber_id: str, name: Optional[str], now: datetime):
    """INSERT ... ON CONFLICT (viber_id) DO UPDATE returning the customer row.

    first_seen_at is only written when the row has none yet; name is only
    overwritten by a non-null value.
    """
    stmt = insert(Customer).values(
        viber_id=viber_id,
        name=name,
        first_seen_at=now,
        last_active_at=now,
        created_at=now,
        updated_at=now,
    )
    excluded = stmt.excluded
    stmt = stmt.on_conflict_do_update(
        index_elements=[Customer.viber_id],
        set_={
            "name": func.coalesce(excluded.name, Customer.name),
            "first_seen_at": func.coalesce(Customer.first_seen_at, excluded.first_seen_at),
            "last_active_at": excluded.last_active_at,
            "updated_at": excluded.updated_at,
        },
    )
    return stmt.returning(Customer).execution_options(populate_existing=True)


def upsert_customer(
    db: Session,
    viber_id: str,
    name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Result[Customer]:
    """Create the customer on first contact, refresh activity on later ones."""
    now = now or datetime.now(timezone.utc)
    try:
        customer = db.scalars(build_customer_upsert(viber_id, name, now)).one()
        db.commit()
        return Result.success(customer)
    except Exception as e:
        db.rollback()
        logger.error(
            "Customer upsert failed",
            extra={"context": {"viber_id": viber_id, "error": str(e)}},
        )
        return Result.from_exception(e)


def update_customer(db: Session, viber_id: str, **fields) -> Result[int]:
    """Update columns of the customer with this viber_id; value is the row count."""
    try:
        result = db.execute(update(Customer).where(Customer.viber_id == viber_id).values(**fields))
        db.commit()
        return Result.success(result.rowcount)
    except Exception as e:
        db.rollback()
        logger.error(
            "Customer update failed",
            extra={"context": {"viber_id": viber_id, "error": str(e)}},
        )
        return Result.from_exception(e)
