import uuid

from sqlalchemy import Column, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import relationship

from app.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    viber_id = Column(Text, nullable=False, unique=True)
    name = Column(Text)
    phone = Column(Text)
    address = Column(Text)
    first_seen_at = Column(TIMESTAMP(timezone=True))
    last_active_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True))

    messages = relationship("Message", back_populates="customer", order_by="Message.created_at")
