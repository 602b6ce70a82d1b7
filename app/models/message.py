import uuid

from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import relationship

from app.database import Base


class Message(Base):
    __tablename__ = "messages"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)
    sender_type = Column(Text, nullable=False)  # customer, system, admin
    message_text = Column(Text, nullable=False)
    viber_message_id = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False)

    customer = relationship("Customer", back_populates="messages")
