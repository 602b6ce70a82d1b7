from app.models.customer import Customer
from app.models.message import Message

__all__ = [
    "Customer",
    "Message",
]
