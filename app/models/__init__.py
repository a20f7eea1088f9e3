from app.models.appointment import Appointment, AppointmentCreate
from app.models.order import Order, OrderCreate

__all__ = [
    "Appointment",
    "AppointmentCreate",
    "Order",
    "OrderCreate",
]
