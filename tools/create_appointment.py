# tools/create_appointment.py

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import storage
from schemas.tools import AppointmentArgs, ToolResult

logger = logging.getLogger(__name__)


def create_appointment_tool(db: Session, args: AppointmentArgs, tenant_id: str, user_id=None) -> ToolResult:
    """
    The appointment day is stored at UTC midnight so that it reads back as the
    same calendar day regardless of the client's timezone.
    """
    day = args.appointment_date
    appointment_date = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)

    try:
        appointment = storage.create_appointment(
            db,
            tenant_id,
            customer_name=args.customer_name,
            customer_phone=args.customer_phone,
            subject=args.subject,
            appointment_date=appointment_date,
            appointment_time=args.appointment_time,
            status="scheduled",
            notes=args.notes,
        )
    except SQLAlchemyError:
        logger.exception(f"Error creating appointment for tenant {tenant_id!r}")
        return ToolResult.fail("create_appointment", "Error interno al crear la cita")

    logger.info(f"Appointment {appointment.id} created for tenant {tenant_id!r} on {day.isoformat()} {args.appointment_time}")
    return ToolResult.ok("create_appointment", appointment, appointment_day=day)
