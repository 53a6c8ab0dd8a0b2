# helpdesk/services/deadline.py
"""
Cálculo de plazos en días hábiles.

Función pura: mismo (tipo, prioridad, creación, feriados) -> mismo plazo.
No consulta la hora actual ni la base de datos.
"""
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Set

from helpdesk.models.common import normalize_type, normalize_priority

# Días hábiles base por tipo (tabla fija)
DEADLINE_DAYS_BY_TYPE = {
    "general": 1,
    "systems": 10,
    "stock_adjustment": 2,
    "equipment_request": 10,
    "preventive_maintenance": 5,
}
DEFAULT_DEADLINE_DAYS = 3

# Ajuste por prioridad; el mínimo siempre es 1 día
PRIORITY_ADJUSTMENT = {"high": -1, "medium": 0, "low": 1}

END_OF_DAY_HOUR = 18


def business_days_for(request_type, priority) -> int:
    days = DEADLINE_DAYS_BY_TYPE.get(normalize_type(request_type), DEFAULT_DEADLINE_DAYS)
    days += PRIORITY_ADJUSTMENT[normalize_priority(priority)]
    return max(1, days)


def is_business_day(day: date, holidays: Optional[Set[date]] = None) -> bool:
    if day.weekday() >= 5:  # sábado / domingo
        return False
    return not holidays or day not in holidays


def add_business_days(start: datetime, days: int, holidays: Optional[Iterable[date]] = None) -> datetime:
    """Avanza `days` días hábiles desde el día siguiente a `start` (misma hora)."""
    holiday_set = set(holidays or ())
    current = start
    remaining = days
    while remaining > 0:
        current = current + timedelta(days=1)
        if not is_business_day(current.date(), holiday_set):
            continue
        remaining -= 1
    return current


def compute_deadline(
    request_type,
    priority,
    created_at: datetime,
    holidays: Optional[Iterable[date]] = None,
    end_of_day_hour: int = END_OF_DAY_HOUR,
) -> datetime:
    """
    Plazo = creación + N días hábiles (tipo ajustado por prioridad), a las
    `end_of_day_hour` horas en la zona horaria de `created_at`.
    Tipos desconocidos usan DEFAULT_DEADLINE_DAYS, nunca fallan.
    """
    days = business_days_for(request_type, priority)
    due = add_business_days(created_at, days, holidays)
    return due.replace(hour=end_of_day_hour, minute=0, second=0, microsecond=0)
