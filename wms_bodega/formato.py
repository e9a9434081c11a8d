import math
from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import config

try:
    LOCAL_TZ = ZoneInfo(config.TIMEZONE)
except ZoneInfoNotFoundError:
    LOCAL_TZ = None

MESES = ["ene", "feb", "mar", "abr", "may", "jun", "jul", "ago", "sep", "oct", "nov", "dic"]

COLOR_GRIS = "#6b7280"
COLOR_ROJO = "#ef4444"
COLOR_AMBAR = "#f59e0b"
COLOR_AZUL = "#2563eb"
COLOR_VERDE = "#10b981"


def to_datetime(value):
    """datetime (naive o con zona) a partir de lo que devuelva el driver; None si no se puede."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None


def to_int(value) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(Decimal(str(value)))
    except (ArithmeticError, ValueError, TypeError):
        return 0


def to_float(value) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _local(dt: datetime) -> datetime:
    if dt.tzinfo is not None and LOCAL_TZ is not None:
        return dt.astimezone(LOCAL_TZ)
    return dt


def formatear_fecha(fecha) -> str:
    """'05 mar 2025'."""
    dt = to_datetime(fecha)
    if dt is None:
        return "-"
    dt = _local(dt)
    return f"{dt.day:02d} {MESES[dt.month - 1]} {dt.year}"


def formatear_fecha_hora(fecha) -> str:
    dt = to_datetime(fecha)
    if dt is None:
        return "-"
    dt = _local(dt)
    return f"{dt.day:02d} {MESES[dt.month - 1]} {dt.year} {dt.hour:02d}:{dt.minute:02d}"


def formatear_fecha_corta(fecha) -> str:
    """dd/mm/aaaa (reportes)."""
    dt = to_datetime(fecha)
    if dt is None:
        return ""
    dt = _local(dt)
    return dt.strftime("%d/%m/%Y")


def calcular_tiempo_transcurrido(fecha, ahora: datetime | None = None) -> str:
    dt = to_datetime(fecha)
    if dt is None:
        return "-"
    if ahora is None:
        ahora = datetime.now(dt.tzinfo) if dt.tzinfo else datetime.now()
    diferencia = int((ahora - dt).total_seconds())

    if diferencia < 60:
        return "Hace menos de 1 minuto"
    if diferencia < 3600:
        minutos = diferencia // 60
        return f"Hace {minutos} minuto{'s' if minutos > 1 else ''}"
    if diferencia < 86400:
        horas = diferencia // 3600
        return f"Hace {horas} hora{'s' if horas > 1 else ''}"
    dias = diferencia // 86400
    return f"Hace {dias} día{'s' if dias > 1 else ''}"


def hace_texto(segundos: int) -> str:
    segundos = max(0, int(segundos))
    if segundos < 60:
        return f"hace {segundos}s"
    return f"hace {segundos // 60}m"


def _redondear(x: float) -> int:
    # .5 siempre hacia arriba, también en negativos
    return math.floor(x + 0.5)


def calcular_cambio(actual, anterior) -> int:
    actual = to_int(actual)
    anterior = to_int(anterior)
    if anterior == 0:
        return 100 if actual > 0 else 0
    return _redondear((actual - anterior) / anterior * 100)


def texto_cambio(cambio: int) -> tuple[str, str]:
    """(texto, dirección) con dirección en up | down | flat."""
    if cambio > 0:
        return f"{cambio}% vs ayer", "up"
    if cambio < 0:
        return f"{abs(cambio)}% vs ayer", "down"
    return "Sin cambios", "flat"


def porcentaje(parte, total) -> int:
    parte = to_float(parte)
    total = to_float(total)
    if total <= 0:
        return 0
    return _redondear(parte / total * 100)


ICONOS_ESTADO = {
    4: ("📦", "info"),
    5: ("🕒", "warning"),
    6: ("🔄", "warning"),
    7: ("✅", "success"),
}


def icono_estado(estado) -> tuple[str, str]:
    return ICONOS_ESTADO.get(to_int(estado), ("❔", "info"))


def color_progreso(pct) -> str:
    pct = to_int(pct)
    if pct == 0:
        return COLOR_GRIS
    if pct < 30:
        return COLOR_ROJO
    if pct < 70:
        return COLOR_AMBAR
    if pct < 100:
        return COLOR_AZUL
    return COLOR_VERDE


def formato_miles(n) -> str:
    return f"{to_int(n):,}"

