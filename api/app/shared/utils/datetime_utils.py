"""
Utilidades para manejo de fechas y horas.
"""
from datetime import datetime, timezone


# Formato fijo para que las marcas ordenen lexicograficamente
ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class DateTimeUtils:
    """Clase de utilidades para operaciones con fechas y horas."""

    @staticmethod
    def now_utc() -> datetime:
        """
        Obtiene la fecha y hora actual en UTC.

        Returns:
            datetime: Fecha y hora actual en UTC
        """
        return datetime.now(timezone.utc)

    @staticmethod
    def now_iso() -> str:
        """
        Marca de tiempo actual en ISO 8601 (UTC, sufijo Z).

        Returns:
            str: Fecha en formato ISO 8601
        """
        return DateTimeUtils.to_iso_string(DateTimeUtils.now_utc())

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """
        Convierte un datetime a string ISO 8601 normalizado a UTC.

        Args:
            dt: Objeto datetime (naive se asume UTC)

        Returns:
            str: Fecha en formato ISO 8601
        """
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc).strftime(ISO_FORMAT)

