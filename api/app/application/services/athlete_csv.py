"""
Exportacion e importacion de atletas en CSV.
"""
import csv
import io
from typing import Dict, Iterator, List, Optional, Tuple

from app.domain.entities.athlete import Athlete, AthleteContact
from app.shared.constants.athlete_constants import (
    AthleteLevel,
    AthleteStatus,
    DEFAULT_SPORT,
    ScoutingStatus,
)
from app.shared.exceptions.domain import ValidationException


EXPORT_HEADERS = [
    "Name",
    "Age",
    "Position",
    "Sport",
    "Level",
    "County",
    "Location",
    "Scouting Status",
    "Email",
    "Phone",
    "Bio",
    "Training Program",
    "Goals",
    "Assists",
    "Matches",
    "Created At",
]


def _number(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def athlete_to_row(athlete: Athlete) -> List[str]:
    contact = athlete.contact or AthleteContact()
    stats = athlete.stats or {}
    return [
        athlete.name,
        _number(athlete.age),
        athlete.position or "",
        athlete.sport or "",
        athlete.level or "",
        athlete.county or "",
        athlete.location or "",
        athlete.scouting_status or "",
        contact.email or "",
        contact.phone or "",
        athlete.bio or "",
        athlete.training_program or "",
        _number(stats.get("goals")),
        _number(stats.get("assists")),
        _number(stats.get("matches")),
        athlete.created_at or "",
    ]


def athletes_to_csv(athletes: List[Athlete]) -> str:
    """
    Serializa atletas a CSV: todos los campos entre comillas dobles y las
    comillas internas duplicadas.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for athlete in athletes:
        writer.writerow(athlete_to_row(athlete))
    return buffer.getvalue()


def _parse_int(raw: str, column: str) -> Optional[int]:
    raw = raw.strip()
    if not raw:
        return None
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        raise ValidationException(f"Invalid number in '{column}': {raw}", field=column)


def _choice(raw: str, allowed, default: str, column: str) -> str:
    value = raw.strip() or default
    if value not in {item.value for item in allowed}:
        raise ValidationException(f"Invalid value in '{column}': {value}", field=column)
    return value


def row_to_athlete(row: Dict[str, str], created_by: Optional[str]) -> Athlete:
    """
    Construye un atleta desde una fila ya indexada por cabecera.

    Los campos opcionales vacios se omiten; los obligatorios toman su
    valor por defecto.
    """
    def text(column: str) -> Optional[str]:
        value = (row.get(column) or "").strip()
        return value or None

    stats = {
        key: value
        for key, value in (
            ("goals", _parse_int(row.get("Goals", ""), "Goals")),
            ("assists", _parse_int(row.get("Assists", ""), "Assists")),
            ("matches", _parse_int(row.get("Matches", ""), "Matches")),
        )
        if value is not None
    }
    email, phone = text("Email"), text("Phone")

    return Athlete(
        name=text("Name") or "",
        age=_parse_int(row.get("Age", ""), "Age"),
        position=text("Position"),
        sport=text("Sport") or DEFAULT_SPORT,
        level=_choice(row.get("Level", ""), AthleteLevel, AthleteLevel.GRASSROOTS.value, "Level"),
        county=text("County"),
        location=text("Location"),
        scouting_status=_choice(
            row.get("Scouting Status", ""), ScoutingStatus, ScoutingStatus.ACTIVE.value, "Scouting Status"
        ),
        contact=AthleteContact(email=email, phone=phone) if (email or phone) else None,
        bio=text("Bio"),
        training_program=text("Training Program"),
        stats=stats,
        created_by=created_by,
        status=AthleteStatus.ACTIVE.value,
    )


def iter_csv_rows(csv_text: str) -> Iterator[Tuple[int, Dict[str, str]]]:
    """
    Recorre las filas de datos como (numero de fila, valores por cabecera).

    La cabecera es la fila 1; las filas vacias se saltan pero cuentan.
    Si falta la cabecera esperada se usa el orden de ``EXPORT_HEADERS``.
    """
    reader = csv.reader(io.StringIO(csv_text.lstrip("\ufeff")))
    header = next(reader, None)
    if header is None:
        return
    header = [h.strip() for h in header]
    columns = header if "Name" in header else EXPORT_HEADERS

    for row_number, values in enumerate(reader, start=2):
        if not any(v.strip() for v in values):
            continue
        yield row_number, {column: values[i] if i < len(values) else "" for i, column in enumerate(columns)}
