"""
Lecture typée d'une ligne de présence.

Les colonnes héritées (marked_by texte, horodatages nullables, justification) encodent
un état implicite. Ce module est le seul endroit qui les interprète :

- origin_of()   : marked_by → Origin(SYSTEM | SCAN | MANUAL(acteur))
- classify()    : ligne → Placeholder | ScanRecorded | ManualOverride | Justified
- precedence()  : clé d'autorité utilisée partout où il faut choisir « quelle ligne gagne »

Une feuille générée (placeholder) a marked_by = "Sistema" et une entrée à 00:00:0x :
ce n'est jamais une vraie observation.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple, Union

from stafftrack.models.attendance import AttendanceRecord

SYSTEM_MARKER = "Sistema"
QR_MARKER = "QR"
MANUAL_MARK_TOKEN = "MANUAL_MARK"

AUTO_SHEET_JUSTIFICATION = "Hoja de asistencia creada automáticamente"
DEFAULT_MANUAL_JUSTIFICATION = "Marcado manual por administrador"

PLACEHOLDER_MAX_SECONDS = 5


class OriginKind(str, enum.Enum):
    SYSTEM = "SYSTEM"
    SCAN = "SCAN"
    MANUAL = "MANUAL"


@dataclass(frozen=True)
class Origin:
    kind: OriginKind
    actor: Optional[str] = None

    def to_marker(self) -> Optional[str]:
        if self.kind is OriginKind.SYSTEM:
            return SYSTEM_MARKER
        if self.kind is OriginKind.SCAN:
            return QR_MARKER
        return self.actor


def origin_of(record: AttendanceRecord) -> Origin:
    marker = (record.marked_by or "").strip()
    if marker.lower() == SYSTEM_MARKER.lower():
        return Origin(OriginKind.SYSTEM)
    if marker == QR_MARKER:
        return Origin(OriginKind.SCAN)
    if not marker:
        # Lignes anciennes sans origine : un marquage non manuel vient forcément d'un scan
        return Origin(OriginKind.MANUAL) if record.is_manual else Origin(OriginKind.SCAN)
    return Origin(OriginKind.MANUAL, actor=marker)


# --- Variantes d'état -------------------------------------------------------

@dataclass(frozen=True)
class Placeholder:
    day: date


@dataclass(frozen=True)
class ScanRecorded:
    entry: datetime
    exit: Optional[datetime]


@dataclass(frozen=True)
class ManualOverride:
    entry: Optional[datetime]
    exit: Optional[datetime]
    reason: Optional[str]
    actor: Optional[str]


@dataclass(frozen=True)
class Justified:
    reason: str
    actor: Optional[str]


RecordState = Union[Placeholder, ScanRecorded, ManualOverride, Justified]


# --- Prédicats sur les horodatages -----------------------------------------

def is_midnight(value: Optional[datetime]) -> bool:
    """Vrai si l'horodatage tombe à 00:00 (heure et minute nulles)."""
    return value is not None and value.hour == 0 and value.minute == 0


def is_real_time(value: Optional[datetime]) -> bool:
    return value is not None and not is_midnight(value)


def has_real_time(record: AttendanceRecord) -> bool:
    """Entrée ou sortie avec une heure réelle (différente de 00:00)."""
    return is_real_time(record.entry_time) or is_real_time(record.exit_time)


def is_placeholder(record: AttendanceRecord) -> bool:
    entry = record.entry_time
    return (
        origin_of(record).kind is OriginKind.SYSTEM
        and entry is not None
        and entry.hour == 0
        and entry.minute == 0
        and entry.second < PLACEHOLDER_MAX_SECONDS
    )


def is_auto_justification(text: Optional[str]) -> bool:
    """Textes générés par le système, qui ne valent pas justification."""
    if not text or not text.strip():
        return True
    return AUTO_SHEET_JUSTIFICATION in text or text.strip() == DEFAULT_MANUAL_JUSTIFICATION


def has_valid_justification(record: AttendanceRecord) -> bool:
    return not is_auto_justification(record.justification)


def is_qr_verified(record: AttendanceRecord) -> bool:
    """Présence réelle vérifiée par scan : origine QR avec entrée ou sortie hors minuit."""
    return origin_of(record).kind is OriginKind.SCAN and has_real_time(record)


def record_day(record: AttendanceRecord) -> Optional[date]:
    """Jour de rattachement : entrée, sinon sortie, sinon création."""
    for value in (record.entry_time, record.exit_time, record.created_at):
        if value is not None:
            return value.date()
    return None


# --- Normalisation et priorité ----------------------------------------------

def classify(record: AttendanceRecord) -> RecordState:
    """Normalise une ligne stockée vers sa variante d'état."""
    if is_placeholder(record):
        return Placeholder(day=record.entry_time.date())

    origin = origin_of(record)
    if has_valid_justification(record) and not has_real_time(record):
        return Justified(reason=record.justification, actor=origin.actor)
    if origin.kind is OriginKind.SCAN and record.entry_time is not None:
        return ScanRecorded(entry=record.entry_time, exit=record.exit_time)
    return ManualOverride(
        entry=record.entry_time,
        exit=record.exit_time,
        reason=record.justification,
        actor=origin.actor,
    )


def precedence(record: AttendanceRecord) -> Tuple[int, int, int]:
    """
    Clé d'autorité d'une ligne (la plus grande gagne) :
    1. heure réelle > feuille / justification à minuit
    2. origine humaine ou scan > "Sistema"
    3. id le plus élevé (le plus récent)
    """
    real = 1 if has_real_time(record) else 0
    not_system = 0 if origin_of(record).kind is OriginKind.SYSTEM else 1
    return real, not_system, record.id or 0
