# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# schedules doit précéder persons, persons et qr_credentials précèdent attendances.

from stafftrack.models.schedule import Schedule  # noqa: F401
from stafftrack.models.person import Person  # noqa: F401
from stafftrack.models.credential import QrCredential  # noqa: F401
from stafftrack.models.attendance import AttendanceRecord  # noqa: F401
from stafftrack.models.report import AttendanceReport  # noqa: F401
from stafftrack.models.justification import JustificationRequest  # noqa: F401
