# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# Sans cet import, les FK comme registrations.returning_child_id → prior_year_roster.id
# échouent avec NoReferencedTableError si roster.py n'est pas chargé avant registration.py.

from app.models.roster import PriorYearChild  # noqa: F401  (doit précéder registration)
from app.models.registration import Registration  # noqa: F401
from app.models.vbs_class import VbsClass, ClassSection, ClassAllocation  # noqa: F401
from app.models.teacher import Teacher, SectionTeacher  # noqa: F401
