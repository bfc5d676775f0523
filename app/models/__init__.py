from app.models.person import Person  # noqa: F401
from app.models.business import BusinessEntity  # noqa: F401
from app.models.document import (  # noqa: F401
    AccessLevel,
    Document,
    DocumentComment,
    DocumentShare,
    DocumentStatus,
    DocumentTag,
    DocumentTagAssignment,
    DocumentVersion,
    IntegrityStatus,
    SharePermission,
)
from app.models.compliance import (  # noqa: F401
    ComplianceEvent,
    ComplianceEventStatus,
    CompliancePriority,
)
from app.models.notification import Notification  # noqa: F401
