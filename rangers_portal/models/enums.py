import enum


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    REVIEWING = "reviewing"
    APPROVED = "approved"
    REJECTED = "rejected"


class OrganizationType(str, enum.Enum):
    NGO = "ngo"
    IGO = "igo"
    GOVERNMENTAL = "governmental"
    PRIVATE = "private"
    UNIVERSITY = "university"


class NotificationType(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class ViewMode(str, enum.Enum):
    TABLE = "table"
    CARDS = "cards"
