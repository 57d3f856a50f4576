import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, Enum as SAEnum
from sqlalchemy.sql import func
from rangers_portal.models.base import Base
from rangers_portal.models.enums import ApplicationStatus, OrganizationType


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def _utcnow():
    return datetime.now(timezone.utc)


class Application(Base):
    __tablename__ = "applications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    application_id = Column(Text, nullable=False, index=True)
    full_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    organization = Column(Text, nullable=False)
    organization_type = Column(
        SAEnum(OrganizationType, name="organization_type_enum", values_callable=_enum_values),
        nullable=False,
    )
    selected_topic = Column(Integer, nullable=False)
    selected_module = Column(Text, nullable=False)
    motivation = Column(Text, nullable=False)
    cv_url = Column(Text)
    recommendation_letter_url = Column(Text)
    logo_url = Column(Text)
    status = Column(
        SAEnum(ApplicationStatus, name="application_status_enum", values_callable=_enum_values),
        nullable=False,
        default=ApplicationStatus.PENDING,
        server_default=ApplicationStatus.PENDING.value,
    )
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
    reviewed_at = Column(TIMESTAMP(timezone=True))
    reviewed_by = Column(Text)
    admin_notes = Column(Text)
