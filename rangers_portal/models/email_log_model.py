from sqlalchemy import Column, BigInteger, Integer, String, Text, TIMESTAMP, ForeignKey
from sqlalchemy.sql import func
from rangers_portal.models.base import Base


class EmailLog(Base):
    __tablename__ = "email_logs"

    # SQLite only autoincrements INTEGER primary keys.
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    application_id = Column(String(36), ForeignKey("applications.id", ondelete="RESTRICT"), nullable=False)
    recipient = Column(Text, nullable=False)
    subject = Column(Text, nullable=False)
    sent_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
