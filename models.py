from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
import uuid_utils
import uuid


def generate_uuid7():
    """Generate UUIDv7 and convert to standard Python UUID"""
    uuid7_obj = uuid_utils.uuid7()
    return uuid.UUID(str(uuid7_obj))

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON on SQLite and friends
JSONType = JSON().with_variant(JSONB(), "postgresql")


class QueueRecord(Base):
    __tablename__ = 'queue'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=generate_uuid7)
    channel = Column(JSONType, nullable=False)
    channel_xmltv_id = Column(String(200), nullable=False, index=True)
    site = Column(String(200), nullable=False)
    site_id = Column(String(500), nullable=False)
    lang = Column(String(20))
    date = Column(String(32), nullable=False, index=True)
    config_path = Column(String(1000), nullable=False)
    groups = Column(JSONType, nullable=False)
    cluster_id = Column(Integer, index=True)
    error = Column(Text)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    __table_args__ = (
        Index('ix_queue_channel_date', 'channel_xmltv_id', 'date'),
    )

    def __repr__(self):
        return (
            f"<QueueRecord(id={self.id}, site='{self.site}', site_id='{self.site_id}', "
            f"date='{self.date}', cluster={self.cluster_id})>"
        )
