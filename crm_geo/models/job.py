from datetime import datetime
from sqlalchemy import Column, String, DateTime, Float, Text
from crm_geo.database.connection import Base


class JobDB(Base):
    """
    Job row of the CRM.

    The table is owned by the CRM; this service only reads address/coordinates
    and writes lat/lng.
    """
    __tablename__ = "jobs"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=True)
    address_text = Column(Text, nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
