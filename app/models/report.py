from sqlalchemy import Column, String, DateTime, JSON
from .base import BaseModel


class StoredReport(BaseModel):
    __tablename__ = 'reports'

    # Workflow id of the case; one report per case
    case_id = Column(String(320), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)

    tier = Column(String(50), nullable=False)
    package = Column(String(100), nullable=False)
    verdict = Column(String(20), nullable=False)  # pass, fail

    completed_at = Column(DateTime)

    # Full report as produced by the case workflow
    report_data = Column(JSON, nullable=False)
