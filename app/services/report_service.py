from datetime import datetime
from typing import Dict, Optional
from app.database import DatabaseManager, get_db
from app.models import StoredReport
from app.workflows.types import Report
from app.utils.logger import get_logger

logger = get_logger(__name__)


class ReportService:
    """Service for storing finished case reports"""

    def __init__(self):
        self.db = DatabaseManager(StoredReport)

    def save_report(self, report: Report) -> str:
        """Store a report, replacing any earlier copy for the same case.

        Safe to call repeatedly for one case; the activity that calls this may
        be retried after a partial failure.
        """
        completed_at = datetime.fromisoformat(report.completed_at) if report.completed_at else None
        data = report.to_dict()

        with get_db() as db:
            stored = db.query(StoredReport).filter_by(case_id=report.case_id).first()
            if stored:
                stored.verdict = report.verdict
                stored.completed_at = completed_at
                stored.report_data = data
                logger.info(f"Replaced stored report for {report.case_id}")
            else:
                db.add(StoredReport(
                    case_id=report.case_id,
                    email=report.email,
                    tier=report.tier,
                    package=report.package,
                    verdict=report.verdict,
                    completed_at=completed_at,
                    report_data=data
                ))
                logger.info(f"Stored report for {report.case_id} (verdict: {report.verdict})")

        return report.case_id

    def get_report(self, case_id: str) -> Optional[Dict]:
        """Get a stored report by case id"""
        stored = self.db.get_by(case_id=case_id)
        return stored.report_data if stored else None
