from typing import Dict, Optional
from app.integrations import SendGridClient
from app.utils.tokens import token_path
from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Service for candidate and researcher notifications"""

    def __init__(self, sendgrid: SendGridClient = None, app_url: str = None,
                 researcher_email: str = None):
        self.sendgrid = sendgrid or SendGridClient()
        self.app_url = (app_url or Config.APP_URL).rstrip('/')
        self.researcher_email = researcher_email or Config.RESEARCHER_EMAIL

    def check_link(self, token: str, action: str) -> str:
        """Gateway URL that completes the activity holding ``token``"""
        return f"{self.app_url}/checks/{token_path(token)}/{action}"

    def send_consent_request(self, candidate_email: str, token: str, deadline: str) -> Optional[Dict]:
        """Send the candidate their consent and decline links"""
        result = self.sendgrid.send_consent_request(
            candidate_email,
            consent_link=self.check_link(token, 'consent'),
            decline_link=self.check_link(token, 'decline'),
            deadline=deadline
        )
        logger.info(f"Sent consent request to {candidate_email}")
        return result

    def send_research_request(self, candidate_email: str, kind: str, token: str,
                              deadline: str) -> Optional[Dict]:
        """Send the research team the link for one search"""
        result = self.sendgrid.send_research_request(
            self.researcher_email,
            candidate_email=candidate_email,
            search=kind,
            result_link=self.check_link(token, 'search'),
            deadline=deadline
        )
        logger.info(f"Sent {kind} research request for {candidate_email}")
        return result
