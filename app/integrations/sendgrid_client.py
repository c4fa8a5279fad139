import sendgrid
from sendgrid.helpers.mail import Mail, Email, To, Content
from typing import Dict, Optional
from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)


class SendGridClient:
    """Wrapper for SendGrid email operations"""

    def __init__(self, api_key: str = None, from_email: str = None):
        self.api_key = api_key or Config.SENDGRID_API_KEY
        self.from_email = from_email or Config.SENDGRID_FROM_EMAIL

        if self.api_key:
            self.client = sendgrid.SendGridAPIClient(api_key=self.api_key)
        else:
            self.client = None
            logger.warning("SendGrid API key not configured, emails will only be logged")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def send_email(self, to_email: str, subject: str, html_content: str,
                   plain_content: str = None) -> Optional[Dict]:
        """Send email via SendGrid.

        Returns None when SendGrid is not configured. Delivery errors are
        logged and re-raised so the calling activity is retried.
        """
        if not self.client:
            logger.info(f"Email to {to_email} not sent (SendGrid disabled): {subject}")
            if plain_content:
                logger.info(plain_content)
            return None

        message = Mail(
            from_email=Email(self.from_email, "Background Checks"),
            to_emails=To(to_email),
            subject=subject,
            html_content=Content("text/html", html_content)
        )

        if plain_content:
            message.plain_text_content = Content("text/plain", plain_content)

        try:
            response = self.client.send(message)
        except Exception as e:
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            raise

        return {
            'status_code': response.status_code,
            'message_id': response.headers.get('X-Message-Id')
        }

    def send_consent_request(self, to_email: str, consent_link: str, decline_link: str,
                             deadline: str) -> Optional[Dict]:
        """Ask a candidate to consent to a background check"""
        subject = "Please consent to your background check"
        html_content = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
                <h2>Background Check Consent</h2>
                <p>A prospective employer has requested a background check for {to_email}.</p>
                <p>Please review and respond before {deadline}.</p>
                <p style="margin: 30px 0;">
                    <a href="{consent_link}"
                       style="background-color: #4CAF50; color: white; padding: 14px 28px;
                              text-decoration: none; border-radius: 4px; display: inline-block; margin-right: 10px;">
                        I Consent
                    </a>
                    <a href="{decline_link}"
                       style="background-color: #f44336; color: white; padding: 14px 28px;
                              text-decoration: none; border-radius: 4px; display: inline-block;">
                        Decline
                    </a>
                </p>
                <p style="color: #666; font-size: 12px; margin-top: 40px;">
                    If you do not respond by the deadline the check will be treated as declined.
                </p>
            </body>
        </html>
        """
        plain_content = f"""
        A prospective employer has requested a background check for {to_email}.

        Consent: POST {consent_link}
        Decline: POST {decline_link}

        Please respond before {deadline}.
        """

        return self.send_email(to_email, subject, html_content, plain_content)

    def send_research_request(self, to_email: str, candidate_email: str, search: str,
                              result_link: str, deadline: str) -> Optional[Dict]:
        """Ask the research team to complete one search"""
        subject = f"Search requested: {search.replace('_', ' ')} for {candidate_email}"
        html_content = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
                <h2>New Search Assignment</h2>
                <div style="background-color: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
                    <p><strong>Candidate:</strong> {candidate_email}</p>
                    <p><strong>Search:</strong> {search}</p>
                    <p><strong>Due:</strong> {deadline}</p>
                </div>
                <p>Submit the result to: {result_link}</p>
            </body>
        </html>
        """
        plain_content = f"""
        Candidate: {candidate_email}
        Search: {search}
        Due: {deadline}

        Submit the result: POST {result_link}
        """

        return self.send_email(to_email, subject, html_content, plain_content)
