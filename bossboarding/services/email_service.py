import html
import logging
import httpx
from typing import Optional, List, Union
from bossboarding.config import settings
from bossboarding.schemas.customer import Customer

logger = logging.getLogger(__name__)


class EmailService:
    """Transactional email through the Resend HTTP API."""

    def __init__(self):
        self.base_url = settings.RESEND_API_URL.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(settings.RESEND_API_KEY)

    async def send_email(self, to: Union[str, List[str]], subject: str, html_body: str) -> dict:
        """
        Send one email

        Returns:
            {"success": True, "id": ...} or {"success": False, "error": ...}
        """
        if not self.configured:
            logger.warning(f"Email not sent (provider not configured): {subject}")
            return {"success": False, "error": "Email provider is not configured"}

        recipients = [to] if isinstance(to, str) else list(to)
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    f"{self.base_url}/emails",
                    headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
                    json={
                        "from": settings.EMAIL_FROM,
                        "to": recipients,
                        "subject": subject,
                        "html": html_body,
                    },
                )
                body = response.json()
                if response.status_code >= 400:
                    error = body.get("message") or f"HTTP {response.status_code}"
                    logger.error(f"Email send failed ({subject}): {error}")
                    return {"success": False, "error": error}
                return {"success": True, "id": body.get("id")}
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Email send failed ({subject}): {e}")
            return {"success": False, "error": str(e)}

    async def send_onboarding_submitted(self, customer: Customer) -> dict:
        """Confirmation to the customer and a review notice to the admin inbox"""
        name = html.escape(customer.owner_name or customer.business_name)
        business = html.escape(customer.business_name)
        results = {}

        if customer.email:
            results["customer"] = await self.send_email(
                customer.email,
                f"Thanks for completing your onboarding, {customer.business_name}",
                f"""<h2>Welcome to Laundry Boss, {name}!</h2>
<p>We received the onboarding details for <strong>{business}</strong>.</p>
<p>Our team will review everything and reach out about next steps.
Your estimated installation date is {customer.installation_date or 'to be scheduled'}.</p>
<p>You can check your status anytime in the customer portal: {settings.SITE_URL}/portal</p>""",
            )

        if settings.ADMIN_EMAIL:
            results["admin"] = await self.send_email(
                settings.ADMIN_EMAIL,
                f"Onboarding submitted: {customer.business_name}",
                f"""<h2>{business} submitted onboarding</h2>
<p>Owner: {name} ({html.escape(customer.email)}, {html.escape(customer.phone)})</p>
<p>Machines: {len(customer.machines)} &middot; Employees: {len(customer.employees)}</p>
<p>Review: {settings.SITE_URL}/admin/customers/{customer.id}</p>""",
            )

        return results

    async def send_onboarding_complete(self, customer: Customer) -> dict:
        name = html.escape(customer.owner_name or customer.business_name)
        results = {}
        if customer.email:
            results["customer"] = await self.send_email(
                customer.email,
                f"{customer.business_name} is live on Laundry Boss",
                f"""<h2>Congratulations, {name}!</h2>
<p>Onboarding for <strong>{html.escape(customer.business_name)}</strong> is complete.</p>
<p>Go-live date: {customer.go_live_date or 'today'}</p>""",
            )
        return results

    async def send_password_reset(self, email: str, name: Optional[str], reset_link: str) -> dict:
        greeting = f"Hi {html.escape(name)}," if name else "Hi,"
        return await self.send_email(
            email,
            "Reset your Laundry Boss portal password",
            f"""<p>{greeting}</p>
<p>Use the link below to set a new password. It expires in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes.</p>
<p><a href="{reset_link}">{reset_link}</a></p>""",
        )

    async def send_test(self, to: str) -> dict:
        return await self.send_email(
            to,
            "BossBoarding test email",
            "<p>Email delivery is configured correctly.</p>",
        )


# Singleton instance
email_service = EmailService()
