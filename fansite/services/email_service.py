"""Transactional mail through the Resend HTTP API."""

import logging

import httpx

from fansite.config import get_settings
from fansite.core.retry import RetryConfig, retry_async
from fansite.core.tasks import TaskManager

logger = logging.getLogger(__name__)
settings = get_settings()


class EmailService:
    """Sends verification and password-reset mails; a missing API key disables sending."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client

    async def _post(self, payload: dict) -> httpx.Response:
        async def send(client: httpx.AsyncClient) -> httpx.Response:
            response = await client.post(
                settings.resend_api_url,
                json=payload,
                headers={"Authorization": f"Bearer {settings.resend_api_key}"},
            )
            response.raise_for_status()
            return response

        if self._client is not None:
            return await retry_async(send, self._client, config=RetryConfig.from_settings())
        async with httpx.AsyncClient(timeout=settings.http_request_timeout) as client:
            return await retry_async(send, client, config=RetryConfig.from_settings())

    async def send(self, to: str, subject: str, html: str) -> bool:
        if not settings.resend_api_key:
            logger.warning(f"RESEND_API_KEY not set - skipping email '{subject}' to {to}")
            return False
        try:
            await self._post({"from": settings.email_from, "to": [to], "subject": subject, "html": html})
        except httpx.HTTPError as e:
            logger.error(f"Failed to send email '{subject}' to {to}: {e}")
            return False
        logger.info(f"Sent email '{subject}' to {to}")
        return True

    async def send_verification(self, to: str, token: str) -> bool:
        link = f"{settings.frontend_url}/verify-email?token={token}"
        return await self.send(
            to,
            "Verify your email address",
            f"<p>Welcome! Confirm your address by opening <a href=\"{link}\">this link</a>.</p>",
        )

    async def send_password_reset(self, to: str, token: str) -> bool:
        link = f"{settings.frontend_url}/reset-password?token={token}"
        return await self.send(
            to,
            "Reset your password",
            f"<p>Reset your password <a href=\"{link}\">here</a>. "
            f"The link expires in {settings.password_reset_ttl_minutes} minutes.</p>",
        )


def send_in_background(coro, name: str) -> None:
    """Fire-and-forget a mail coroutine through the TaskManager."""
    TaskManager.get_instance().create_task(coro, name=name)
