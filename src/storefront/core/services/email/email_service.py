"""Transactional email over SMTP with Jinja2 HTML templates."""

import uuid
from collections.abc import Awaitable
from decimal import Decimal
from email.message import EmailMessage
from email.utils import formataddr, formatdate
from pathlib import Path
from typing import Any

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from loguru import logger

from src.storefront.core.errors import EmailDeliveryError
from src.storefront.runtime.config.config_data import EmailConfig

TEMPLATE_DIR = Path(__file__).parent / "templates"


def format_brl(value: Decimal | float | int) -> str:
    """``1234.5`` -> ``R$ 1.234,50``"""
    amount = Decimal(str(value)).quantize(Decimal("0.01"))
    integer, _, cents = f"{amount:,.2f}".partition(".")
    return f"R$ {integer.replace(',', '.')},{cents}"


class EmailService:
    """Renders and delivers the store's transactional messages.

    When SMTP is disabled the rendered message is logged instead of sent, which
    keeps development and tests free of network access.
    """

    def __init__(self, config: EmailConfig | None = None, base_url: str = "http://localhost:8000"):
        self._config = config or EmailConfig()
        self._base_url = base_url.rstrip("/")
        self._env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["brl"] = format_brl

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def render(self, template_name: str, **context: Any) -> str:
        template = self._env.get_template(template_name)
        return template.render(store_name=self._config.from_name, base_url=self._base_url, **context)

    def build_message(
        self, to: str, subject: str, html: str, reply_to: str | None = None
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self._config.from_name, self._config.from_address))
        message["To"] = to
        message["Subject"] = subject
        message["Date"] = formatdate(localtime=True)
        domain = self._config.from_address.rpartition("@")[2] or "localhost"
        message["Message-ID"] = f"<{uuid.uuid4().hex}@{domain}>"
        if reply_to:
            message["Reply-To"] = reply_to
        message.set_content("Este e-mail requer um cliente com suporte a HTML.")
        message.add_alternative(html, subtype="html")
        return message

    async def send(self, to: str, subject: str, html: str, reply_to: str | None = None) -> None:
        """Deliver one message.

        Raises:
            EmailDeliveryError: if the SMTP exchange fails
        """
        message = self.build_message(to, subject, html, reply_to)

        if not self._config.enabled:
            logger.bind(to=to, subject=subject).info(
                "Email delivery disabled; message not sent:\n{}", html
            )
            return

        smtp = aiosmtplib.SMTP(
            hostname=self._config.host,
            port=self._config.port,
            timeout=self._config.timeout,
            use_tls=self._config.port == 465,
            start_tls=False,
            validate_certs=self._config.validate_certs,
        )
        try:
            await smtp.connect()
            if self._config.port == 587:
                await smtp.starttls()
            if self._config.username and self._config.password:
                await smtp.login(self._config.username, self._config.password)
            await smtp.send_message(message)
        except aiosmtplib.SMTPException as exc:
            logger.bind(to=to, subject=subject).error("SMTP delivery failed: {}", exc)
            raise EmailDeliveryError(f"Could not deliver email: {exc}") from exc
        finally:
            if smtp.is_connected:
                try:
                    await smtp.quit()
                except aiosmtplib.SMTPException as exc:
                    logger.debug("SMTP quit failed: {}", exc)

        logger.bind(to=to, subject=subject).info("Email sent")

    async def send_verification_email(self, email: str, name: str, token: str) -> None:
        url = f"{self._base_url}/verificar-email?token={token}"
        html = self.render("verification.html", name=name, verification_url=url)
        await self.send(email, f"Verifique sua conta - {self._config.from_name}", html)

    async def send_password_reset_email(self, email: str, name: str, token: str) -> None:
        url = f"{self._base_url}/redefinir-senha?token={token}"
        html = self.render("password_reset.html", name=name, reset_url=url)
        await self.send(email, f"Redefinir senha - {self._config.from_name}", html)

    async def send_tracking_email(
        self,
        email: str,
        name: str,
        order_number: str,
        tracking_code: str,
        tracking_url: str | None,
        shipping_company: str | None,
    ) -> None:
        html = self.render(
            "tracking.html",
            name=name,
            order_number=order_number,
            tracking_code=tracking_code,
            tracking_url=tracking_url,
            shipping_company=shipping_company or "Correios",
        )
        await self.send(
            email, f"Rastreamento do pedido {order_number} - {self._config.from_name}", html
        )

    async def send_payment_confirmation_email(
        self,
        email: str,
        name: str,
        order_number: str,
        total_amount: Decimal,
        items: list[dict[str, Any]],
    ) -> None:
        """``items`` carry ``name``, ``quantity`` and ``price``."""
        html = self.render(
            "payment_confirmation.html",
            name=name,
            order_number=order_number,
            total_amount=total_amount,
            items=items,
        )
        await self.send(
            email, f"Pagamento aprovado - pedido {order_number} - {self._config.from_name}", html
        )

    async def send_order_shipped_email(
        self,
        email: str,
        name: str,
        order_number: str,
        tracking_code: str,
        tracking_url: str | None,
        shipping_company: str | None,
        estimated_delivery: str | None = None,
    ) -> None:
        html = self.render(
            "order_shipped.html",
            name=name,
            order_number=order_number,
            tracking_code=tracking_code,
            tracking_url=tracking_url,
            shipping_company=shipping_company or "Correios",
            estimated_delivery=estimated_delivery or "5 a 10 dias úteis",
        )
        await self.send(
            email, f"Seu pedido foi enviado! - {order_number} - {self._config.from_name}", html
        )

    async def send_contact_message(
        self, name: str, email: str, subject: str, message: str, phone: str | None = None
    ) -> None:
        recipient = self._config.contact_address or self._config.from_address
        html = self.render(
            "contact.html", name=name, email=email, phone=phone, subject=subject, message=message
        )
        await self.send(recipient, f"[Contato] {subject}", html, reply_to=email)


async def send_safely(delivery: Awaitable[None], description: str) -> bool:
    """Await an email delivery, logging instead of raising when SMTP fails.

    Used after a database write has already been committed, where a mail
    failure must not turn the request into an error.
    """
    try:
        await delivery
    except EmailDeliveryError as exc:
        logger.bind(email=description).warning("Email not delivered: {}", exc.message)
        return False
    return True
