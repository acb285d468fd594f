"""Transactional email over SMTP."""

import os
from collections.abc import Awaitable
from email.message import EmailMessage

import aiosmtplib
import structlog

from dreamland.services.errors import EmailDeliveryError
from dreamland.services.i18n import DEFAULT_LOCALE, translate

logger = structlog.get_logger(__name__)


def _money(value) -> str:
    return f"{float(value or 0):,.2f}"


class Mailer:
    """Sends localised transactional emails through ``aiosmtplib``.

    When SMTP is not configured every send is logged as ``email_skipped`` and
    reports False, so development and tests need no mail server. Delivery
    failures raise EmailDeliveryError; use :func:`send_best_effort` where an
    email must not fail the request.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        admin_email: str | None = None,
    ):
        self.host = host if host is not None else os.getenv("SMTP_HOST", "")
        self.port = port or int(os.getenv("SMTP_PORT", "587"))
        self.username = username if username is not None else os.getenv("SMTP_USERNAME")
        self.password = password if password is not None else os.getenv("SMTP_PASSWORD")
        self.sender = sender or os.getenv("EMAIL_FROM", "Dreamland Travel <no-reply@dreamland.local>")
        self.admin_email = admin_email or os.getenv(
            "ADMIN_NOTIFICATION_EMAIL", os.getenv("ADMIN_EMAIL", "")
        )

    @property
    def configured(self) -> bool:
        return bool(self.host)

    async def send(
        self,
        to: str,
        subject: str,
        body: str,
        reply_to: str | None = None,
        template: str = "custom",
    ) -> bool:
        """Send a plain-text email.

        Returns:
            True if handed to the SMTP server, False if SMTP is not configured

        Raises:
            EmailDeliveryError: If the SMTP exchange fails
        """
        if not to:
            logger.warning("email_without_recipient", template=template)
            return False
        if not self.configured:
            logger.info("email_skipped", template=template, reason="smtp_not_configured")
            return False

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        if reply_to:
            message["Reply-To"] = reply_to
        message.set_content(body)

        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.port == 587,
                use_tls=self.port == 465,
                timeout=10,
            )
        except aiosmtplib.SMTPException as exc:
            raise EmailDeliveryError(f"SMTP delivery failed: {exc}") from exc

        logger.info("email_sent", template=template)
        return True

    # ========== Templates ==========

    def _compose(self, locale: str, key: str, *, greet: str | None = None, **params) -> tuple[str, str]:
        subject = translate(locale, f"email.{key}.subject", **params)
        parts = []
        if greet:
            parts.append(translate(locale, "common.greeting", name=greet))
        parts.append(translate(locale, f"email.{key}.body", **params))
        if params.get("reference"):
            parts.append(translate(locale, "common.booking_reference", reference=params["reference"]))
        parts.append(translate(locale, "common.signature"))
        return subject, "\n\n".join(parts)

    def _payment_line(self, locale: str, url: str | None = None, bank_ref: str | None = None) -> str:
        if url:
            return translate(locale, "email.pay_by_card", url=url)
        if bank_ref:
            return translate(locale, "email.pay_by_bank", reference=bank_ref)
        return translate(locale, "email.pay_later")

    async def send_payment_info(
        self,
        *,
        to: str,
        name: str,
        tour: str,
        total,
        advance,
        reference: str,
        payment_url: str | None = None,
        locale: str = DEFAULT_LOCALE,
    ) -> bool:
        subject, body = self._compose(
            locale,
            "payment_info",
            greet=name,
            tour=tour,
            total=_money(total),
            advance=_money(advance),
            reference=reference,
            payment_line=self._payment_line(locale, url=payment_url),
        )
        return await self.send(to, subject, body, template="payment_info")

    async def send_payment_link(
        self,
        *,
        to: str,
        name: str,
        tour: str,
        amount,
        currency: str,
        url: str,
        reference: str,
        locale: str = DEFAULT_LOCALE,
    ) -> bool:
        subject, body = self._compose(
            locale,
            "payment_link",
            greet=name,
            tour=tour,
            amount=_money(amount),
            currency=currency.upper(),
            url=url,
            reference=reference,
        )
        return await self.send(to, subject, body, template="payment_link")

    async def send_payment_confirmation(
        self,
        *,
        to: str,
        name: str,
        tour: str,
        amount,
        paid,
        total,
        reference: str,
        currency: str = "USD",
        locale: str = DEFAULT_LOCALE,
    ) -> bool:
        subject, body = self._compose(
            locale,
            "payment_confirmation",
            greet=name,
            tour=tour,
            amount=_money(amount),
            paid=_money(paid),
            total=_money(total),
            currency=currency.upper(),
            reference=reference,
        )
        return await self.send(to, subject, body, template="payment_confirmation")

    async def send_booking_confirmation(
        self,
        *,
        to: str,
        name: str,
        tour: str,
        total,
        paid,
        reference: str,
        locale: str = DEFAULT_LOCALE,
    ) -> bool:
        subject, body = self._compose(
            locale,
            "booking_confirmation",
            greet=name,
            tour=tour,
            total=_money(total),
            paid=_money(paid),
            remaining=_money(max(float(total or 0) - float(paid or 0), 0)),
            reference=reference,
        )
        return await self.send(to, subject, body, template="booking_confirmation")

    async def send_payment_reminder(
        self,
        *,
        to: str,
        name: str,
        tour: str,
        paid,
        advance,
        reference: str,
        payment_url: str | None = None,
        locale: str = DEFAULT_LOCALE,
    ) -> bool:
        subject, body = self._compose(
            locale,
            "payment_reminder",
            greet=name,
            tour=tour,
            paid=_money(paid),
            advance=_money(advance),
            outstanding=_money(max(float(advance or 0) - float(paid or 0), 0)),
            reference=reference,
            payment_line=self._payment_line(locale, url=payment_url),
        )
        return await self.send(to, subject, body, template="payment_reminder")

    async def send_inquiry_auto_reply(
        self, *, to: str, name: str, locale: str = DEFAULT_LOCALE
    ) -> bool:
        subject, body = self._compose(locale, "inquiry_auto_reply", greet=name)
        return await self.send(to, subject, body, template="inquiry_auto_reply")

    async def send_inquiry_admin_notification(self, *, inquiry) -> bool:
        subject, body = self._compose(
            DEFAULT_LOCALE,
            "inquiry_admin",
            name=inquiry.full_name,
            email=inquiry.email,
            phone=inquiry.phone or "-",
            country=inquiry.country or "-",
            tour=inquiry.tour_name or "-",
            month=inquiry.travel_month or "-",
            group=inquiry.group_size or "-",
            budget=inquiry.budget_range or "-",
            message=inquiry.message or "",
        )
        return await self.send(
            self.admin_email, subject, body, reply_to=inquiry.email, template="inquiry_admin"
        )

    async def send_inquiry_payment_link(
        self,
        *,
        to: str,
        name: str,
        tour: str,
        amount,
        currency: str,
        payment_url: str | None = None,
        bank_ref: str | None = None,
        locale: str = DEFAULT_LOCALE,
    ) -> bool:
        subject, body = self._compose(
            locale,
            "inquiry_payment_link",
            greet=name,
            tour=tour,
            amount=_money(amount),
            currency=currency.upper(),
            payment_line=self._payment_line(locale, url=payment_url, bank_ref=bank_ref),
        )
        return await self.send(to, subject, body, template="inquiry_payment_link")

    async def send_internal_notification(self, *, request_info) -> bool:
        subject, body = self._compose(
            DEFAULT_LOCALE,
            "internal_notification",
            tour=request_info.tour_name or "-",
            name=request_info.full_name,
            email=request_info.email,
            phone=request_info.phone or "-",
            adults=request_info.adults,
            children=request_info.children,
            date=request_info.preferred_start_date.date().isoformat()
            if request_info.preferred_start_date
            else "-",
            consent="yes" if request_info.marketing_consent else "no",
            message=request_info.message or "",
            reference=request_info.id,
        )
        return await self.send(
            self.admin_email,
            subject,
            body,
            reply_to=request_info.email,
            template="internal_notification",
        )

    async def send_contact_form(
        self, *, name: str, email: str, phone: str | None, subject: str, message: str
    ) -> bool:
        mail_subject, body = self._compose(
            DEFAULT_LOCALE,
            "contact_form",
            subject=subject,
            name=name,
            email=email,
            phone=phone or "-",
            message=message,
        )
        return await self.send(
            self.admin_email, mail_subject, body, reply_to=email, template="contact_form"
        )

    async def send_bank_transfer_admin_notification(
        self, *, request_info, amount, paid, transfer_ref: str | None, confirmed_by: str | None
    ) -> bool:
        subject, body = self._compose(
            DEFAULT_LOCALE,
            "bank_transfer_admin",
            name=request_info.full_name,
            email=request_info.email,
            tour=request_info.tour_name or "-",
            amount=_money(amount),
            paid=_money(paid),
            total=_money(request_info.tour_price),
            transfer_ref=transfer_ref or "-",
            confirmed_by=confirmed_by or "-",
            reference=request_info.id,
        )
        return await self.send(
            self.admin_email,
            subject,
            body,
            reply_to=request_info.email,
            template="bank_transfer_admin",
        )


async def send_best_effort(send: Awaitable[bool], template: str) -> bool:
    """Await a send, logging and swallowing any failure.

    Covers template composition as well as delivery, so a stored inquiry or
    payment never turns into an error response because of its email.

    Example:
        await send_best_effort(mailer.send_inquiry_auto_reply(to=..., name=...), "inquiry_auto_reply")
    """
    try:
        return await send
    except EmailDeliveryError as exc:
        logger.error("email_failed", template=template, error=str(exc))
        return False
    except Exception as exc:
        logger.exception("email_composition_failed", template=template, error=str(exc))
        return False
