"""EmailJS dispatcher with bounded retries and exponential backoff.

Each call to :meth:`EmailDispatcher.send` is independent: it builds one payload,
then walks a small state machine

    Attempting(n) -> Success
                  -> RetryableFailure -> Attempting(n + 1)
                  -> TerminalFailure

Transport errors and 5xx (or otherwise unclassified) responses are retryable;
4xx responses end the loop at once. The delay before attempt ``n + 1`` is
``backoff_base ** n`` seconds and is never applied after the final attempt.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import quote

import httpx

from ..config import Settings
from ..domain.errors import ErrorKind
from . import metrics

logger = logging.getLogger(__name__)

# Characters left untouched by JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "!~*'()"


@dataclass(slots=True)
class EmailParameters:
    """Inputs for one dispatch.

    Without ``message`` the email is a verification email for ``sender_email``;
    with it the email relays a contact-form message.
    """

    sender_name: str | None
    sender_email: str
    recipient_email: str | None = None
    message: str | None = None


@dataclass(slots=True)
class EmailDeliveryAttempt:
    """Outcome of a single provider call; discarded when the dispatch ends."""

    attempt_number: int
    succeeded: bool
    response: Any = None
    error: Any = None
    status: int | None = None

    @property
    def retryable(self) -> bool:
        if self.succeeded:
            return False
        return self.status is None or not 400 <= self.status < 500


@dataclass(slots=True)
class DeliveryResult:
    """Final outcome of :meth:`EmailDispatcher.send`."""

    success: bool
    response: Any = None
    error: Any = None
    status: int | None = None
    error_kind: ErrorKind | None = None
    attempts: int = 0

    @property
    def error_message(self) -> str | None:
        if self.error is None:
            return None
        return self.error if isinstance(self.error, str) else str(self.error)


@dataclass
class EmailDispatcher:
    """Sends transactional email through the EmailJS REST API."""

    settings: Settings
    client: httpx.Client
    sleep: Callable[[float], None] = field(default=time.sleep)

    def missing_credentials(self) -> list[str]:
        missing = []
        if not self.settings.emailjs_service_id:
            missing.append("EMAILJS_SERVICE_ID")
        if not self.settings.emailjs_template_id:
            missing.append("EMAILJS_TEMPLATE_ID")
        if not self.settings.emailjs_user_id:
            missing.append("EMAILJS_USER_ID")
        return missing

    def verification_link(self, email: str) -> str:
        return f"{self.settings.verify_endpoint}?email={quote(email, safe=_URI_COMPONENT_SAFE)}"

    def build_payload(self, params: EmailParameters, recipient: str) -> dict[str, Any]:
        """Assemble the provider request body for verification or contact mode."""
        template_params: dict[str, Any] = {
            "from_email": params.sender_email,
            "to_email": recipient,
        }
        if params.message:
            template_params["message"] = params.message
        else:
            template_params["verificationLink"] = self.verification_link(params.sender_email)
            template_params["name"] = params.sender_name or "User"
        return {
            "service_id": self.settings.emailjs_service_id,
            "template_id": self.settings.emailjs_template_id,
            "user_id": self.settings.emailjs_user_id,
            "template_params": template_params,
        }

    def send(self, params: EmailParameters) -> DeliveryResult:
        """Deliver one email, retrying transient failures.

        Configuration problems are reported as a failed result without touching
        the network.
        """
        missing = self.missing_credentials()
        if missing:
            logger.error("email provider configuration missing: %s", ", ".join(missing))
            metrics.record_result("misconfigured")
            return DeliveryResult(
                success=False,
                error=f"EmailJS configuration missing: {', '.join(missing)}",
                error_kind=ErrorKind.configuration,
            )

        recipient = params.recipient_email or self.settings.emailjs_to_email
        if not recipient:
            logger.error("no recipient email provided and no fallback recipient configured")
            metrics.record_result("misconfigured")
            return DeliveryResult(
                success=False,
                error="No recipient email provided",
                error_kind=ErrorKind.configuration,
            )

        payload = self.build_payload(params, recipient)
        mode = "contact" if params.message else "verification"
        logger.info("sending %s email to %s", mode, recipient)

        max_attempts = max(1, self.settings.email_max_attempts)
        attempt_number = 1
        while True:
            attempt = self._attempt(payload, attempt_number)
            if attempt.succeeded:
                metrics.record_result("sent")
                return DeliveryResult(success=True, response=attempt.response, attempts=attempt_number)

            logger.warning(
                "email attempt %d/%d failed: status=%s error=%s",
                attempt_number,
                max_attempts,
                attempt.status,
                attempt.error,
            )
            if not attempt.retryable or attempt_number >= max_attempts:
                break
            delay = self.settings.email_backoff_base_seconds ** attempt_number
            logger.info("retrying email delivery in %.1fs", delay)
            self.sleep(delay)
            attempt_number += 1

        metrics.record_result("failed")
        return DeliveryResult(
            success=False,
            error=attempt.error,
            status=attempt.status,
            error_kind=ErrorKind.transport,
            attempts=attempt.attempt_number,
        )

    def _attempt(self, payload: dict[str, Any], attempt_number: int) -> EmailDeliveryAttempt:
        try:
            response = self.client.post(
                self.settings.emailjs_api_url,
                json=payload,
                timeout=self.settings.email_timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            metrics.record_attempt("http_error")
            return EmailDeliveryAttempt(
                attempt_number=attempt_number,
                succeeded=False,
                error=_response_body(exc.response) or str(exc),
                status=exc.response.status_code,
            )
        except httpx.HTTPError as exc:
            metrics.record_attempt("transport_error")
            return EmailDeliveryAttempt(
                attempt_number=attempt_number,
                succeeded=False,
                error=str(exc) or exc.__class__.__name__,
            )

        metrics.record_attempt("success")
        logger.info("email provider accepted message: %s", response.status_code)
        return EmailDeliveryAttempt(
            attempt_number=attempt_number,
            succeeded=True,
            response=_response_body(response),
        )


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
