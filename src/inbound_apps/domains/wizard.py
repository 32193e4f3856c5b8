"""Four-step domain setup wizard: add a domain, publish DNS, verify, done.

Steps only move forward, and only on explicit calls: ``submit_domain()``
goes from step 1 to 2; ``refresh_status()`` re-checks DNS upstream and moves
to step 3 once MX records are seen, or to step 4 once the domain is fully
verified.  ``start_over()`` is the only way back.  Every change is written
to the ``WizardStateStore`` so a restarted process resumes mid-wizard.
"""

from __future__ import annotations

import structlog

from inbound_apps.domain.errors import InboundAppError, InvalidTransitionError
from inbound_apps.domain.models import (
    DnsRecord,
    DomainData,
    EmailTag,
    SendEmailRequest,
    SendEmailResponse,
)
from inbound_apps.domain.types import WizardStep
from inbound_apps.domains.store import WizardState, WizardStateStore
from inbound_apps.domains.validation import TestEmailForm, format_sender, validate_domain
from inbound_apps.domains.zonefile import generate_zone_file
from inbound_apps.gateway.client import InboundClient

logger = structlog.get_logger()

DEFAULT_FROM_USER = "hello"
TEST_EMAIL_SOURCE_TAG = "domain-setup-demo"


class DomainSetupWizard:
    """Stateful driver of the domain setup flow.

    Args:
        client: Gateway client used for the domains and emails endpoints.
        store: Where the current step and domain payload are persisted.
    """

    def __init__(self, client: InboundClient, store: WizardStateStore) -> None:
        self._client = client
        self._store = store
        state = store.load()
        self._step = state.step
        self._domain = state.domain
        self.error: str | None = None
        self.dns_panel_expanded = True

    @property
    def step(self) -> WizardStep:
        return self._step

    @property
    def domain(self) -> DomainData | None:
        return self._domain

    @property
    def dns_records(self) -> list[DnsRecord]:
        return self._domain.records if self._domain is not None else []

    @property
    def is_complete(self) -> bool:
        return self._step == WizardStep.READY

    def _advance(self, step: WizardStep, domain: DomainData) -> None:
        self._domain = domain
        if step > self._step:
            logger.info(
                "Wizard advanced",
                domain=domain.domain,
                from_step=int(self._step),
                to_step=int(step),
            )
            self._step = step
        self._store.save(WizardState(step=self._step, domain=self._domain))

    async def submit_domain(self, value: str) -> DomainData:
        """Register *value* upstream and move to the DNS step.

        Raises:
            InvalidTransitionError: If a domain was already submitted.
            ValidationError: If *value* is not a valid domain name.
            UpstreamError: If the API rejects the domain.
        """
        if self._step != WizardStep.ADD_DOMAIN:
            raise InvalidTransitionError(self._step, "submit a domain")
        self.error = None
        try:
            domain = await self._client.create_domain(validate_domain(value))
        except InboundAppError as exc:
            self.error = str(exc)
            raise

        self._advance(WizardStep.DNS_CONFIGURED, domain)
        return domain

    async def refresh_status(self) -> DomainData:
        """Force a DNS check upstream and advance according to the result.

        Raises:
            InvalidTransitionError: If no domain has been submitted yet.
            UpstreamError: If the check fails.
        """
        if self._domain is None or self._step == WizardStep.ADD_DOMAIN:
            raise InvalidTransitionError(self._step, "refresh status")
        self.error = None
        try:
            domain = await self._client.get_domain(self._domain.id, check=True)
        except InboundAppError as exc:
            self.error = str(exc)
            raise

        if domain.is_fully_verified:
            self._advance(WizardStep.READY, domain)
            self.dns_panel_expanded = False
        elif domain.has_mx_records:
            self._advance(WizardStep.VERIFYING, domain)
        else:
            self._advance(self._step, domain)
        logger.info(
            "Domain status refreshed",
            domain=domain.domain,
            status=domain.status,
            has_mx_records=domain.has_mx_records,
            step=int(self._step),
        )
        return domain

    def start_over(self) -> None:
        """Forget the current domain and return to step 1."""
        self._store.clear()
        self._step = WizardStep.ADD_DOMAIN
        self._domain = None
        self.error = None
        self.dns_panel_expanded = True
        logger.info("Wizard reset")

    def zone_file(self, now: float | None = None) -> str:
        return generate_zone_file(self._domain, now=now)

    async def send_test_email(
        self,
        to: str,
        subject: str,
        message: str,
        from_user: str = DEFAULT_FROM_USER,
    ) -> SendEmailResponse:
        """Send an email from ``<from_user>@<domain>`` to prove the setup works.

        Raises:
            InvalidTransitionError: Unless the domain is verified (step 4).
            ValidationError: If a form field is invalid.
            UpstreamError: If the send fails.
        """
        if self._step != WizardStep.READY or self._domain is None:
            raise InvalidTransitionError(self._step, "send a test email")
        form = TestEmailForm.validate(from_user=from_user, to=to, subject=subject, message=message)
        domain = self._domain.domain

        request = SendEmailRequest(
            from_=format_sender(f"{form.from_user}@{domain}", form.from_user),
            to=form.to,
            subject=form.subject,
            html=form.html(),
            text=form.message,
            tags=[
                EmailTag(name="source", value=TEST_EMAIL_SOURCE_TAG),
                EmailTag(name="domain", value=domain),
            ],
        )
        self.error = None
        try:
            result = await self._client.send_email(request)
        except InboundAppError as exc:
            self.error = str(exc)
            raise
        logger.info("Test email sent", domain=domain, email_id=result.id)
        return result
