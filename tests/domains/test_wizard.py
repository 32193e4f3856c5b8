"""Tests for the domain setup wizard transitions."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from inbound_apps.domain.errors import InvalidTransitionError, UpstreamError, ValidationError
from inbound_apps.domain.models import DomainData
from inbound_apps.domain.types import WizardStep
from inbound_apps.domains.store import WizardState, WizardStateStore
from inbound_apps.domains.wizard import TEST_EMAIL_SOURCE_TAG, DomainSetupWizard
from inbound_apps.gateway.client import InboundClient

DomainFactory = Callable[..., dict[str, Any]]

DOMAIN_PATH = "/domains/dom_123"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def store(tmp_path: Path) -> WizardStateStore:
    return WizardStateStore(tmp_path / "wizard.json")


def _wizard_at(
    step: WizardStep,
    client: InboundClient,
    store: WizardStateStore,
    domain: dict[str, Any],
) -> DomainSetupWizard:
    store.save(WizardState(step=step, domain=DomainData.model_validate(domain)))
    return DomainSetupWizard(client, store)


# ---------------------------------------------------------------------------
# Step 1 -> 2
# ---------------------------------------------------------------------------


class TestSubmitDomain:
    @pytest.mark.anyio()
    async def test_submit_advances_and_persists(
        self,
        fake_api: Any,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        fake_api.add("POST", "/domains", make_domain())
        wizard = DomainSetupWizard(inbound_client, store)

        domain = await wizard.submit_domain("  example.com ")

        assert json.loads(fake_api.requests[-1].content) == {"domain": "example.com"}
        assert domain.id == "dom_123"
        assert wizard.step == WizardStep.DNS_CONFIGURED
        assert len(wizard.dns_records) == 3
        assert store.load().step == WizardStep.DNS_CONFIGURED

    @pytest.mark.anyio()
    async def test_invalid_domain_never_calls_api(
        self, fake_api: Any, inbound_client: InboundClient, store: WizardStateStore
    ) -> None:
        wizard = DomainSetupWizard(inbound_client, store)

        with pytest.raises(ValidationError, match="Invalid domain format"):
            await wizard.submit_domain("not a domain")

        assert fake_api.requests == []
        assert wizard.step == WizardStep.ADD_DOMAIN
        assert wizard.error == "Invalid domain format"

    @pytest.mark.anyio()
    async def test_upstream_error_stays_on_step_one(
        self, fake_api: Any, inbound_client: InboundClient, store: WizardStateStore
    ) -> None:
        fake_api.add("POST", "/domains", {"error": "Domain already exists"}, status_code=409)
        wizard = DomainSetupWizard(inbound_client, store)

        with pytest.raises(UpstreamError):
            await wizard.submit_domain("example.com")

        assert wizard.step == WizardStep.ADD_DOMAIN
        assert wizard.error == "Domain already exists"
        assert not store.path.exists()

    @pytest.mark.anyio()
    async def test_malformed_response_sets_error(
        self, fake_api: Any, inbound_client: InboundClient, store: WizardStateStore
    ) -> None:
        fake_api.add("POST", "/domains", {"unexpected": "shape"})
        wizard = DomainSetupWizard(inbound_client, store)

        with pytest.raises(UpstreamError):
            await wizard.submit_domain("example.com")

        assert wizard.step == WizardStep.ADD_DOMAIN
        assert wizard.error is not None
        assert wizard.error.startswith("Invalid response from Inbound API")

    @pytest.mark.anyio()
    async def test_submit_twice_rejected(
        self,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        wizard = _wizard_at(WizardStep.DNS_CONFIGURED, inbound_client, store, make_domain())

        with pytest.raises(InvalidTransitionError):
            await wizard.submit_domain("other.com")


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


class TestRefreshStatus:
    @pytest.mark.anyio()
    async def test_refresh_before_submit_rejected(
        self, inbound_client: InboundClient, store: WizardStateStore
    ) -> None:
        wizard = DomainSetupWizard(inbound_client, store)

        with pytest.raises(InvalidTransitionError):
            await wizard.refresh_status()

    @pytest.mark.anyio()
    async def test_no_mx_stays_put(
        self,
        fake_api: Any,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        fake_api.add("GET", DOMAIN_PATH, make_domain())
        wizard = _wizard_at(WizardStep.DNS_CONFIGURED, inbound_client, store, make_domain())

        await wizard.refresh_status()

        assert fake_api.requests[-1].url.params["check"] == "true"
        assert wizard.step == WizardStep.DNS_CONFIGURED

    @pytest.mark.anyio()
    async def test_mx_moves_to_verifying(
        self,
        fake_api: Any,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        fake_api.add("GET", DOMAIN_PATH, make_domain(has_mx_records=True))
        wizard = _wizard_at(WizardStep.DNS_CONFIGURED, inbound_client, store, make_domain())

        await wizard.refresh_status()

        assert wizard.step == WizardStep.VERIFYING
        assert wizard.dns_panel_expanded is True
        assert store.load().step == WizardStep.VERIFYING

    @pytest.mark.anyio()
    async def test_fully_verified_completes(
        self,
        fake_api: Any,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        fake_api.add(
            "GET",
            DOMAIN_PATH,
            make_domain(status="verified", has_mx_records=True, fully_verified=True),
        )
        wizard = _wizard_at(WizardStep.DNS_CONFIGURED, inbound_client, store, make_domain())

        await wizard.refresh_status()

        assert wizard.step == WizardStep.READY
        assert wizard.is_complete
        assert wizard.dns_panel_expanded is False

    @pytest.mark.anyio()
    async def test_never_moves_backwards(
        self,
        fake_api: Any,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        fake_api.add("GET", DOMAIN_PATH, make_domain(has_mx_records=False))
        wizard = _wizard_at(
            WizardStep.VERIFYING, inbound_client, store, make_domain(has_mx_records=True)
        )

        domain = await wizard.refresh_status()

        assert wizard.step == WizardStep.VERIFYING
        assert wizard.domain == domain

    @pytest.mark.anyio()
    async def test_failed_check_keeps_state(
        self,
        fake_api: Any,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        fake_api.add("GET", DOMAIN_PATH, {"error": "Rate limited"}, status_code=429)
        wizard = _wizard_at(WizardStep.DNS_CONFIGURED, inbound_client, store, make_domain())

        with pytest.raises(UpstreamError):
            await wizard.refresh_status()

        assert wizard.step == WizardStep.DNS_CONFIGURED
        assert wizard.error == "Rate limited"


# ---------------------------------------------------------------------------
# Reset, zone file, resume
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_resumes_from_store(
        self,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        _wizard_at(WizardStep.VERIFYING, inbound_client, store, make_domain())

        resumed = DomainSetupWizard(inbound_client, store)

        assert resumed.step == WizardStep.VERIFYING
        assert resumed.domain is not None
        assert resumed.domain.domain == "example.com"

    def test_start_over_clears_everything(
        self,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        wizard = _wizard_at(WizardStep.READY, inbound_client, store, make_domain())
        wizard.dns_panel_expanded = False

        wizard.start_over()

        assert wizard.step == WizardStep.ADD_DOMAIN
        assert wizard.domain is None
        assert wizard.dns_panel_expanded is True
        assert not store.path.exists()

    def test_zone_file_for_current_domain(
        self,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        wizard = _wizard_at(WizardStep.DNS_CONFIGURED, inbound_client, store, make_domain())

        zone = wizard.zone_file(now=1700000000)

        assert zone.startswith("$ORIGIN example.com.\n")
        assert " IN SOA ns1.inbound.new. admin.example.com. 1700000000 " in zone

    def test_zone_file_empty_without_domain(
        self, inbound_client: InboundClient, store: WizardStateStore
    ) -> None:
        assert DomainSetupWizard(inbound_client, store).zone_file() == ""


# ---------------------------------------------------------------------------
# Test email
# ---------------------------------------------------------------------------


class TestSendTestEmail:
    @pytest.mark.anyio()
    async def test_only_when_ready(
        self,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        wizard = _wizard_at(WizardStep.VERIFYING, inbound_client, store, make_domain())

        with pytest.raises(InvalidTransitionError):
            await wizard.send_test_email("bob@example.com", "Hi", "Hello")

    @pytest.mark.anyio()
    async def test_sends_from_verified_domain(
        self,
        fake_api: Any,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        fake_api.add("POST", "/emails", {"id": "em_test"})
        wizard = _wizard_at(WizardStep.READY, inbound_client, store, make_domain())

        result = await wizard.send_test_email(
            "bob@example.com", "It works", "First line\nSecond line", from_user="support"
        )

        assert result.id == "em_test"
        assert json.loads(fake_api.requests[-1].content) == {
            "from": "Support <support@example.com>",
            "to": "bob@example.com",
            "subject": "It works",
            "html": "<p>First line<br>Second line</p>",
            "text": "First line\nSecond line",
            "tags": [
                {"name": "source", "value": TEST_EMAIL_SOURCE_TAG},
                {"name": "domain", "value": "example.com"},
            ],
        }

    @pytest.mark.anyio()
    async def test_invalid_form_sends_nothing(
        self,
        fake_api: Any,
        inbound_client: InboundClient,
        store: WizardStateStore,
        make_domain: DomainFactory,
    ) -> None:
        wizard = _wizard_at(WizardStep.READY, inbound_client, store, make_domain())

        with pytest.raises(ValidationError, match="Invalid email address"):
            await wizard.send_test_email("nope", "Hi", "Hello")

        assert fake_api.requests == []
