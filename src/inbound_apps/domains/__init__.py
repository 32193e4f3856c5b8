"""Domain setup wizard: validation, persisted state, zone-file export, HTTP proxy."""

from inbound_apps.domains.store import WizardState, WizardStateStore
from inbound_apps.domains.validation import TestEmailForm, format_sender, validate_domain
from inbound_apps.domains.wizard import DEFAULT_FROM_USER, DomainSetupWizard
from inbound_apps.domains.zonefile import generate_zone_file

__all__ = [
    "DEFAULT_FROM_USER",
    "DomainSetupWizard",
    "TestEmailForm",
    "WizardState",
    "WizardStateStore",
    "format_sender",
    "generate_zone_file",
    "validate_domain",
]
