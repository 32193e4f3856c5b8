"""RFC 1035 zone-file export of a domain's required DNS records.

Record data is parsed and rendered by dnspython; this module only picks the
origin, groups records and writes the section headers.  The zone's origin is
the base domain (the last two labels), so records for ``mail.example.com``
come out relative to ``example.com.``.  Records are grouped by type in the
order each type first appears.  Records dnspython cannot parse and
unsupported record types are left out.  This is a pure formatting step;
nothing is fetched.
"""

from __future__ import annotations

import time

import dns.exception
import dns.name
import dns.rdata
import dns.rdataclass
import dns.rdataset
import dns.rdatatype
import structlog

from inbound_apps.domain.models import DnsRecord, DomainData
from inbound_apps.domain.types import DnsRecordType

logger = structlog.get_logger()

DEFAULT_TTL = 3600
SOA_MNAME = "ns1.inbound.new."
SOA_REFRESH = 3600
SOA_RETRY = 600
SOA_EXPIRE = 604800
SOA_MINIMUM = 86400

QUOTED_TYPES = frozenset({DnsRecordType.TXT, DnsRecordType.SPF})


def base_domain(domain: str) -> str:
    """Return the last two labels of *domain*, e.g. ``example.com`` for ``a.b.example.com``."""
    labels = domain.rstrip(".").split(".")
    return ".".join(labels[-2:]) if len(labels) >= 2 else domain


def _absolute(name: str) -> dns.name.Name:
    return dns.name.from_text(name, origin=dns.name.root)


def relative_name(name: str, origin: str) -> str:
    """Express *name* relative to *origin* (``@`` for the origin itself).

    Names outside the origin stay fully qualified.
    """
    if not name.strip("."):
        return "@"
    return _absolute(name).relativize(_absolute(origin)).to_text()


def _quoted(value: str) -> str:
    if value.startswith('"') and value.endswith('"') and len(value) > 1:
        return value
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _rdata(record_type: DnsRecordType, value: str) -> dns.rdata.Rdata:
    text = _quoted(value) if record_type in QUOTED_TYPES else value.strip()
    return dns.rdata.from_text(
        dns.rdataclass.IN,
        dns.rdatatype.from_text(record_type.value),
        text,
        origin=dns.name.root,
        relativize=False,
    )


def _soa_rdata(origin: dns.name.Name, serial: int) -> dns.rdata.Rdata:
    rname = dns.name.from_text("admin", origin=origin)
    text = (
        f"{SOA_MNAME} {rname} {serial} {SOA_REFRESH} {SOA_RETRY} {SOA_EXPIRE} {SOA_MINIMUM}"
    )
    return dns.rdata.from_text(
        dns.rdataclass.IN, dns.rdatatype.SOA, text, origin=dns.name.root, relativize=False
    )


def _render(owner: str, rdatas: list[dns.rdata.Rdata]) -> str:
    rdataset = dns.rdataset.from_rdata_list(DEFAULT_TTL, rdatas)
    return rdataset.to_text(dns.name.from_text(owner, origin=None))


def _group_records(
    records: list[DnsRecord], origin: str
) -> dict[DnsRecordType, dict[str, list[dns.rdata.Rdata]]]:
    groups: dict[DnsRecordType, dict[str, list[dns.rdata.Rdata]]] = {}
    for record in records:
        try:
            record_type = DnsRecordType(record.type.upper())
        except ValueError:
            logger.debug("Skipping unsupported record type", type=record.type, name=record.name)
            continue
        try:
            rdata = _rdata(record_type, record.value)
            owner = relative_name(record.name, origin)
        except (dns.exception.DNSException, ValueError):
            logger.debug("Skipping unparseable record", type=record.type, value=record.value)
            continue
        groups.setdefault(record_type, {}).setdefault(owner, []).append(rdata)
    return groups


def generate_zone_file(domain_data: DomainData | None, now: float | None = None) -> str:
    """Render *domain_data*'s DNS records as a zone file.

    Args:
        domain_data: The domain as returned by the API.
        now: Epoch seconds used as the SOA serial; defaults to the current time.

    Returns:
        The zone file text, or ``""`` when there is no domain or no records.
    """
    if domain_data is None:
        return ""
    records = domain_data.records
    if not records:
        return ""

    origin = base_domain(domain_data.domain)
    serial = int(now if now is not None else time.time())

    lines = [
        f"$ORIGIN {_absolute(origin)}",
        f"$TTL {DEFAULT_TTL}",
        "",
        "; SOA Record",
        _render("@", [_soa_rdata(_absolute(origin), serial)]),
    ]
    for record_type, owners in _group_records(records, origin).items():
        lines.extend(["", f"; {record_type} Records"])
        lines.extend(_render(owner, rdatas) for owner, rdatas in owners.items())
    return "\n".join(lines) + "\n"
