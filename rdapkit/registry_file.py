"""Bootstrap Service Registry files, questions and answers."""

from __future__ import annotations

import dataclasses
import enum
import json
import re
from dataclasses import dataclass, field
from urllib.parse import urlsplit


class RegistryType(enum.Enum):
    """A bootstrap Service Registry."""

    DNS = "dns"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    ASN = "asn"
    SERVICE_PROVIDER = "serviceprovider"

    def __str__(self) -> str:
        return self.value

    def filename(self) -> str:
        """Return the registry's JSON document filename."""
        if self is RegistryType.SERVICE_PROVIDER:
            # A guess until an official name exists.
            return "serviceprovider-draft-03.json"
        return f"{self.value}.json"


class MalformedRegistryError(ValueError):
    """Raised when a Service Registry document cannot be parsed."""


_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")


def _is_valid_url(raw: str) -> bool:
    if _CONTROL.search(raw) or raw.startswith(":"):
        return False
    try:
        parts = urlsplit(raw)
        parts.port
    except ValueError:
        return False
    before_query = raw.split("?", 1)[0].split("#", 1)[0]
    return not _BAD_ESCAPE.search(before_query)


def _decode(data: bytes | str) -> dict:
    try:
        doc = json.loads(data)
    except (ValueError, TypeError) as exc:
        raise MalformedRegistryError(f"Invalid registry JSON: {exc}") from exc
    if doc is None:
        return {}
    if not isinstance(doc, dict):
        raise MalformedRegistryError("Registry document is not a JSON object")
    fields = {key.lower(): value for key, value in doc.items()}
    for name in ("description", "publication", "version"):
        if fields.get(name) is not None and not isinstance(fields[name], str):
            raise MalformedRegistryError(f"Registry field '{name}' is not a string")
    return fields


def _services(fields: dict) -> dict[str, list[str]]:
    services = fields.get("services")
    if services is None:
        return {}
    if not isinstance(services, list):
        raise MalformedRegistryError("Malformed bootstrap (bad services array)")

    entries: dict[str, list[str]] = {}
    for service in services:
        if not isinstance(service, list) or len(service) != 2:
            raise MalformedRegistryError("Malformed bootstrap (bad services array)")
        names, raw_urls = service
        for group in (names, raw_urls):
            if not isinstance(group, list) or not all(isinstance(s, str) for s in group):
                raise MalformedRegistryError("Malformed bootstrap (bad services array)")
        urls = [raw for raw in raw_urls if _is_valid_url(raw)]
        if urls:
            for name in names:
                entries[name] = urls
    return entries


@dataclass
class RegistryFile:
    """A parsed bootstrap registry file, e.g. dns.json."""

    description: str = ""
    publication: str = ""
    version: str = ""
    entries: dict[str, list[str]] = field(default_factory=dict)
    json: bytes = b""

    def add_entries(self, data: bytes | str) -> None:
        """Merge the services of another registry document into this one."""
        self.entries.update(_services(_decode(data)))


def parse_file(data: bytes | str) -> RegistryFile:
    """Parse a bootstrap registry JSON document; unparsable URLs are skipped."""
    fields = _decode(data)
    entries = _services(fields)
    raw = data.encode() if isinstance(data, str) else bytes(data)
    return RegistryFile(
        description=fields.get("description") or "",
        publication=fields.get("publication") or "",
        version=fields.get("version") or "",
        entries=entries,
        json=raw,
    )


@dataclass
class Answer:
    """The result of bootstrapping a single query."""

    query: str = ""
    entry: str = ""
    urls: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Question:
    """A bootstrap query against one registry."""

    registry_type: RegistryType = RegistryType.DNS
    query: str = ""
    timeout: float | None = None

    def with_timeout(self, timeout: float | None) -> Question:
        """Return a copy of the question with ``timeout`` seconds."""
        return dataclasses.replace(self, timeout=timeout)