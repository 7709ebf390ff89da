"""Lookups against the ASN, DNS, IP network and Service Provider registries."""

from __future__ import annotations

import abc
import ipaddress
from bisect import bisect_left
from dataclasses import dataclass

from rdapkit.registry_file import (
    Answer,
    MalformedRegistryError,
    Question,
    RegistryFile,
    RegistryType,
    parse_file,
)

_MAX_UINT32 = 0xFFFFFFFF

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


class Registry(abc.ABC):
    """A parsed Service Registry that answers bootstrap questions."""

    file: RegistryFile

    @abc.abstractmethod
    def lookup(self, question: Question) -> Answer:
        """Return the RDAP base URLs matching ``question``."""


def _parse_file(data: bytes | str, what: str) -> RegistryFile:
    try:
        return parse_file(data)
    except MalformedRegistryError as exc:
        raise MalformedRegistryError(f"Error parsing {what}: {exc}") from exc


def _parse_uint32(text: str) -> int:
    if not text or not (text.isascii() and text.isdigit()):
        raise ValueError(f"invalid number {text!r}")
    value = int(text)
    if value > _MAX_UINT32:
        raise ValueError(f"number {text!r} out of range")
    return value


def parse_asn(text: str) -> int:
    """Parse an AS number such as "AS1234", "as1234" or "1234"."""
    return _parse_uint32(text.lower().lstrip("as"))


def parse_asn_range(text: str) -> tuple[int, int]:
    """Parse "N" or "N-M" into an ordered (min, max) pair."""
    parts = text.split("-")
    if len(parts) not in (1, 2):
        raise ValueError("Malformed ASN range")
    low = _parse_uint32(parts[0])
    high = _parse_uint32(parts[1]) if len(parts) == 2 else low
    return (low, high) if low <= high else (high, low)


@dataclass(frozen=True)
class _ASNRange:
    min_asn: int
    max_asn: int
    urls: list[str]

    def __str__(self) -> str:
        if self.min_asn == self.max_asn:
            return f"AS{self.min_asn}"
        return f"AS{self.min_asn}-AS{self.max_asn}"


class ASNRegistry(Registry):
    """Maps AS numbers and AS number ranges to RDAP base URLs."""

    def __init__(self, data: bytes | str) -> None:
        self.file = _parse_file(data, "ASN registry")
        ranges = []
        for entry, urls in self.file.entries.items():
            try:
                low, high = parse_asn_range(entry)
            except ValueError:
                continue
            ranges.append(_ASNRange(low, high, urls))
        ranges.sort(key=lambda r: r.min_asn)
        self._ranges = ranges

    def lookup(self, question: Question) -> Answer:
        """Look up an AS number, e.g. "AS1234", "as1234" or "1234"."""
        asn = parse_asn(question.query)
        index = bisect_left(self._ranges, True, key=lambda r: asn <= r.max_asn)
        entry, urls = "", []
        if index < len(self._ranges):
            candidate = self._ranges[index]
            if candidate.min_asn <= asn <= candidate.max_asn:
                entry, urls = str(candidate), list(candidate.urls)
        return Answer(query=str(asn), entry=entry, urls=urls)


class DNSRegistry(Registry):
    """Maps domain labels (e.g. "br") to RDAP base URLs."""

    def __init__(self, data: bytes | str) -> None:
        self.file = _parse_file(data, "DNS bootstrap")
        self._domains = self.file.entries

    def lookup(self, question: Question) -> Answer:
        """Find the longest registered suffix of the domain name, down to the root."""
        name = question.query.removesuffix(".").lower()
        zone = name
        while True:
            urls = self._domains.get(zone)
            if urls is not None or zone == "":
                break
            _, dot, rest = zone.partition(".")
            zone = rest if dot else ""
        return Answer(query=name, entry=zone, urls=list(urls or []))


def _parse_cidr(text: str) -> IPNetwork:
    address, slash, prefix = text.partition("/")
    if not slash or "%" in address or not (prefix.isascii() and prefix.isdigit()):
        raise ValueError(f"invalid CIDR address: {text}")
    try:
        return ipaddress.ip_network(f"{address}/{int(prefix)}", strict=False)
    except ValueError as exc:
        raise ValueError(f"invalid CIDR address: {text}") from exc


@dataclass(frozen=True)
class _NetEntry:
    network: IPNetwork
    urls: list[str]


class NetRegistry(Registry):
    """Maps IPv4 or IPv6 networks to RDAP base URLs."""

    def __init__(self, data: bytes | str, ip_version: int) -> None:
        if ip_version not in (4, 6):
            raise ValueError(f"Unknown IP version {ip_version}")
        self.ip_version = ip_version
        self.file = _parse_file(data, "net registry file")
        networks: dict[int, list[_NetEntry]] = {}
        for cidr, urls in self.file.entries.items():
            try:
                network = _parse_cidr(cidr)
            except ValueError:
                continue
            if network.version != ip_version:
                continue
            networks.setdefault(network.prefixlen, []).append(_NetEntry(network, urls))
        for entries in networks.values():
            entries.sort(key=lambda e: e.network.network_address)
        self._networks = networks

    @property
    def _max_prefix(self) -> int:
        return 32 if self.ip_version == 4 else 128

    def lookup(self, question: Question) -> Answer:
        """Look up an address or CIDR range, e.g. "192.0.2.0" or "2001:db8::/62".

        The most specific registered network containing it wins.
        """
        query = question.query
        if "/" not in query:
            query = f"{query}/{self._max_prefix}"
        lookup_net = _parse_cidr(query)
        if lookup_net.version != self.ip_version:
            raise ValueError("Lookup address has wrong IP protocol")
        address = lookup_net.network_address

        for prefix in sorted(self._networks, reverse=True):
            if prefix > lookup_net.prefixlen:
                continue
            entries = self._networks[prefix]
            index = bisect_left(
                entries,
                True,
                key=lambda e: address in e.network or e.network.network_address >= address,
            )
            if index < len(entries) and address in entries[index].network:
                found = entries[index]
                return Answer(query=query, entry=str(found.network), urls=list(found.urls))
        return Answer(query=query, entry="", urls=[])


class ServiceProviderRegistry(Registry):
    """Maps service tags (e.g. "VRSN") to RDAP base URLs."""

    def __init__(self, data: bytes | str) -> None:
        self.file = _parse_file(data, "Service Provider bootstrap")
        self._services = self.file.entries

    def lookup(self, question: Question) -> Answer:
        """Look up an entity handle such as "12345-VRSN" (or the older "12345~VRSN").

        Missing, malformed or unknown tags give an answer with no URLs.
        """
        handle = question.query
        offset = handle.rfind("~")
        if offset == -1:
            offset = handle.rfind("-")
        if offset == -1 or offset == len(handle) - 1:
            return Answer(query=handle)
        service = handle[offset + 1 :]
        urls = self._services.get(service)
        if urls is None:
            return Answer(query=handle, entry="", urls=[])
        return Answer(query=handle, entry=service, urls=list(urls))


def new_registry(registry_type: RegistryType, data: bytes | str) -> Registry:
    """Build the registry matching ``registry_type`` from a JSON document."""
    if registry_type is RegistryType.ASN:
        return ASNRegistry(data)
    if registry_type is RegistryType.DNS:
        return DNSRegistry(data)
    if registry_type is RegistryType.IPV4:
        return NetRegistry(data, 4)
    if registry_type is RegistryType.IPV6:
        return NetRegistry(data, 6)
    if registry_type is RegistryType.SERVICE_PROVIDER:
        return ServiceProviderRegistry(data)
    raise ValueError(f"Unknown registry type {registry_type!r}")