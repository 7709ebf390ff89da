"""Bootstrap client: finds the RDAP servers that can answer a query."""

from __future__ import annotations

import hashlib
import json
import os
from collections.abc import Callable
from pathlib import Path
from urllib.parse import urljoin, urlsplit, urlunsplit

import requests

from rdapkit.cache import (
    DEFAULT_CACHE_DIR_NAME,
    CacheMissError,
    FileState,
    MemoryCache,
    RegistryCache,
)
from rdapkit.registries import (
    ASNRegistry,
    DNSRegistry,
    NetRegistry,
    Registry,
    ServiceProviderRegistry,
    new_registry,
)
from rdapkit.registry_file import (
    Answer,
    MalformedRegistryError,
    Question,
    RegistryType,
)

DEFAULT_BASE_URL = "https://data.iana.org/rdap/"
DEFAULT_CACHE_TIMEOUT = 24 * 60 * 60.0


class BootstrapError(Exception):
    """Raised when a Service Registry file cannot be fetched."""


def _quiet(text: str) -> None:
    pass


def _read_document(data: bytes | str) -> tuple[dict, list]:
    try:
        doc = json.loads(data)
    except (ValueError, TypeError) as exc:
        raise MalformedRegistryError(f"Invalid registry JSON: {exc}") from exc
    if doc is None:
        doc = {}
    if not isinstance(doc, dict):
        raise MalformedRegistryError("Registry document is not a JSON object")
    fields = {key.lower(): value for key, value in doc.items()}
    services = fields.get("services")
    if services is None:
        services = []
    if not isinstance(services, list):
        raise MalformedRegistryError("Malformed bootstrap (bad services array)")
    return fields, services


def _merge_documents(official: bytes, custom: bytes) -> bytes:
    """Append the services of ``custom`` to those of ``official``."""
    _, custom_services = _read_document(custom)
    fields, services = _read_document(official)
    merged = {
        "Description": fields.get("description") or "",
        "Publication": fields.get("publication") or "",
        "Version": fields.get("version") or "",
        "Services": services + custom_services,
    }
    return json.dumps(merged, separators=(",", ":")).encode()


class BootstrapClient:
    """Downloads, caches and queries the RDAP bootstrap Service Registries.

    Registries are downloaded on first use and reused while the cache holds
    them. A file named ``custom-<registry filename>`` in ``custom_dir``
    (default ``~/.openrdap``) adds extra services to a downloaded registry.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        base_url: str = DEFAULT_BASE_URL,
        cache: RegistryCache | None = None,
        verbose: Callable[[str], None] | None = None,
        custom_dir: str | os.PathLike[str] | None = None,
    ) -> None:
        self.session = session if session is not None else requests.Session()
        self.base_url = base_url
        self.cache = cache if cache is not None else MemoryCache(DEFAULT_CACHE_TIMEOUT)
        self.verbose = verbose if verbose is not None else _quiet
        self.custom_dir = (
            Path(custom_dir) if custom_dir is not None else Path.home() / DEFAULT_CACHE_DIR_NAME
        )
        self._registries: dict[RegistryType, Registry] = {}

    def filename_for(self, registry_type: RegistryType) -> str:
        """Return the cache filename for a registry.

        Files from a non-default bootstrap service get a 6 character hash of
        the service URL as prefix, e.g. ``012def_dns.json``.
        """
        filename = registry_type.filename()
        if self.base_url != DEFAULT_BASE_URL:
            digest = hashlib.sha256(self.base_url.encode()).hexdigest()
            filename = f"{digest[:6]}_{filename}"
        return filename

    def download(self, registry_type: RegistryType, timeout: float | None = None) -> None:
        """Download one registry file, cache it and make it the current registry."""
        data, registry = self._fetch(registry_type, timeout)
        self.cache.save(self.filename_for(registry_type), data)
        self._registries[registry_type] = registry

    def _fetch_url(self, registry_type: RegistryType) -> str:
        parts = urlsplit(self.base_url)
        if parts.path and not parts.path.endswith("/"):
            parts = parts._replace(path=parts.path + "/")
        return urljoin(urlunsplit(parts), registry_type.filename())

    def _fetch(
        self, registry_type: RegistryType, timeout: float | None
    ) -> tuple[bytes, Registry]:
        url = self._fetch_url(registry_type)
        try:
            response = self.session.get(url, timeout=timeout)
        except requests.RequestException as exc:
            raise BootstrapError(f"Unable to download {url}: {exc}") from exc
        with response:
            if response.status_code != 200:
                raise BootstrapError(
                    "Server returned non-200 status code: "
                    f"{response.status_code} {response.reason or ''}".rstrip()
                )
            data = response.content

        custom_path = self.custom_dir / f"custom-{self.filename_for(registry_type)}"
        if custom_path.exists():
            data = _merge_documents(data, custom_path.read_bytes())

        return data, new_registry(registry_type, data)

    def _reload_from_cache(self, registry_type: RegistryType) -> None:
        data = self.cache.load(self.filename_for(registry_type))
        self._registries[registry_type] = new_registry(registry_type, data)

    def _freshen_from_cache(self, registry_type: RegistryType) -> None:
        if self.cache.state(self.filename_for(registry_type)) is FileState.SHOULD_RELOAD:
            try:
                self._reload_from_cache(registry_type)
            except (CacheMissError, OSError, ValueError):
                pass

    def lookup(self, question: Question) -> Answer:
        """Return the RDAP base URLs for ``question``, downloading as needed."""
        say = self.verbose
        registry_type = question.registry_type
        filename = self.filename_for(registry_type)

        say("  bootstrap: Looking up...")
        say(f"  bootstrap: Question type : {registry_type}")
        say(f"  bootstrap: Question query: {question.query}")

        state = self.cache.state(filename)
        say(f"  bootstrap: Cache state: {filename}: {state}")

        force_download = False
        if state is FileState.SHOULD_RELOAD:
            try:
                self._reload_from_cache(registry_type)
            except (CacheMissError, OSError, ValueError) as exc:
                force_download = True
                say(f"  bootstrap: Cache load error ({exc}), downloading...")

        if registry_type not in self._registries or force_download:
            say(f"  bootstrap: Downloading {registry_type.filename()}")
            self.download(registry_type, question.timeout)
        else:
            say("  bootstrap: Using cached Service Registry file")

        answer = self._registries[registry_type].lookup(question)

        say(f"  bootstrap: Looked up '{answer.query}'")
        if answer.entry:
            say(f"  bootstrap: Matching entry '{answer.entry}'")
        else:
            say("  bootstrap: No match")
        for number, url in enumerate(answer.urls, start=1):
            say(f"  bootstrap: Service URL #{number}: '{url}'")

        return answer

    def _current(self, registry_type: RegistryType, kind: type) -> Registry | None:
        self._freshen_from_cache(registry_type)
        registry = self._registries.get(registry_type)
        return registry if isinstance(registry, kind) else None

    def asn(self) -> ASNRegistry | None:
        """Return the current ASN registry, or None; never downloads."""
        return self._current(RegistryType.ASN, ASNRegistry)

    def dns(self) -> DNSRegistry | None:
        """Return the current DNS registry, or None; never downloads."""
        return self._current(RegistryType.DNS, DNSRegistry)

    def ipv4(self) -> NetRegistry | None:
        """Return the current IPv4 registry, or None; never downloads."""
        return self._current(RegistryType.IPV4, NetRegistry)

    def ipv6(self) -> NetRegistry | None:
        """Return the current IPv6 registry, or None; never downloads."""
        return self._current(RegistryType.IPV6, NetRegistry)

    def service_provider(self) -> ServiceProviderRegistry | None:
        """Return the current Service Provider registry, or None; never downloads."""
        return self._current(RegistryType.SERVICE_PROVIDER, ServiceProviderRegistry)