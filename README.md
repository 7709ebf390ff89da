# rdapkit

`rdapkit` finds the RDAP servers that can answer a query. It downloads the
IANA bootstrap Service Registry files (`asn.json`, `dns.json`, `ipv4.json`,
`ipv6.json`, plus an experimental service provider registry), caches them,
and looks queries up in them. It also has plain data types for parts of RDAP
responses and a client error type.

## Installation

```
pip install rdapkit
```

## Bootstrap lookups

```python
from rdapkit.bootstrap import BootstrapClient
from rdapkit.registry_file import Question, RegistryType

client = BootstrapClient()
answer = client.lookup(Question(RegistryType.DNS, "example.br"))

print(answer.query)   # the query as looked up, e.g. lower-cased
print(answer.entry)   # matching registry entry, e.g. "br"; "" if none
for url in answer.urls:
    print(url)        # RDAP base URLs, as strings
```

The registry types are `RegistryType.DNS`, `IPV4`, `IPV6`, `ASN` and
`SERVICE_PROVIDER`.

* ASN queries look like `"AS1768"`, `"as1768"` or `"1768"`. The answer's
  entry is the matching range, e.g. `"AS1768-AS1769"`.
* IP queries take an address or a CIDR range, e.g. `"192.0.2.0"`,
  `"192.0.2.0/25"` or `"2001:db8::"`. The most specific registered network
  that contains it wins.
* Domain queries drop a trailing dot, are lower-cased, and then fall back
  label by label from the full name down to the root zone (`""`).
* Service provider queries take entity handles such as `"12345-VRSN"` (the
  older `"12345~VRSN"` form works too). A missing or unknown tag gives an
  answer with no URLs.

A query that cannot be parsed (for example `"not-a-number"` as an ASN, or an
IPv6 address asked of the IPv4 registry) raises `ValueError`.

`Question` also carries an optional `timeout` in seconds, used when the
lookup has to download a registry file; `question.with_timeout(10)` returns a
copy with a new timeout.

### The client

`BootstrapClient` takes these keyword arguments, all optional:

* `session` – a `requests.Session` used for downloads.
* `base_url` – where the registry files are fetched from
  (default `https://data.iana.org/rdap/`). With a different base URL, cached
  files are named with a 6 character hash prefix, see `filename_for()`.
* `cache` – a `RegistryCache`; the default is a `MemoryCache` keeping files
  for 24 hours.
* `verbose` – a callable receiving progress messages.
* `custom_dir` – a directory (default `~/.openrdap`). If it holds a file named
  `custom-<registry filename>`, e.g. `custom-dns.json`, its services are
  appended to the downloaded registry.

A client downloads each registry file the first time it needs it, and after
that answers from what it has loaded. To fetch a file yourself, call
`client.download(RegistryType.ASN)`. To see what is loaded without touching
the network, use `client.asn()`, `client.dns()`, `client.ipv4()`,
`client.ipv6()` and `client.service_provider()`; each returns `None` if that
registry has not been loaded.

A download that fails, or answers with a status other than 200, raises
`BootstrapError`.

## Caching

`rdapkit.cache` has two caches with the same interface (`load`, `save`,
`state`, `set_timeout`; timeouts in seconds):

* `MemoryCache(timeout)` keeps files in memory.
* `DiskCache(dir, timeout)` keeps files in a directory (default
  `~/.openrdap`), created as needed, and uses file modification times for
  expiry. Several `DiskCache` objects can share one directory.

```python
from rdapkit.cache import DiskCache
from rdapkit.bootstrap import BootstrapClient

client = BootstrapClient(cache=DiskCache())
```

`state(filename)` returns a `FileState`: `ABSENT`, `GOOD`, `SHOULD_RELOAD`
(a newer copy is on disk than the one last loaded or saved) or `EXPIRED`.
Expired files can still be loaded. Loading a file the cache does not hold
raises `CacheMissError`.

## Parsing registry files directly

```python
from rdapkit.registries import DNSRegistry, new_registry
from rdapkit.registry_file import Question, RegistryType, parse_file

with open("dns.json", "rb") as f:
    data = f.read()

registry = DNSRegistry(data)   # or new_registry(RegistryType.DNS, data)
print(registry.lookup(Question(query="www.example.br")).urls)

document = parse_file(data)    # RegistryFile: description, publication,
print(document.entries)        # version, entries, json
```

`ASNRegistry`, `DNSRegistry`, `NetRegistry(data, ip_version)` and
`ServiceProviderRegistry` each keep the parsed document as `.file`. URLs that
cannot be parsed are skipped. A malformed document raises
`MalformedRegistryError`. `parse_asn()` and `parse_asn_range()` are available
on their own.

## Data types

`rdapkit.models` holds dataclasses for parts of RDAP responses: `Link`,
`Notice`, `Remark`, `Event`, `PublicID` and `Autnum`, plus `DecodeData`, a
snapshot of an object's raw fields (`value()`, `fields()`,
`unknown_fields()`, `notes()`).

`ClientError` is an exception tagged with a `ClientErrorType`;
`is_client_error(ClientErrorType.NO_WORKING_SERVERS, err)` tells whether an
error is of a given kind.

## What this package does not do

`rdapkit` stops at bootstrapping. It does not send RDAP queries to the
servers it finds, decode or print RDAP responses, or provide data types for
domains, entities, nameservers or IP networks. There is no command-line tool.