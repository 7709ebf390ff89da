"""RDAP response objects, decode snapshots and client errors."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any


class DecodeData:
    """A snapshot of every field of an RDAP object as it was decoded.

    It keeps the raw values of all fields, known and unknown, and the minor
    warnings raised while decoding them. Field names are RDAP names such as
    "port43", not attribute names.
    """

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        known: Iterable[str] = (),
        notes: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self._known: set[str] = set(known)
        self._notes: dict[str, list[str]] = {
            name: list(messages) for name, messages in (notes or {}).items()
        }

    def __repr__(self) -> str:
        return (
            f"DecodeData(values={self._values!r}, known={sorted(self._known)!r}, "
            f"notes={self._notes!r})"
        )

    def __str__(self) -> str:
        lines = [
            f"\n !!!{name}: {note}"
            for name, messages in self._notes.items()
            for note in messages
        ]
        return "[" + "".join(lines) + "\n"

    def add_note(self, name: str, note: str) -> None:
        """Record a decoding warning for the field ``name``."""
        self._notes.setdefault(name, []).append(note)

    def notes(self, name: str) -> list[str]:
        """Return the decoding warnings for the field ``name``, or an empty list."""
        return list(self._notes.get(name, []))

    def value(self, name: str) -> Any:
        """Return the raw decoded value of the field ``name``, or None."""
        return self._values.get(name)

    def fields(self) -> list[str]:
        """Return the names of all decoded fields, known and unknown."""
        return list(self._values)

    def unknown_fields(self) -> list[str]:
        """Return the names of decoded fields that are not known fields."""
        return [name for name in self._values if name not in self._known]


@dataclass
class Link:
    """A link to another resource on the Internet."""

    value: str = ""
    rel: str = ""
    href: str = ""
    hreflang: list[str] = field(default_factory=list)
    title: str = ""
    media: str = ""
    type: str = ""
    decode_data: DecodeData | None = None


@dataclass
class Notice:
    """Information about the entire RDAP response."""

    title: str = ""
    type: str = ""
    description: list[str] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    decode_data: DecodeData | None = None


@dataclass
class Remark:
    """Information about the containing RDAP object."""

    title: str = ""
    type: str = ""
    description: list[str] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    decode_data: DecodeData | None = None


@dataclass
class Event:
    """An event that has occurred or may occur in the future."""

    action: str = ""
    actor: str = ""
    date: str = ""
    links: list[Link] = field(default_factory=list)
    decode_data: DecodeData | None = None


@dataclass
class PublicID:
    """A public identifier mapped to an object class."""

    type: str = ""
    identifier: str = ""
    decode_data: DecodeData | None = None


@dataclass
class Autnum:
    """An Autonomous System registration; a topmost RDAP response object."""

    handle: str = ""
    start_autnum: int | None = None
    end_autnum: int | None = None
    ip_version: str = ""
    name: str = ""
    type: str = ""
    status: list[str] = field(default_factory=list)
    country: str = ""
    entities: list[Any] = field(default_factory=list)
    remarks: list[Remark] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    port43: str = ""
    events: list[Event] = field(default_factory=list)
    lang: str = ""
    conformance: list[str] = field(default_factory=list)
    object_class_name: str = ""
    notices: list[Notice] = field(default_factory=list)
    decode_data: DecodeData | None = None


class ClientErrorType(enum.IntEnum):
    """The kind of failure an RDAP client reports."""

    INPUT_ERROR = 1
    BOOTSTRAP_NOT_SUPPORTED = 2
    BOOTSTRAP_NO_MATCH = 3
    WRONG_RESPONSE_TYPE = 4
    NO_WORKING_SERVERS = 5
    OBJECT_DOES_NOT_EXIST = 6
    RDAP_SERVER_ERROR = 7


class ClientError(Exception):
    """An error raised by the RDAP client, tagged with its kind."""

    def __init__(self, type: ClientErrorType, text: str) -> None:
        super().__init__(text)
        self.type = type
        self.text = text

    def __str__(self) -> str:
        return self.text


def is_client_error(error_type: ClientErrorType, error: BaseException | None) -> bool:
    """Return True if ``error`` is a ClientError of kind ``error_type``."""
    return isinstance(error, ClientError) and error.type is error_type