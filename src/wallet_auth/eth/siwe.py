"""Sign-In with Ethereum (EIP-4361) message model.

A SIWE message is plain text::

    example.com wants you to sign in with your Ethereum account:
    0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2

    I accept the Terms of Service.

    URI: https://example.com/login
    Version: 1
    Chain ID: 1
    Nonce: 32891756
    Issued At: 2021-09-30T16:25:24Z
    Resources:
    - https://example.com/tos

The statement and every field after ``Issued At`` are optional.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime

from wallet_auth.errors.definitions import MalformedMessageError

_HEADER_SUFFIX = " wants you to sign in with your Ethereum account:"
_NONCE_RE = re.compile(r"[A-Za-z0-9_-]{8,}")
_CHAIN_ID_RE = re.compile(r"[0-9]+")

# Field label -> attribute, in the order they must appear.
_FIELDS = (
    ("URI", "uri"),
    ("Version", "version"),
    ("Chain ID", "chain_id"),
    ("Nonce", "nonce"),
    ("Issued At", "issued_at"),
    ("Expiration Time", "expiration_time"),
    ("Not Before", "not_before"),
    ("Request ID", "request_id"),
)
_REQUIRED = ("uri", "version", "nonce")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp; naive values are taken as UTC.

    Raises:
        MalformedMessageError: If *value* is not a timestamp.
    """
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        msg = f"invalid timestamp: {value!r}"
        raise MalformedMessageError(msg) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class SiweMessage:
    """Parsed EIP-4361 message."""

    domain: str
    address: str
    uri: str
    version: str
    nonce: str
    chain_id: int | None = None
    statement: str | None = None
    issued_at: str | None = None
    expiration_time: str | None = None
    not_before: str | None = None
    request_id: str | None = None
    resources: list[str] = field(default_factory=list)

    def prepare(self) -> str:
        """Render the message in the exact text form a wallet signs."""
        lines = [f"{self.domain}{_HEADER_SUFFIX}", self.address, ""]
        if self.statement:
            lines.extend([self.statement, ""])
        lines.append(f"URI: {self.uri}")
        lines.append(f"Version: {self.version}")
        if self.chain_id is not None:
            lines.append(f"Chain ID: {self.chain_id}")
        lines.append(f"Nonce: {self.nonce}")
        if self.issued_at:
            lines.append(f"Issued At: {self.issued_at}")
        if self.expiration_time:
            lines.append(f"Expiration Time: {self.expiration_time}")
        if self.not_before:
            lines.append(f"Not Before: {self.not_before}")
        if self.request_id:
            lines.append(f"Request ID: {self.request_id}")
        if self.resources:
            lines.append("Resources:")
            lines.extend(f"- {r}" for r in self.resources)
        return "\n".join(lines)

    def is_within_window(self, now: datetime | None = None) -> bool:
        """Check ``Not Before`` / ``Expiration Time`` against *now* (UTC)."""
        now = now or datetime.now(tz=UTC)
        if self.expiration_time and now >= parse_timestamp(self.expiration_time):
            return False
        return not (self.not_before and now < parse_timestamp(self.not_before))


def parse_siwe_message(text: str) -> SiweMessage:
    """Parse the text of a SIWE message.

    Raises:
        MalformedMessageError: If the text is not a well-formed message.
    """
    if not isinstance(text, str) or not text:
        raise MalformedMessageError("empty message")

    lines = text.replace("\r\n", "\n").rstrip("\n").split("\n")
    if len(lines) < 3 or not lines[0].endswith(_HEADER_SUFFIX):
        raise MalformedMessageError("missing sign-in header")

    domain = lines[0][: -len(_HEADER_SUFFIX)]
    if not domain or " " in domain:
        raise MalformedMessageError("invalid domain")
    address = lines[1]

    # Everything up to the first "URI:" line is the optional statement block.
    try:
        uri_index = next(i for i, line in enumerate(lines) if line.startswith("URI: "))
    except StopIteration:
        raise MalformedMessageError("missing URI field") from None

    statement = "\n".join(lines[2:uri_index]).strip() or None

    values: dict[str, str] = {}
    resources: list[str] = []
    position = 0
    rest = lines[uri_index:]
    for index, line in enumerate(rest):
        if line == "Resources:":
            resources = _parse_resources(rest[index + 1 :])
            break
        label, sep, value = line.partition(": ")
        if not sep:
            msg = f"unexpected line: {line!r}"
            raise MalformedMessageError(msg)
        for offset, (name, attr) in enumerate(_FIELDS[position:]):
            if name == label:
                values[attr] = value
                position += offset + 1
                break
        else:
            msg = f"unknown or out-of-order field: {label!r}"
            raise MalformedMessageError(msg)

    for attr in _REQUIRED:
        if not values.get(attr):
            msg = f"missing field: {attr}"
            raise MalformedMessageError(msg)

    if not _NONCE_RE.fullmatch(values["nonce"]):
        raise MalformedMessageError("invalid nonce")

    chain_id: int | None = None
    if "chain_id" in values:
        if not _CHAIN_ID_RE.fullmatch(values["chain_id"]):
            raise MalformedMessageError("invalid chain id")
        chain_id = int(values["chain_id"])

    for attr in ("issued_at", "expiration_time", "not_before"):
        if attr in values:
            parse_timestamp(values[attr])

    return SiweMessage(
        domain=domain,
        address=address,
        statement=statement,
        uri=values["uri"],
        version=values["version"],
        chain_id=chain_id,
        nonce=values["nonce"],
        issued_at=values.get("issued_at"),
        expiration_time=values.get("expiration_time"),
        not_before=values.get("not_before"),
        request_id=values.get("request_id"),
        resources=resources,
    )


def _parse_resources(lines: list[str]) -> list[str]:
    resources = []
    for line in lines:
        if not line.startswith("- "):
            msg = f"invalid resource line: {line!r}"
            raise MalformedMessageError(msg)
        resources.append(line[2:])
    return resources
