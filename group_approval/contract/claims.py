"""
Claim Port and Claim Filter

Claims (attributes) live in an external, append-only, paginated store keyed
by holder identity. The contract never owns that store: it reads through a
ClaimsPort and requests writes by emitting WriteClaim directives.

Duplicate detection reads every page of the sender's claims for the contract's
tag, keeps the ones declared as integers, and decodes their values as u64
group ids:

    fetch_all_claims ──▶ filter_claims(tag, INT) ──▶ decode_int_value ──▶ ids

The fetch is fail-open. Any page failure yields "no existing claims", which
can never produce a false duplicate; the claim store remains the
authoritative record of membership.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import base64
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from group_approval.contract.hardening import UINT64_MAX
from group_approval.contract.observability import ContractLayer, get_logger

logger = get_logger("claims", ContractLayer.CLAIMS)

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 1000


class ClaimValueKind(Enum):
    """Declared encoding of a claim's value bytes."""
    UNSPECIFIED = "unspecified"
    UUID = "uuid"
    JSON = "json"
    STRING = "string"
    URI = "uri"
    INT = "int"
    FLOAT = "float"
    PROTO = "proto"
    BYTES = "bytes"


@dataclass(frozen=True)
class ExternalClaim:
    """A tagged, typed value held by an account in the external store."""
    holder: str
    name: str
    value: bytes
    kind: ClaimValueKind
    expiration: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "holder": self.holder,
            "name": self.name,
            "value": base64.b64encode(self.value).decode("ascii"),
            "kind": self.kind.value,
            "expiration": self.expiration.isoformat() if self.expiration else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExternalClaim":
        """Inverse of to_dict; ``value`` is base64."""
        return cls(
            holder=data["holder"],
            name=data["name"],
            value=base64.b64decode(data["value"], validate=True),
            kind=ClaimValueKind(data["kind"]),
            expiration=datetime.fromisoformat(data["expiration"]) if data.get("expiration") else None,
        )


@dataclass
class ClaimPage:
    """One page of claims plus the key for the next page (empty when done)."""
    claims: List[ExternalClaim] = field(default_factory=list)
    next_page_key: Optional[str] = None


class ClaimsPort(ABC):
    """Read access to the external claim store."""

    @abstractmethod
    def fetch_claims(
        self,
        holder: str,
        tag: Optional[str] = None,
        page_key: Optional[str] = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ClaimPage:
        """Fetch one page of ``holder``'s claims, optionally only ``tag``."""


# =============================================================================
# VALUE ENCODING
# =============================================================================

def encode_int_value(value: int) -> bytes:
    """Encode a u64 claim value (JSON number text)."""
    return json.dumps(int(value)).encode("utf-8")


def decode_int_value(raw: bytes) -> Optional[int]:
    """Decode a u64 claim value, returning None for malformed payloads."""
    try:
        value = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value < 0 or value > UINT64_MAX:
        return None
    return value


# =============================================================================
# CLAIM FILTER
# =============================================================================

def filter_claims(
    claims: Iterable[ExternalClaim],
    tag: str,
    kind: ClaimValueKind = ClaimValueKind.INT,
) -> List[ExternalClaim]:
    """Keep claims whose name equals ``tag`` exactly and whose kind matches."""
    return [c for c in claims if c.name == tag and c.kind == kind]


def get_group_id_values(claims: Iterable[ExternalClaim], tag: str) -> List[int]:
    """Decode group ids from the integer claims tagged ``tag``.

    Claims of other names or kinds, and integer claims with undecodable
    payloads, are skipped. Order of the input is preserved.
    """
    ids: List[int] = []
    for claim in filter_claims(claims, tag, ClaimValueKind.INT):
        value = decode_int_value(claim.value)
        if value is None:
            logger.debug("Skipping malformed integer claim", holder=claim.holder, tag=tag)
            continue
        ids.append(value)
    return ids


def fetch_all_claims(
    port: ClaimsPort,
    holder: str,
    tag: Optional[str] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> List[ExternalClaim]:
    """Follow the page-key chain to completion.

    Terminates on an empty or absent next-page key, a repeated page key, or
    after ``max_pages`` pages. A fetch failure on any page discards the
    partial result and returns an empty list.
    """
    collected: List[ExternalClaim] = []
    seen_keys = set()
    page_key: Optional[str] = None

    for page_number in range(max_pages):
        try:
            page = port.fetch_claims(holder, tag=tag, page_key=page_key, limit=page_size)
        except Exception:
            logger.warning(
                "Claim fetch failed; treating holder as having no existing claims",
                error_code="claim_fetch_failed",
                exc_info=True,
                holder=holder,
                tag=tag,
                page=page_number,
            )
            return []

        collected.extend(page.claims)
        page_key = page.next_page_key
        if not page_key:
            return collected
        if page_key in seen_keys:
            logger.warning("Claim store repeated a page key; stopping", holder=holder, page_key=page_key)
            return collected
        seen_keys.add(page_key)

    logger.warning("Claim page limit reached", holder=holder, tag=tag, max_pages=max_pages)
    return collected


def existing_group_ids(
    port: ClaimsPort,
    holder: str,
    tag: str,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> List[int]:
    """All group ids ``holder`` has already claimed under ``tag``."""
    claims = fetch_all_claims(port, holder, tag=tag, page_size=page_size, max_pages=max_pages)
    return get_group_id_values(claims, tag)
