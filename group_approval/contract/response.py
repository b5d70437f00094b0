"""
Handler Responses and Outbound Directives

A successful handler returns a Response: human-readable attributes, an
optional data payload, and the directives the host must apply inside the
same transaction. The contract never performs external writes itself.

    WriteClaim       add a claim to an account in the external claim store
    BindNamespace    reserve a hierarchical name for an address

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from group_approval.contract.claims import ClaimValueKind


@dataclass(frozen=True)
class Attribute:
    """A key/value pair describing the outcome of an invocation."""
    key: str
    value: str


@dataclass(frozen=True)
class WriteClaim:
    """Directive: add a claim to ``holder``."""
    holder: str
    tag: str
    value: bytes
    kind: ClaimValueKind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "write_claim",
            "holder": self.holder,
            "tag": self.tag,
            "value": base64.b64encode(self.value).decode("ascii"),
            "kind": self.kind.value,
        }


@dataclass(frozen=True)
class BindNamespace:
    """Directive: bind ``label`` under ``parent`` to ``owner``."""
    label: str
    parent: Optional[str]
    owner: str
    restricted: bool = True

    @property
    def name(self) -> str:
        return f"{self.label}.{self.parent}" if self.parent else self.label

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "bind_namespace",
            "name": self.name,
            "owner": self.owner,
            "restricted": self.restricted,
        }


Directive = Union[WriteClaim, BindNamespace]


@dataclass
class Response:
    """Result of a successful handler invocation."""
    messages: List[Directive] = field(default_factory=list)
    attributes: List[Attribute] = field(default_factory=list)
    data: Optional[bytes] = None

    def add_message(self, directive: Directive) -> "Response":
        self.messages.append(directive)
        return self

    def add_attribute(self, key: str, value: Any) -> "Response":
        self.attributes.append(Attribute(key=key, value=str(value)))
        return self

    def set_data(self, data: bytes) -> "Response":
        self.data = data
        return self

    def attribute(self, key: str) -> str:
        """Return the single attribute value for ``key``."""
        matches = [a.value for a in self.attributes if a.key == key]
        if len(matches) != 1:
            raise KeyError(f"expected exactly one attribute [{key}], found {len(matches)}")
        return matches[0]

    def attributes_dict(self) -> Dict[str, str]:
        return {a.key: a.value for a in self.attributes}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "messages": [m.to_dict() for m in self.messages],
            "attributes": [{"key": a.key, "value": a.value} for a in self.attributes],
            "data": self.data.decode("utf-8") if self.data is not None else None,
        }
