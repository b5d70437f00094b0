"""
Namespace Binding Helper

Names are dot-separated hierarchies read right to left: ``approval.group.pb``
is the label ``approval`` under the parent ``group.pb``. Binding a name asks
the host to reserve it for an address; a restricted binding means only that
address may create children under it.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from group_approval.contract.errors import FormatError
from group_approval.contract.response import BindNamespace


def name_segments(name: str) -> List[str]:
    """Split a name into its segments, validating each one."""
    if not isinstance(name, str) or not name:
        raise FormatError(str(name), "name must not be empty")
    segments = name.split(".")
    for segment in segments:
        if not segment:
            raise FormatError(name, "name contains an empty segment")
        if not segment.strip():
            raise FormatError(name, "name contains a blank segment")
    return segments


def split_name(name: str) -> Tuple[str, Optional[str]]:
    """Split ``name`` into its leading label and its parent (None for roots)."""
    segments = name_segments(name)
    label = segments[0]
    parent = ".".join(segments[1:]) or None
    return label, parent


def parent_names(name: str) -> List[str]:
    """All ancestors of ``name``, nearest first."""
    segments = name_segments(name)
    return [".".join(segments[i:]) for i in range(1, len(segments))]


def bind_namespace(name: str, owner: str, restricted: bool = True) -> BindNamespace:
    """Build a directive binding ``name`` to ``owner``."""
    label, parent = split_name(name)
    return BindNamespace(label=label, parent=parent, owner=owner, restricted=restricted)
