"""Content digests used to detect project changes between runs."""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .model import Project

_EXCLUDED_FIELDS = frozenset({"digest"})


def canonical_payload(project: Project) -> bytes:
    """Encode ``project`` into stable bytes, ignoring its digest.

    Mapping keys are sorted; sequences (repositories, check sets) keep their order.
    """

    record: dict[str, Any] = {
        key: value for key, value in asdict(project).items() if key not in _EXCLUDED_FIELDS
    }
    return json.dumps(
        record,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def compute_digest(project: Project) -> str:
    """Return the hex SHA-256 digest of the canonical encoding of ``project``."""

    return hashlib.sha256(canonical_payload(project)).hexdigest()
