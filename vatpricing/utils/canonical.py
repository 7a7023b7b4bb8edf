"""Canonical JSON and hashing utilities."""

import hashlib
import json
from dataclasses import asdict, is_dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable

from vatpricing.engine.types import Rule


def _canonical_value(obj: Any) -> Any:
    """Convert value for canonical representation."""
    if obj is None or isinstance(obj, bool):
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        # Exact text so 20.00 and 20 hash alike
        return format(obj.normalize(), "f")
    if isinstance(obj, (int, float)):
        return obj
    if isinstance(obj, date):
        return obj.isoformat()
    if is_dataclass(obj) and not isinstance(obj, type):
        return _canonical_value(asdict(obj))
    if isinstance(obj, dict):
        return {str(k): _canonical_value(v) for k, v in sorted(obj.items())}
    if isinstance(obj, (list, tuple)):
        return [_canonical_value(v) for v in obj]
    if isinstance(obj, str):
        return obj
    return str(obj)


def canonical_json(obj: Any) -> str:
    """Produce canonical JSON string (sorted keys, consistent formatting)."""
    canonical = _canonical_value(obj)
    return json.dumps(canonical, sort_keys=True, separators=(",", ":"))


def request_hash(obj: Any) -> str:
    """Compute SHA256 hash of canonical request JSON."""
    return hashlib.sha256(canonical_json(obj).encode()).hexdigest()


def rules_hash(rules: Iterable[Rule]) -> str:
    """SHA256 of the rule set, independent of input order."""
    ordered = sorted(rules, key=lambda r: r.rule_id)
    return hashlib.sha256(canonical_json(ordered).encode()).hexdigest()
