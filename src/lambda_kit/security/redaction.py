"""
Field masking for logged request data.

Masking is applied to plain dict/list structures before they are copied into a
snapshot, so nothing downstream (local logs, shipped records) ever sees the
original values.
"""

import copy
import re
from typing import Any, Iterable, Optional, Pattern

MASK = '*****'

# Keys always masked, compared exactly
DENY_FIELDS = frozenset({'password', 'newPassword'})

# Keys masked when the pattern matches anywhere in the key
BUILTIN_SECRET_PATTERN = re.compile(r'password|token|secret', re.IGNORECASE)


class FieldMasker:
    """Recursively masks values whose keys are denied or match a secret pattern."""

    def __init__(
        self,
        extra_pattern: Optional[str] = None,
        deny_fields: Iterable[str] = DENY_FIELDS,
    ):
        self.deny_fields = frozenset(deny_fields)
        self.patterns: list[Pattern[str]] = [BUILTIN_SECRET_PATTERN]
        if extra_pattern:
            self.patterns.append(re.compile(extra_pattern))

    def is_sensitive(self, key: Any) -> bool:
        if not isinstance(key, str):
            return False
        if key in self.deny_fields:
            return True
        return any(pattern.search(key) for pattern in self.patterns)

    def mask(self, data: Any) -> Any:
        """Return a deep copy of ``data`` with sensitive values replaced."""
        return self._mask(copy.deepcopy(data))

    def _mask(self, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: MASK if self.is_sensitive(key) and value is not None else self._mask(value)
                for key, value in data.items()
            }
        if isinstance(data, list):
            return [self._mask(item) for item in data]
        return data


def mask_sensitive_data(data: Any, extra_pattern: Optional[str] = None) -> Any:
    """Mask ``data`` with the built-in rules plus an optional extra key pattern."""
    return FieldMasker(extra_pattern=extra_pattern).mask(data)
