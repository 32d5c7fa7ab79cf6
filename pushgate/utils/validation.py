"""Small accumulator for request field validation."""
from __future__ import annotations

from typing import Any, Dict, List


class RequestValidator:
    """Collect field issues before any store or provider call is made."""

    def __init__(self) -> None:
        self._issues: List[Dict[str, str]] = []

    def not_blank(self, field: str, value: Any) -> "RequestValidator":
        if value is None or (isinstance(value, str) and not value.strip()):
            self.add(field, f"{field} is required")
        return self

    def add(self, field: str, issue: str) -> "RequestValidator":
        self._issues.append({"field": field, "issue": issue})
        return self

    @property
    def issues(self) -> List[Dict[str, str]]:
        return list(self._issues)

    @property
    def valid(self) -> bool:
        return not self._issues
