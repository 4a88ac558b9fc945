"""
Caller scope resolution.

Turns the caller's user profile into the ScopeFilter the matcher enforces.
Superadmins see every organization; everyone else sees the requested
company, their own company and their connected companies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from shipment_matching.constants import SUPERADMIN_ROLE
from shipment_matching.matching.filters import ScopeFilter
from shipment_matching.utils.normalize import clean_text


@dataclass(frozen=True)
class CallerProfile:
    """The parts of a user profile that decide shipment visibility."""

    user_id: str
    role: str = ""
    company_id: str | None = None
    connected_companies: tuple[str, ...] = ()

    @property
    def is_superadmin(self) -> bool:
        return self.role.lower() == SUPERADMIN_ROLE

    @classmethod
    def from_dict(cls, user_id: str, data: Mapping[str, Any]) -> CallerProfile:
        """
        Build a profile from a user document.

        connectedCompanies may hold plain keys or {"companyID": ...} objects.
        """
        connected = []
        for entry in data.get("connectedCompanies") or []:
            if isinstance(entry, Mapping):
                entry = entry.get("companyID") or entry.get("companyId")
            key = clean_text(entry)
            if key:
                connected.append(key)
        company = clean_text(data.get("companyID") or data.get("companyId"))
        return cls(
            user_id=user_id,
            role=clean_text(data.get("role")),
            company_id=company or None,
            connected_companies=tuple(connected),
        )


def resolve_caller_scope(
    profile: CallerProfile | None,
    requested_company_id: str | None = None,
) -> ScopeFilter:
    """
    Resolve which organizations a caller may match against.

    Args:
        profile: Caller's profile, or None when no profile exists
        requested_company_id: Company the request is made on behalf of

    Returns:
        Unrestricted scope for superadmins, otherwise the union of the
        requested company, the profile's company and its connected
        companies (possibly empty, which admits nothing)
    """
    if profile is not None and profile.is_superadmin:
        return ScopeFilter.unrestricted()

    keys: list[str] = []
    if requested_company_id:
        keys.append(requested_company_id)
    if profile is not None:
        keys.extend(profile.connected_companies)
        if profile.company_id:
            keys.append(profile.company_id)
    return ScopeFilter.of(keys)
