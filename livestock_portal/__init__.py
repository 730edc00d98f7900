"""
Livestock portal back end (Supabase-backed).

Derives alerts, disease trends, vaccination reminders and nutrition guidance
from farm records held in the hosted database.
"""


class PortalError(Exception):
    """Base error for the portal package."""


class SupabaseError(PortalError):
    """Upstream returned something we cannot use."""


class AuthorizationError(PortalError):
    """Caller is not allowed to perform the action."""
