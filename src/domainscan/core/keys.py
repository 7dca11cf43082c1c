"""Shared serialization keys to avoid magic strings across domainscan modules."""

from __future__ import annotations

# Domain record keys
K_DOMAIN = "domain"
K_REGISTRATION_STATUS = "registration_status"
K_OWNER = "owner"
K_AGE = "age"
K_HOST_COUNT = "host_count"
K_REACHABILITY = "reachability"
K_REACHABILITY_ERROR = "reachability_error"

# Scan result keys
K_ID = "id"
K_DOMAINS = "domains"
K_STATUS = "status"
K_COMPLETED_AT = "completed_at"
