"""Registry records, probe outcomes and scan results with their JSON forms."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..core.keys import (
    K_AGE,
    K_COMPLETED_AT,
    K_DOMAIN,
    K_DOMAINS,
    K_HOST_COUNT,
    K_ID,
    K_OWNER,
    K_REACHABILITY,
    K_REACHABILITY_ERROR,
    K_REGISTRATION_STATUS,
    K_STATUS,
)


class Reachability(str, Enum):
    UNCHECKED = "unchecked"
    CHECKING = "checking"
    WORKING = "working"
    BROKEN = "broken"


class ScanStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class DomainRecord:
    """One entry discovered in the registry listing."""

    domain: str
    registration_status: str
    owner: str
    age: str
    host_count: int = 0
    reachability: Reachability = Reachability.UNCHECKED
    reachability_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            K_DOMAIN: self.domain,
            K_REGISTRATION_STATUS: self.registration_status,
            K_OWNER: self.owner,
            K_AGE: self.age,
            K_HOST_COUNT: self.host_count,
            K_REACHABILITY: self.reachability.value,
        }
        if self.reachability_error:
            payload[K_REACHABILITY_ERROR] = self.reachability_error
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DomainRecord":
        return cls(
            domain=str(data[K_DOMAIN]),
            registration_status=str(data.get(K_REGISTRATION_STATUS, "")),
            owner=str(data.get(K_OWNER, "")),
            age=str(data.get(K_AGE, "")),
            host_count=int(data.get(K_HOST_COUNT, 0) or 0),
            reachability=Reachability(data.get(K_REACHABILITY, Reachability.UNCHECKED.value)),
            reachability_error=data.get(K_REACHABILITY_ERROR),
        )


@dataclass(frozen=True)
class ProbeOutcome:
    """Classification of a single reachability probe."""

    classification: Reachability
    error: Optional[str] = None

    @classmethod
    def working(cls) -> "ProbeOutcome":
        return cls(Reachability.WORKING)

    @classmethod
    def broken(cls, error: str) -> "ProbeOutcome":
        return cls(Reachability.BROKEN, error)


@dataclass(frozen=True)
class ScanResult:
    """One completed or failed scan attempt; immutable once created."""

    id: str
    status: ScanStatus
    completed_at: datetime
    domains: Tuple[DomainRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            K_ID: self.id,
            K_STATUS: self.status.value,
            K_COMPLETED_AT: self.completed_at.isoformat(),
            K_DOMAINS: [record.to_dict() for record in self.domains],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanResult":
        return cls(
            id=str(data[K_ID]),
            status=ScanStatus(data[K_STATUS]),
            completed_at=datetime.fromisoformat(data[K_COMPLETED_AT]),
            domains=tuple(DomainRecord.from_dict(item) for item in data.get(K_DOMAINS) or []),
        )
