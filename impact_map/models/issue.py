"""
Pydantic models for geo-tagged issues shown on the incident map.

DESIGN PRINCIPLE:
- Issues are owned by the host portal; the map engine only reads them
- Classification fields (type, severity, priority) arrive pre-computed
- Bad or missing classification never rejects an issue, it degrades to defaults
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional
from enum import Enum


class Severity(str, Enum):
    """
    Severity tiers, lowest first.
    CRITICAL is the top tier and marks a cluster as high priority.
    """
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @classmethod
    def parse(cls, value) -> Optional["Severity"]:
        """Case-insensitive lookup by value or name. Returns None if unknown."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        for member in cls:
            if member.name == text or member.value.upper() == text:
                return member
        return None


class Status(str, Enum):
    PENDING = "Pending"
    REVIEWING = "Reviewing"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"

    @classmethod
    def parse(cls, value) -> "Status":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().upper().replace("_", " ")
        for member in cls:
            if member.value.upper() == text or member.name.replace("_", " ") == text:
                return member
        return cls.PENDING


class Issue(BaseModel):
    """
    A single reported issue as the map sees it.
    Immutable: the engine never mutates the host's records.
    """
    id: str = Field(..., min_length=1, description="Issue identifier")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    description: str = Field(default="", description="What the citizen reported")
    address: Optional[str] = Field(default=None, description="Human-readable address, if known")
    status: Status = Field(default=Status.PENDING)
    # Pre-computed analysis (may be missing entirely)
    severity: Optional[Severity] = Field(default=None, description="Missing or unknown severity counts as Low")
    issue_type: Optional[str] = Field(default=None, description="Classifier issue type label")
    priority_score: Optional[int] = Field(default=None, ge=0, le=100)
    created_at: Optional[datetime] = None

    class Config:
        frozen = True
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "id": "issue-101",
                "latitude": 40.7128,
                "longitude": -74.006,
                "description": "Deep pothole in the bus lane",
                "address": "Broadway & Chambers St",
                "status": "Pending",
                "severity": "Critical",
                "issue_type": "Infrastructure: Pothole",
                "priority_score": 92,
            }
        }

    @field_validator("severity", mode="before")
    @classmethod
    def _lenient_severity(cls, value):
        return Severity.parse(value)

    @field_validator("status", mode="before")
    @classmethod
    def _lenient_status(cls, value):
        return Status.parse(value)

    @field_validator("priority_score", mode="before")
    @classmethod
    def _lenient_priority(cls, value):
        try:
            score = int(value)
        except (TypeError, ValueError):
            return None
        return max(0, min(100, score))

    @field_validator("address", "issue_type", mode="before")
    @classmethod
    def _lenient_text(cls, value):
        # Labels only; anything that is not text is dropped rather than rejecting the issue
        if isinstance(value, str):
            return value
        return None

    @property
    def effective_severity(self) -> Severity:
        return self.severity or Severity.LOW

    @property
    def is_critical(self) -> bool:
        return self.effective_severity == Severity.CRITICAL
