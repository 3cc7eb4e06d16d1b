"""
Issue store - read-only snapshot of the issues collection for the map.

Accepts both document shapes found in the collection:
- flat:   latitude / longitude / severity / issue_type / priority_score
- nested: location.{lat,lng,address} / analysis.{severity,issueType,priorityScore}

Documents without coordinates are skipped. Every other bad field degrades
to its default; a single malformed document never fails the whole load.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from pydantic import ValidationError

from impact_map.config.firebase import get_db
from impact_map.core.settings import settings
from impact_map.models.issue import Issue, Status
from impact_map.utils.firestore_helpers import where_filter

logger = logging.getLogger(__name__)


def _parse_timestamp(value) -> Optional[datetime]:
    """
    Parse Firestore timestamps, datetimes, epoch millis and ISO strings
    into timezone-aware UTC datetimes.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)):
        # The portal stores epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    if hasattr(value, "timestamp"):
        try:
            return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    return None


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def issue_from_document(doc_id: str, data: Dict[str, Any]) -> Optional[Issue]:
    """
    Map an issues document to an Issue.

    Returns None when the document has no usable coordinates.
    """
    location = data.get("location") if isinstance(data.get("location"), dict) else {}
    analysis = data.get("analysis") if isinstance(data.get("analysis"), dict) else {}

    lat = _first(data.get("latitude"), location.get("lat"))
    lng = _first(data.get("longitude"), location.get("lng"))
    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        logger.debug(f"Skipping issue {doc_id}: no coordinates")
        return None

    try:
        return Issue(
            id=doc_id,
            latitude=lat,
            longitude=lng,
            description=str(data.get("description") or ""),
            address=_first(location.get("address"), data.get("resolved_address"), data.get("address")),
            status=Status.parse(data.get("status")),
            severity=_first(analysis.get("severity"), data.get("severity")),
            issue_type=_first(analysis.get("issueType"), data.get("issue_type")),
            priority_score=_first(analysis.get("priorityScore"), data.get("priority_score")),
            created_at=_parse_timestamp(_first(data.get("created_at"), data.get("timestamp"))),
        )
    except ValidationError as e:
        # Out-of-range coordinates and similar; the rest of the snapshot still loads
        logger.warning(f"Skipping invalid issue {doc_id}: {e.errors()}")
        return None


class IssueStore:
    """
    Loads issue snapshots from Firestore (or the mock DB).
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    def load_issues(self, status: Optional[str] = None, limit: Optional[int] = None) -> List[Issue]:
        """
        Fetch issues in stored order.

        Args:
            status: Optional exact status filter (e.g. "Pending")
            limit: Max documents to read, defaults to ISSUE_FETCH_LIMIT

        Returns:
            List of Issue; empty on query failure
        """
        limit = limit or settings.ISSUE_FETCH_LIMIT
        query = self.db.collection(settings.ISSUES_COLLECTION)
        if status:
            query = where_filter(query, "status", "==", Status.parse(status).value)

        try:
            docs = list(query.limit(limit).stream())
        except Exception as e:
            logger.error(f"Failed to load issues: {e}", exc_info=True)
            return []

        issues = []
        for doc in docs:
            issue = issue_from_document(doc.id, doc.to_dict() or {})
            if issue is not None:
                issues.append(issue)

        logger.info(f"Loaded {len(issues)} map issues ({len(docs) - len(issues)} skipped)")
        return issues


# Global service instance (singleton pattern)
_issue_store = None


def get_issue_store() -> IssueStore:
    """
    Get or create IssueStore singleton instance.

    Raises RuntimeError if the database cannot be initialized.
    """
    global _issue_store
    if _issue_store is None:
        _issue_store = IssueStore()
    return _issue_store


def reset_issue_store() -> None:
    global _issue_store
    _issue_store = None
