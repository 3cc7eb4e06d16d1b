"""
Map session registry - keeps interactive map sessions in memory.

Sessions are process-local and never persisted. The registry is bounded;
when full, the least recently created session is evicted.
"""

from collections import OrderedDict
from typing import Iterable, Optional, Tuple
import logging
import uuid

from impact_map.core.settings import settings
from impact_map.models.issue import Issue
from impact_map.models.map import MapView
from impact_map.services.map_engine import MapSession

logger = logging.getLogger(__name__)


class MapSessionRegistry:
    """
    Registry of MapSession objects keyed by a generated id.
    """

    def __init__(self, max_sessions: Optional[int] = None):
        self.max_sessions = max_sessions or settings.MAP_MAX_SESSIONS
        self._sessions: "OrderedDict[str, MapSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, issues: Iterable[Issue] = ()) -> Tuple[str, MapSession]:
        """
        Start a session in GLOBAL_NO_SELECTION over the given snapshot.
        
        Returns:
            (session_id, session)
        """
        session = MapSession(
            issues,
            cluster_threshold=settings.MAP_CLUSTER_THRESHOLD,
            global_padding=settings.MAP_GLOBAL_PADDING,
            zoom_padding=settings.MAP_ZOOM_PADDING,
            render_margin=settings.MAP_RENDER_MARGIN,
        )
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = session

        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info(f"Evicted map session {evicted_id} (limit {self.max_sessions})")

        logger.info(f"Created map session {session_id} with {len(session.issues)} issues")
        return session_id, session

    def get(self, session_id: str) -> Optional[MapSession]:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def clear(self) -> None:
        self._sessions.clear()


def build_map_view(session_id: str, session: MapSession) -> MapView:
    """Render one frame: clusters are recomputed from the current snapshot."""
    markers = session.markers()
    return MapView(
        session_id=session_id,
        state=session.state,
        markers=markers,
        selected_issue=session.selected_issue,
        legend=session.legend(markers),
    )


# Global registry instance (singleton pattern)
_registry = None


def get_session_registry() -> MapSessionRegistry:
    """
    Get or create the MapSessionRegistry singleton instance.
    
    Returns:
        MapSessionRegistry: The process-wide session registry
    """
    global _registry
    if _registry is None:
        _registry = MapSessionRegistry()
    return _registry
