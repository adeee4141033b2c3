"""Append-only activity journal used as the audit trail of a session."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityEntry:
    """One state-affecting action taken by an agent."""

    timestamp: str
    display_time: str
    agent: str
    action: str
    details: str
    impact: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ActivityJournal:
    """Ordered log of every action; entries are never edited or removed."""

    def __init__(self) -> None:
        self._entries: List[ActivityEntry] = []
        self.last_updated: Optional[str] = None

    def log(self, agent: str, action: str, details: str, impact: Optional[str] = None) -> ActivityEntry:
        now = datetime.now(timezone.utc)
        entry = ActivityEntry(
            timestamp=now.isoformat(),
            display_time=now.strftime("%H:%M:%S"),
            agent=agent,
            action=action,
            details=details,
            impact=impact,
        )
        self._entries.append(entry)
        self.last_updated = entry.timestamp
        logger.info(f"[{agent}] {action}: {details}")
        return entry

    def entries(self) -> List[ActivityEntry]:
        return list(self._entries)

    def actions(self, agent: Optional[str] = None) -> List[str]:
        """Action tags in order, optionally filtered by agent."""
        return [e.action for e in self._entries if agent is None or e.agent == agent]

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
