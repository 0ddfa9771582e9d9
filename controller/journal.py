"""
Plan Journal
Appends each dispatched plan to a JSON-lines file so it can be inspected and replayed.
"""
import json
import time
import threading
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class JournalEntry:
    """Record of one dispatched plan."""
    timestamp: float
    goal: str
    explanation: str
    commands: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "timestamp": self.timestamp,
            "time_str": datetime.fromtimestamp(self.timestamp).isoformat(),
            "goal": self.goal,
            "explanation": self.explanation,
            "commands": self.commands
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JournalEntry":
        """Create from dictionary; time_str is derived and ignored."""
        return cls(
            timestamp=float(data.get("timestamp", 0.0)),
            goal=data.get("goal", ""),
            explanation=data.get("explanation", ""),
            commands=[str(c) for c in data.get("commands", [])]
        )


class PlanJournal:
    """Thread-safe JSONL writer for dispatched plans."""

    def __init__(self, path: str):
        """
        Initialize journal.

        Args:
            path: JSONL file to append to. Parent directories are created.
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def record(self, goal: str, explanation: str, commands: List[str]) -> JournalEntry:
        """
        Append one plan.

        Args:
            goal: Operator's goal.
            explanation: Model's explanation.
            commands: Commands actually sent, in order.

        Returns:
            The written entry.
        """
        entry = JournalEntry(
            timestamp=time.time(),
            goal=goal,
            explanation=explanation,
            commands=list(commands)
        )
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry.to_dict()) + "\n")

        logger.debug(f"[JOURNAL] Recorded {len(commands)} command(s) for {goal!r}")
        return entry

    def load(self) -> List[JournalEntry]:
        """Read all entries from this journal."""
        return load_journal(str(self.path))


def load_journal(path: str) -> List[JournalEntry]:
    """
    Read entries from a JSONL journal.

    Blank and corrupt lines are skipped with a warning.

    Raises:
        OSError: If the file cannot be opened.
    """
    entries: List[JournalEntry] = []
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(JournalEntry.from_dict(json.loads(line)))
            except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"[JOURNAL] Skipping line {line_number} of {path}: {e}")
    return entries


def select_entry(entries: List[JournalEntry], index: Optional[int] = None) -> Optional[JournalEntry]:
    """Pick an entry by index (negative counts from the end); defaults to the latest."""
    if not entries:
        return None
    try:
        return entries[-1 if index is None else index]
    except IndexError:
        return None
