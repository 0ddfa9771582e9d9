"""
Process Liveness Check
Heuristic presence test for the VM application by process name.
"""
import logging
from typing import Callable, Iterable, List, Optional

import psutil

from shared.constants import Defaults

logger = logging.getLogger(__name__)


def list_process_names() -> List[str]:
    """Names of all running processes visible to this user."""
    names = []
    for proc in psutil.process_iter(["name"]):
        try:
            name = proc.info.get("name")
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
        if name:
            names.append(name)
    return names


class ProcessProbe:
    """
    Reports whether the target application appears to be running.

    This is a name match, not a handle: it false-positives on name
    collisions and false-negatives while the application relaunches.
    """

    def __init__(
        self,
        app_name: str = Defaults.TARGET_APP_NAME.value,
        lister: Optional[Callable[[], Iterable[str]]] = None
    ):
        """
        Initialize probe.

        Args:
            app_name: Substring of the target process name.
            lister: Callable returning process names. Defaults to psutil enumeration.
        """
        self.app_name = app_name
        self.lister = lister or list_process_names

    def is_target_alive(self) -> bool:
        """True if any process name contains the target name."""
        alive = any(self.app_name in name for name in self.lister())
        if not alive:
            logger.debug(f"[LIVENESS] No process matching {self.app_name!r}")
        return alive
