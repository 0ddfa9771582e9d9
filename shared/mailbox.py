"""
Mailbox Channel - single-slot, file-backed command delivery.
The controller writes, the host polls and consumes.
"""
import os
import tempfile
import logging
import uuid
from pathlib import Path
from typing import Optional, Union

from shared.constants import Defaults

logger = logging.getLogger(__name__)


def default_mailbox_path() -> str:
    """Well-known mailbox location in the system temp directory."""
    return os.path.join(tempfile.gettempdir(), Defaults.MAILBOX_NAME.value)


class Mailbox:
    """
    A named slot holding at most one pending command.

    Writes always overwrite (last-write-wins). A successful poll claims the
    slot by renaming it away before reading, so two pollers can never both
    consume the same content.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Initialize mailbox.

        Args:
            path: Slot file path. If None, uses the well-known temp location.
        """
        self.path = Path(path) if path else Path(default_mailbox_path())

    def send(self, raw: str):
        """
        Write raw into the slot, replacing any unconsumed content.

        The content is written to a sibling temp file and moved into place,
        so a reader never observes a partial string.

        Raises:
            OSError: If the slot directory is not writable.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent),
            prefix=f".{self.path.name}.",
            suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(raw)
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

        logger.debug(f"[MAILBOX] Wrote {raw!r} to {self.path}")

    def poll(self) -> Optional[str]:
        """
        Consume the pending command, if any.

        Returns:
            The slot content, or None if the slot is empty or vanished
            mid-read. Read errors are never raised.
        """
        if not self.path.exists():
            return None

        claim = self.path.with_name(f".{self.path.name}.{uuid.uuid4().hex}.claim")
        try:
            os.replace(self.path, claim)
        except OSError:
            # Another reader won, or the writer is mid-replace
            return None

        try:
            with open(claim, "r", encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"[MAILBOX] Dropped unreadable slot: {e}")
            content = None
        finally:
            try:
                os.unlink(claim)
            except OSError:
                pass

        if content is not None:
            logger.debug(f"[MAILBOX] Consumed {content!r}")
        return content

    def pending(self) -> bool:
        """Check for a pending command without consuming it."""
        return self.path.exists()

    def clear(self):
        """Discard any pending command."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def __repr__(self) -> str:
        return f"Mailbox({str(self.path)!r})"
