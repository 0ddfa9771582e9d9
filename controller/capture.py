"""
Screen Capture Module - The Eyes
Grabs the VM screen as PNG bytes for the vision model.
"""
import os
import subprocess
import tempfile
import time
import logging
from pathlib import Path
from typing import Optional

import cv2
import mss
import numpy as np
from mss.exception import ScreenShotError

from shared.constants import Defaults

logger = logging.getLogger(__name__)


class ScreenCapture:
    """Captures the screen through an external utility or mss."""

    BACKENDS = ("screencapture", "mss")

    def __init__(
        self,
        backend: str = "screencapture",
        utility: str = Defaults.SCREENCAPTURE_UTILITY.value,
        monitor_index: int = 1,
        screenshot_dir: Optional[str] = None
    ):
        """
        Initialize screen capture.

        Args:
            backend: "screencapture" (out-of-process utility) or "mss" (in-process).
            utility: Path of the capture utility for the screencapture backend.
            monitor_index: mss monitor index; 1 is the primary monitor.
            screenshot_dir: Directory to keep screenshots in. If None, they are discarded.
        """
        if backend not in self.BACKENDS:
            raise ValueError(f"Unknown capture backend {backend!r}, expected one of {self.BACKENDS}")

        self.backend = backend
        self.utility = utility
        self.monitor_index = monitor_index
        self.screenshot_dir = screenshot_dir
        self.capture_count = 0

    def capture_png(self) -> Optional[bytes]:
        """
        Capture the screen.

        Returns:
            PNG bytes, or None if capture failed.
        """
        if self.backend == "mss":
            data = self._capture_mss()
        else:
            data = self._capture_utility()

        if data is None:
            return None

        self.capture_count += 1
        logger.info(f"[CAPTURE] Screenshot captured ({len(data)} bytes)")
        return data

    def _screenshot_path(self) -> Path:
        if self.screenshot_dir:
            directory = Path(self.screenshot_dir)
            directory.mkdir(parents=True, exist_ok=True)
            return directory / f"vm_screenshot_{time.time():.3f}.png"

        fd, path = tempfile.mkstemp(prefix="vm_screenshot_", suffix=".png")
        os.close(fd)
        return Path(path)

    def _capture_utility(self) -> Optional[bytes]:
        """Run the external utility (-x: no shutter sound) and read its PNG back."""
        path = self._screenshot_path()
        try:
            result = subprocess.run(
                [self.utility, "-x", str(path)],
                capture_output=True,
                timeout=30
            )
            if result.returncode != 0:
                logger.error(f"[CAPTURE] {self.utility} exited with {result.returncode}: "
                             f"{result.stderr.decode(errors='replace').strip()}")
                return None

            data = path.read_bytes()
            if self.screenshot_dir:
                logger.info(f"[CAPTURE] Screenshot saved to {path}")
            return data or None

        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"[CAPTURE] Capture error: {e}")
            return None

        finally:
            if not self.screenshot_dir:
                path.unlink(missing_ok=True)

    def _capture_mss(self) -> Optional[bytes]:
        """Grab a monitor in-process and encode it as PNG."""
        try:
            with mss.mss() as sct:
                screenshot = sct.grab(sct.monitors[self.monitor_index])
            frame = np.array(screenshot)

            # Remove alpha channel if present (BGRA -> BGR)
            if frame.shape[2] == 4:
                frame = frame[:, :, :3]

            ok, encoded = cv2.imencode(".png", frame)
            if not ok:
                logger.error("[CAPTURE] PNG encoding failed")
                return None

            data = encoded.tobytes()
            if self.screenshot_dir:
                path = self._screenshot_path()
                path.write_bytes(data)
                logger.info(f"[CAPTURE] Screenshot saved to {path}")
            return data

        except (ScreenShotError, IndexError, OSError) as e:
            logger.error(f"[CAPTURE] Capture error: {e}")
            return None
