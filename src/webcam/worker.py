"""
Background worker for MediaPipe hand tracking.
Runs in a separate QThread so camera reads never block the render loop.

The worker only produces immutable HandFrame objects; all interaction
state stays on the GUI thread.
"""
import time
from typing import Optional
from PyQt5.QtCore import QObject, pyqtSignal

from .hand_tracker import HandTracker


class WebcamWorker(QObject):
    """
    Worker class that handles the MediaPipe capture loop.
    Emits signals for UI updates.
    """
    # Signals
    hands_detected = pyqtSignal(object)  # Emits HandFrame
    frame_ready = pyqtSignal(object)     # Emits numpy array (BGR frame with landmarks)
    error = pyqtSignal(str)

    def __init__(self, config, parent=None):
        super().__init__(parent)
        self._config = config
        self._tracker: Optional[HandTracker] = None
        self._is_running = False

    def start_process(self):
        """Capture loop. Runs in the worker thread."""
        self._tracker = HandTracker(self._config)

        if not self._tracker.start():
            self.error.emit("Could not start hand tracking (camera or model unavailable)")
            return

        self._is_running = True

        last_frame_time = 0.0
        frame_interval = 1.0 / 10  # Low FPS for the landmark preview

        try:
            while self._is_running:
                hand_frame = self._tracker.get_hands()
                if hand_frame is None:
                    time.sleep(0.005)
                    continue

                self.hands_detected.emit(hand_frame)

                now = time.perf_counter()
                if self._config.ui.show_preview and now - last_frame_time >= frame_interval:
                    frame = self._tracker.get_frame_with_landmarks(hand_frame, black_background=True)
                    if frame is not None:
                        self.frame_ready.emit(frame)
                    last_frame_time = now

        except Exception as e:
            self.error.emit(f"Worker Exception: {str(e)}")
        finally:
            self._is_running = False
            if self._tracker:
                self._tracker.stop()

    def stop_process(self):
        """Signal the loop to stop and release resources in worker thread."""
        self._is_running = False
