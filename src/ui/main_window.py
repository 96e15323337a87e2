"""
Main window - viewport, palette, toggles and status bar.
"""
from typing import List, Optional
import numpy as np

from PyQt5.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QCheckBox, QMessageBox,
)
from PyQt5.QtCore import Qt, QTimer, pyqtSignal
from PyQt5.QtGui import QImage, QPixmap

from voxel.engine import FrameResult, InteractionEngine
from voxel.effects import ParticleSystem
from webcam.config import Config
from webcam.gesture_machine import Mode
from webcam.smoothing import Handedness

from .viewport import VoxelViewport

RESET_CONFIRM_MS = 3000


class MainWindow(QMainWindow):
    """
    Top-level AirBlocks window.

    Emits color_selected, gravity_toggled and reset_requested; main.py
    forwards them to the engine.
    """
    color_selected = pyqtSignal(int)
    gravity_toggled = pyqtSignal(bool)
    reset_requested = pyqtSignal()

    def __init__(self, config: Config, engine: InteractionEngine, particles: ParticleSystem, parent=None):
        super().__init__(parent)
        self._config = config
        self._engine = engine
        self._palette_buttons: List[QPushButton] = []
        self._reset_armed = False

        self._reset_timer = QTimer(self)
        self._reset_timer.setSingleShot(True)
        self._reset_timer.timeout.connect(self._disarm_reset)

        self.setWindowTitle("AirBlocks")
        self._setup_ui(particles)
        self._apply_theme()
        self._select_color(0)

    def _setup_ui(self, particles: ParticleSystem):
        """Build the UI."""
        central = QWidget()
        central.setObjectName("CentralWidget")
        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        self.setCentralWidget(central)

        # Toolbar: palette, gravity, reset
        toolbar = QWidget()
        toolbar.setObjectName("Toolbar")
        toolbar_layout = QHBoxLayout(toolbar)
        toolbar_layout.setContentsMargins(10, 6, 10, 6)

        for index, color in enumerate(self._config.scene.voxel_colors):
            button = QPushButton()
            button.setObjectName("PaletteButton")
            button.setFixedSize(28, 28)
            button.setStyleSheet(f"background-color: #{color:06x};")
            button.clicked.connect(lambda _, i=index: self._select_color(i))
            toolbar_layout.addWidget(button)
            self._palette_buttons.append(button)

        toolbar_layout.addStretch()

        self.gravity_checkbox = QCheckBox("Gravity")
        self.gravity_checkbox.setChecked(self._config.gravity.enabled)
        self.gravity_checkbox.toggled.connect(self.gravity_toggled.emit)
        toolbar_layout.addWidget(self.gravity_checkbox)

        self.reset_button = QPushButton("Reset")
        self.reset_button.setObjectName("ResetButton")
        self.reset_button.clicked.connect(self._handle_reset_clicked)
        toolbar_layout.addWidget(self.reset_button)

        layout.addWidget(toolbar)

        self.viewport = VoxelViewport(self._engine, particles, self._config.scene)
        layout.addWidget(self.viewport, 1)

        # Status bar
        status = QWidget()
        status.setObjectName("StatusBar")
        status_layout = QHBoxLayout(status)
        status_layout.setContentsMargins(10, 4, 10, 4)

        self.hands_label = QLabel("Hands: 0")
        self.pinch_label = QLabel("")
        self.fps_label = QLabel("FPS: 0")
        self.count_label = QLabel("Voxels: 0")
        for label in (self.hands_label, self.pinch_label, self.fps_label, self.count_label):
            label.setObjectName("StatusLabel")
            status_layout.addWidget(label)
        status_layout.addStretch()

        # Webcam preview (landmarks on black)
        self.webcam_preview = QLabel()
        self.webcam_preview.setObjectName("WebcamPreview")
        self.webcam_preview.setAlignment(Qt.AlignCenter)
        self.webcam_preview.setFixedSize(160, 120)
        self.webcam_preview.setScaledContents(True)
        self.webcam_preview.setVisible(self._config.ui.show_preview)
        status_layout.addWidget(self.webcam_preview)

        layout.addWidget(status)

    def _apply_theme(self):
        self.setStyleSheet("""
        #CentralWidget {
            background-color: #0a0a15;
        }
        #Toolbar, #StatusBar {
            background-color: rgba(255, 255, 255, 12);
        }
        #PaletteButton {
            border: 2px solid transparent;
            border-radius: 14px;
        }
        #PaletteButton[selected="true"] {
            border: 2px solid white;
        }
        #ResetButton[armed="true"] {
            background-color: #ff6b6b;
            color: white;
        }
        #StatusLabel, QCheckBox {
            color: #ccccdd;
            font-size: 13px;
            padding-right: 12px;
        }
        #WebcamPreview {
            background-color: black;
            border: 1px solid rgba(100, 100, 120, 80);
            border-radius: 6px;
        }
        """)

    @staticmethod
    def _repolish(widget: QWidget):
        widget.style().unpolish(widget)
        widget.style().polish(widget)

    # ------------------------------------------------------------------
    # Toolbar handlers
    # ------------------------------------------------------------------

    def _select_color(self, index: int):
        for i, button in enumerate(self._palette_buttons):
            button.setProperty("selected", "true" if i == index else "false")
            self._repolish(button)
        self.color_selected.emit(self._config.scene.voxel_colors[index])

    def _handle_reset_clicked(self):
        """First click arms, second click within 3 s clears the scene."""
        if self._reset_armed:
            self._reset_timer.stop()
            self._disarm_reset()
            self.reset_requested.emit()
            return

        self._reset_armed = True
        self.reset_button.setText("Confirm?")
        self.reset_button.setProperty("armed", "true")
        self._repolish(self.reset_button)
        self._reset_timer.start(RESET_CONFIRM_MS)

    def _disarm_reset(self):
        self._reset_armed = False
        self.reset_button.setText("Reset")
        self.reset_button.setProperty("armed", "false")
        self._repolish(self.reset_button)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def update_status(self, result: Optional[FrameResult], fps: float):
        """Refresh HUD labels. A skipped frame keeps the previous hand status."""
        self.fps_label.setText(f"FPS: {fps:.0f}")
        self.count_label.setText(f"Voxels: {len(self._engine.store)}")

        if result is None or result.skipped:
            return

        self.hands_label.setText(f"Hands: {result.hand_count}")
        decision = result.decision
        if decision.mode == Mode.TWO_HAND:
            left = "●" if decision.pinching.get(Handedness.LEFT) else "○"
            right = "●" if decision.pinching.get(Handedness.RIGHT) else "○"
            self.pinch_label.setText(f"Pinch L {left}  R {right}")
        elif decision.mode == Mode.ONE_HAND:
            if decision.dwell_progress > 0:
                self.pinch_label.setText(f"Dwell {decision.dwell_progress * 100:.0f}%")
            else:
                self.pinch_label.setText("Pinch to remove" if result.over_voxel else "Hold to place")
        else:
            self.pinch_label.setText("")

    def set_webcam_frame(self, frame: np.ndarray):
        """
        Update the webcam preview - shows only hand landmarks on black.

        Args:
            frame: BGR numpy array with landmarks from HandTracker
        """
        if frame is None:
            self.webcam_preview.clear()
            return

        rgb = frame[:, :, ::-1].copy()
        h, w, ch = rgb.shape
        qimg = QImage(rgb.data, w, h, ch * w, QImage.Format_RGB888)
        self.webcam_preview.setPixmap(QPixmap.fromImage(qimg))

    def show_error(self, message: str):
        QMessageBox.critical(self, "AirBlocks", message)
