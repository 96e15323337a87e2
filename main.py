"""
AirBlocks - Build voxel structures with webcam hand gestures

Entry point for the application.
"""
import argparse
import logging
import sys
import time
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="AirBlocks - Gesture-controlled voxel builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: config.yaml)",
    )

    parser.add_argument(
        "--map",
        type=Path,
        default=None,
        help="Path to the saved voxel map (overrides config)",
    )

    parser.add_argument(
        "--gravity",
        action="store_true",
        help="Start with gravity enabled",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Run the OpenCV debug view instead of the 3D window",
    )

    return parser.parse_args()


def run_debug(config):
    """
    Run webcam in debug mode - shows camera feed with landmarks and the
    cell each frame resolves to. Nothing is saved.
    """
    import cv2
    from webcam.hand_tracker import HandTracker
    from webcam import Action, Handedness
    from voxel import InteractionEngine

    tracker = HandTracker(config)
    engine = InteractionEngine(config)

    print("Starting webcam debug mode...")
    print("Press 'q' to quit")
    print("-" * 40)

    if not tracker.start():
        print("ERROR: Could not start hand tracking")
        return 1

    try:
        while True:
            hand_frame = tracker.get_hands()
            if hand_frame is None:
                if cv2.waitKey(5) & 0xFF == ord('q'):
                    break
                continue

            result = engine.process(hand_frame)
            frame = tracker.get_frame_with_landmarks(hand_frame)

            if frame is not None and not result.skipped:
                decision = result.decision
                cv2.putText(
                    frame, f"Hands: {result.hand_count}  {decision.phase.name}", (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 1, (0, 255, 0), 2
                )

                info_lines = [
                    f"Mode: {decision.mode.name}",
                    f"Pinch L: {decision.pinching.get(Handedness.LEFT, False)}  "
                    f"R: {decision.pinching.get(Handedness.RIGHT, False)}",
                    f"Dwell: {decision.dwell_progress * 100:.0f}%",
                ]
                if result.cursor is not None:
                    x, y, z = result.cursor
                    occupied = "occupied" if result.over_voxel else "empty"
                    info_lines.append(f"Cell: ({x:.1f}, {y:.1f}, {z:.1f}) {occupied}")
                info_lines.append(f"Voxels: {len(engine.store)}")

                for i, line in enumerate(info_lines):
                    cv2.putText(
                        frame, line, (10, 60 + i * 25),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1
                    )

                if decision.action != Action.NONE:
                    print(f"[{tracker.frame_count:5d}] {decision.action.name}")

            if frame is not None:
                cv2.imshow("AirBlocks Debug", frame)

            if cv2.waitKey(1) & 0xFF == ord('q'):
                break

    finally:
        tracker.stop()
        cv2.destroyAllWindows()

    return 0


def run_app(config):
    """Run AirBlocks with the 3D window (multithreaded capture)."""
    import signal
    import atexit
    from PyQt5.QtWidgets import QApplication
    from PyQt5.QtCore import QThread, QTimer, Qt
    from webcam.worker import WebcamWorker
    from voxel import InteractionEngine, MapStorage, EffectDispatcher, ParticleSystem
    from ui import MainWindow, SoundSink

    app = QApplication(sys.argv)

    storage = MapStorage(Path(config.storage.map_path).expanduser())
    engine = InteractionEngine(config, storage=storage)
    count = engine.load()
    print(f"Loaded {count} voxels from {storage.path}")

    particles = ParticleSystem()
    window = MainWindow(config, engine, particles)
    sound = SoundSink()
    dispatcher = EffectDispatcher([particles, window.viewport, sound])

    window.color_selected.connect(engine.set_color)
    window.gravity_toggled.connect(engine.set_gravity)
    window.reset_requested.connect(lambda: dispatcher.dispatch([engine.reset()]))
    window.resize(1280, 800)
    window.show()

    # Latest frame from the worker; older undelivered frames are dropped
    latest = [None]
    fps_state = {'frames': 0, 'since': time.perf_counter(), 'fps': 0.0}

    # Setup background worker and thread
    thread = QThread()
    worker = WebcamWorker(config)
    worker.moveToThread(thread)

    def cleanup():
        """Ensure camera is released on exit."""
        print("\nCleaning up camera resources...")
        worker.stop_process()
        thread.quit()
        thread.wait(2000)
        sound.close()
        print("Cleanup complete.")

    atexit.register(cleanup)

    def signal_handler(signum, frame):
        """Handle Ctrl+C and kill signals gracefully."""
        print(f"\nReceived signal {signum}, shutting down...")
        app.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    def handle_hands(hand_frame):
        latest[0] = hand_frame

    def handle_error(message):
        logging.getLogger("airblocks").error("Worker error: %s", message)
        window.show_error(message)

    def frame_tick():
        """One rendered frame: interaction, gravity, effects, repaint."""
        result = None
        events = []
        if latest[0] is not None:
            result = engine.process(latest[0], now_ms=time.perf_counter() * 1000)
            events.extend(result.events)
        events.extend(engine.tick())
        dispatcher.dispatch(events)
        particles.update()

        fps_state['frames'] += 1
        now = time.perf_counter()
        if now - fps_state['since'] >= 1.0:
            fps_state['fps'] = fps_state['frames'] / (now - fps_state['since'])
            fps_state['frames'] = 0
            fps_state['since'] = now

        if result is not None:
            window.viewport.set_result(result)
        else:
            window.viewport.update()
        window.update_status(result, fps_state['fps'])

    timer = QTimer()
    timer.timeout.connect(frame_tick)
    timer.start(16)

    # Connect signals (Use QueuedConnection to ensure UI updates happen in main thread)
    thread.started.connect(worker.start_process)
    worker.hands_detected.connect(handle_hands, Qt.QueuedConnection)
    worker.frame_ready.connect(window.set_webcam_frame, Qt.QueuedConnection)
    worker.error.connect(handle_error, Qt.QueuedConnection)

    # Start thread
    thread.start()

    try:
        result = app.exec_()
    finally:
        timer.stop()
        cleanup()
        atexit.unregister(cleanup)  # Avoid double cleanup

    return result


def main():
    """Main entry point."""
    args = parse_args()

    # Load config
    from webcam import load_config
    config = load_config(args.config)

    # Apply CLI overrides
    if args.map:
        config.storage.map_path = str(args.map)
    if args.gravity:
        config.gravity.enabled = True
    if args.debug:
        config.ui.debug_overlay = True

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"AirBlocks starting...")
    print(f"  Grid: {config.grid.grid_size}x{config.grid.grid_size}, max height {config.grid.max_height}")
    print(f"  Map: {config.storage.map_path}")
    print(f"  Gravity: {'on' if config.gravity.enabled else 'off'}")
    print(f"  Debug: {config.ui.debug_overlay}")
    print()

    if config.ui.debug_overlay:
        return run_debug(config)
    return run_app(config)


if __name__ == "__main__":
    sys.exit(main())
