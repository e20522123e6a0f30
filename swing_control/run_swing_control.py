import argparse
import asyncio

import cv2
from pydantic import ValidationError

from utils.actions import apogee_to_action, do_action
from utils.config import DetectorConfig
from utils.detector import SwingDetector
from utils.preview import blank_frame, decode_frame, draw_reading, list_cameras
from utils.transport import DEFAULT_URL, DetectorClient, HostSettings

WINDOW = "Swing Control - q quit | space active | s swap"

def build_parser():
    p = argparse.ArgumentParser(description="Advance a slideshow on swing apogees.")
    p.add_argument("--url", default=DEFAULT_URL, help="detector server websocket url")
    p.add_argument("--camera", type=int, default=0, help="camera index used by the detector server")
    p.add_argument("--list-cameras", action="store_true", help="print camera indices OpenCV can open and exit")
    p.add_argument("--display", action="store_true", help="ask the server for live preview frames")
    p.add_argument("--no-swap", action="store_true", help="do not invert the raw signal")
    p.add_argument("--offset", type=float, default=0.0)
    p.add_argument("--threshold", type=float, default=0.1, help="apogee speed threshold")
    p.add_argument("--inert-range", type=float, default=0.15)
    p.add_argument("--reset-range", type=float, default=0.1)
    p.add_argument("--speed-window", type=int, default=10)
    p.add_argument("--advance-on", choices=["front", "back"], default="back")
    p.add_argument("--rewind-on", choices=["front", "back"], default=None)
    p.add_argument("--fullscreen", action="store_true", help="send the fullscreen hotkey on start")
    p.add_argument("--no-actions", action="store_true", help="only print apogees")
    return p

class SwingApp:
    def __init__(self, args):
        self.args = args
        cfg = DetectorConfig(
            swap=not args.no_swap,
            offset=args.offset,
            apogee_speed_threshold=args.threshold,
            inert_range=args.inert_range,
            reset_range=args.reset_range,
            speed_window=args.speed_window,
        )
        self.detector = SwingDetector(cfg, on_value=self.on_value)
        self.client = DetectorClient(
            self.detector,
            url=args.url,
            on_frame=self.on_frame,
            settings=HostSettings(camera=args.camera, display=args.display),
        )
        self.last_reading = None
        self.frame = None
        self.pending = set()
        self.stop = asyncio.Event()

    def on_value(self, reading):
        self.last_reading = reading
        if not reading.apogee:
            return
        print("apogee:", reading.apogee, f"{reading.value:+.3f}")
        if self.args.no_actions:
            return
        action = apogee_to_action(reading.apogee, self.args.advance_on, self.args.rewind_on)
        if action:
            do_action(action)

    def on_frame(self, payload):
        frame = decode_frame(payload)
        if frame is not None:
            self.frame = frame

    def render(self):
        frame = blank_frame() if self.frame is None else self.frame.copy()
        if self.last_reading is not None:
            draw_reading(frame, self.last_reading, self.detector.config)
        return frame

    async def poll_keys(self, interval=0.03):
        # The status window is always open, so hotkeys work with or without --display.
        while not self.stop.is_set():
            cv2.imshow(WINDOW, self.render())
            self.handle_key(cv2.waitKey(1) & 0xFF)
            await asyncio.sleep(interval)

    def handle_key(self, key):
        if key == ord("q"):
            self.stop.set()
        elif key == ord(" "):
            self.push_config(active=not self.detector.active)
        elif key == ord("s"):
            self.push_config(swap=not self.detector.swap)

    def push_config(self, **fields):
        print("config:", fields)
        task = asyncio.ensure_future(self.client.update_config(**fields))
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)

    async def run(self):
        await self.client.connect()
        await self.client.wait_connection()
        await self.client.update_config(
            camera=self.client.camera,
            display=self.client.display,
            **self.detector.config.tunables(),
        )
        if self.args.fullscreen and not self.args.no_actions:
            do_action("fullscreen")

        receiver = asyncio.ensure_future(self.client.run())
        keys = asyncio.ensure_future(self.poll_keys())
        try:
            await asyncio.wait({receiver, keys}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            receiver.cancel()
            keys.cancel()
            await self.client.close()
            cv2.destroyAllWindows()

def main():
    args = build_parser().parse_args()
    if args.list_cameras:
        cams = list_cameras()
        print("Cameras:", cams if cams else "none found")
        return
    try:
        app = SwingApp(args)
    except ValidationError as e:
        raise SystemExit(f"Invalid detector settings:\n{e}")
    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        pass
    except OSError as e:
        raise SystemExit(f"Could not reach detector server at {args.url}: {e}")

if __name__ == "__main__":
    main()
