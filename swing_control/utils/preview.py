import base64
import binascii

import cv2
import numpy as np

def decode_frame(payload):
    """
    Preview frame from the detector server: base64 encoded JPEG
    (optionally as a data URL). Returns a BGR image or None.
    """
    if not isinstance(payload, str) or not payload:
        return None
    if payload.startswith("data:"):
        payload = payload.split(",", 1)[-1]
    try:
        buf = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
    arr = np.frombuffer(buf, dtype=np.uint8)
    if arr.size == 0:
        return None
    return cv2.imdecode(arr, cv2.IMREAD_COLOR)

def _to_x(value, width, span=1.0):
    # map [-span, span] onto [0, width)
    x = (value + span) / (2 * span) * (width - 1)
    return int(np.clip(x, 0, width - 1))

def draw_reading(frame, reading, config, span=1.0):
    """
    Instrument overlay: value marker on a horizontal gauge with the
    inert and reset bands, plus a text line for value/speed/apogee.
    Draws in place and returns the frame.
    """
    h, w = frame.shape[:2]
    y0 = h - 40
    y1 = h - 10

    # inert band (no apogee inside), reset band (rearm inside)
    cv2.rectangle(frame, (_to_x(-config.inert_range, w, span), y0),
                  (_to_x(config.inert_range, w, span), y1), (0, 165, 255), 1)
    cv2.rectangle(frame, (_to_x(-config.reset_range, w, span), y0),
                  (_to_x(config.reset_range, w, span), y1), (0, 255, 255), 1)

    cv2.line(frame, (_to_x(reading.value, w, span), y0 - 6),
             (_to_x(reading.value, w, span), y1 + 6), (255, 255, 255), 1)
    cv2.line(frame, (_to_x(reading.smoothed_value, w, span), y0 - 6),
             (_to_x(reading.smoothed_value, w, span), y1 + 6), (0, 255, 0), 2)

    if reading.locked_apogee_value is not None:
        lx = _to_x(reading.locked_apogee_value, w, span)
        cv2.circle(frame, (lx, (y0 + y1) // 2), 5, (0, 0, 255), -1)

    status = f"{reading.side} v={reading.smoothed_value:+.3f} s={reading.smoothed_speed:+.4f}"
    if reading.apogee:
        status += f" APOGEE {reading.apogee}"
    cv2.putText(frame, status, (20, 40), cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0,255,0), 2)
    return frame

def blank_frame(width=640, height=360):
    return np.zeros((height, width, 3), dtype=np.uint8)

def list_cameras(max_index=5):
    """Indices of cameras OpenCV can open. Sent to the detector server as `camera`."""
    found = []
    for idx in range(max_index + 1):
        cap = cv2.VideoCapture(idx)
        try:
            if cap.isOpened():
                found.append(idx)
        finally:
            cap.release()
    return found
