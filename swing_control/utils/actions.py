import sys

try:
    import pyautogui
    pyautogui.FAILSAFE = False
except Exception:
    pyautogui = None

def _is_macos():
    return sys.platform == "darwin"

def do_action(action: str):
    """
    Map detector actions -> slideshow/presentation controls.
    The slideshow (browser, Keynote, PowerPoint, image viewer) must have focus.
    """
    if pyautogui is None:
        print("pyautogui not available. Install it or run without actions.")
        return

    if action == "next_slide":
        pyautogui.press("right")
        return

    if action == "previous_slide":
        pyautogui.press("left")
        return

    # Fullscreen toggle differs:
    # Windows/Linux browsers: F11
    # macOS browsers: Ctrl+Command+F
    if action == "fullscreen":
        if _is_macos():
            pyautogui.hotkey("ctrl", "command", "f")
        else:
            pyautogui.press("f11")
        return

def apogee_to_action(apogee, advance_on="back", rewind_on=None):
    if apogee is None:
        return None
    if apogee == advance_on:
        return "next_slide"
    if rewind_on is not None and apogee == rewind_on:
        return "previous_slide"
    return None
