"""
Global hotkey listener for VoiceClip.

Watches every keyboard for the configured combination (default Ctrl+Shift+R).
Uses python-evdev for low-level keyboard access, so it works on X11 and Wayland.
Devices are read without grabbing them: key events still reach the desktop.
"""

import logging
import select
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Set

import evdev
from evdev import ecodes, InputDevice

from voiceclip.hotkey_combo import HotkeyCombo, parse_combo


logger = logging.getLogger(__name__)


class HotkeyError(Exception):
    """Exception raised for hotkey errors."""
    pass


# Key codes that satisfy each modifier group
MODIFIER_CODES: Dict[str, FrozenSet[int]] = {
    "ctrl": frozenset({ecodes.KEY_LEFTCTRL, ecodes.KEY_RIGHTCTRL}),
    "shift": frozenset({ecodes.KEY_LEFTSHIFT, ecodes.KEY_RIGHTSHIFT}),
    "alt": frozenset({ecodes.KEY_LEFTALT, ecodes.KEY_RIGHTALT}),
    "super": frozenset({ecodes.KEY_LEFTMETA, ecodes.KEY_RIGHTMETA}),
}

KEY_UP, KEY_DOWN, KEY_HOLD = 0, 1, 2


def key_code(name: str) -> int:
    """Return the evdev key code for a combo key name."""
    evdev_name = f"KEY_{name.upper()}"
    try:
        return ecodes.ecodes[evdev_name]
    except KeyError:
        raise HotkeyError(f"Unsupported key: {name}")


def find_keyboard_devices() -> List[InputDevice]:
    """Find all keyboard input devices."""
    keyboards = []
    for path in evdev.list_devices():
        try:
            device = InputDevice(path)
            caps = device.capabilities()
        except OSError as e:
            logger.debug("Skipping %s: %s", path, e)
            continue

        # Letter keys identify a keyboard
        keys = caps.get(ecodes.EV_KEY, [])
        if ecodes.KEY_A in keys and ecodes.KEY_Z in keys:
            keyboards.append(device)
        else:
            device.close()
    return keyboards


@dataclass
class ComboMatcher:
    """
    Tracks held keys and reports when the combination fires.

    Fires once on the key-down of the trigger key while every modifier group
    has at least one key held. Auto-repeat events are ignored.
    """

    combo: HotkeyCombo
    _trigger: int = field(init=False)
    _held: Set[int] = field(default_factory=set, init=False)

    def __post_init__(self):
        self._trigger = key_code(self.combo.key)

    def feed(self, code: int, value: int) -> bool:
        """Process one EV_KEY event. Returns True when the hotkey fires."""
        if value == KEY_HOLD:
            return False

        if value == KEY_UP:
            self._held.discard(code)
            return False

        self._held.add(code)
        if code != self._trigger:
            return False

        return all(self._held & MODIFIER_CODES[m] for m in self.combo.modifiers)

    def reset(self) -> None:
        self._held.clear()


@dataclass
class HotkeyListener:
    """
    Keyboard-wide hotkey listener using evdev.

    Usage:
        listener = HotkeyListener(combo="ctrl+shift+r", on_trigger=controller.toggle)
        listener.start()  # Runs in background threads
        # ... app runs ...
        listener.stop()
    """

    combo: str = "ctrl+shift+r"
    on_trigger: Optional[Callable[[], None]] = None

    # Internal state
    _devices: List[InputDevice] = field(default_factory=list, init=False)
    _threads: List[threading.Thread] = field(default_factory=list, init=False)
    _running: bool = field(default=False, init=False)
    _matcher: Optional[ComboMatcher] = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def _fire(self) -> None:
        if self.on_trigger:
            # Callbacks may block (transcription), keep reading keys meanwhile
            threading.Thread(target=self.on_trigger, daemon=True).start()

    def _handle_device(self, device: InputDevice) -> None:
        """Handle events from a single keyboard device."""
        try:
            while self._running:
                # Use select with timeout to allow clean shutdown
                r, _, _ = select.select([device.fd], [], [], 0.1)
                if not r:
                    continue  # Timeout, check _running flag

                for event in device.read():
                    if not self._running:
                        break
                    if event.type != ecodes.EV_KEY:
                        continue

                    with self._lock:
                        fired = self._matcher.feed(event.code, event.value)
                    if fired:
                        logger.debug("Hotkey %s pressed", self.combo)
                        self._fire()

        except OSError as e:
            if self._running:
                logger.error("Keyboard handler error on %s: %s", device.name, e)

    def start(self) -> None:
        """
        Start listening for the hotkey.

        Raises:
            HotkeyError: If the combo is invalid, no keyboard is found or
                permission is denied
        """
        if self._running:
            return

        try:
            self._matcher = ComboMatcher(parse_combo(self.combo))
        except ValueError as e:
            raise HotkeyError(str(e)) from e

        self._devices = find_keyboard_devices()
        if not self._devices:
            raise HotkeyError(
                "No keyboard device found. Make sure you have permission to access "
                "/dev/input/event*. Add your user to the 'input' group:\n"
                "  sudo usermod -aG input $USER\n"
                "Then log out and back in."
            )

        self._running = True

        for device in self._devices:
            thread = threading.Thread(
                target=self._handle_device,
                args=(device,),
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

        logger.info("Listening for %s on %d keyboard(s)", self.combo, len(self._devices))

    def stop(self) -> None:
        """Stop listening and release all devices."""
        if not self._running:
            return

        self._running = False

        # Wait for threads
        for thread in self._threads:
            thread.join(timeout=1)

        for device in self._devices:
            try:
                device.close()
            except OSError as e:
                logger.debug("Error closing %s: %s", device.path, e)

        self._devices = []
        self._threads = []
        if self._matcher:
            self._matcher.reset()

    @property
    def is_running(self) -> bool:
        """Check if listener is running."""
        return self._running
