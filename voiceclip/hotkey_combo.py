"""
Hotkey combination parsing for VoiceClip.

Turns strings like "ctrl+shift+r" into a HotkeyCombo. Kept free of evdev
so configuration can be validated on any machine.
"""

import re
from dataclasses import dataclass
from typing import FrozenSet


class HotkeyComboError(ValueError):
    """Exception raised for malformed hotkey combinations."""
    pass


# Aliases accepted for each modifier group
MODIFIER_ALIASES = {
    "ctrl": "ctrl",
    "control": "ctrl",
    "cmdorctrl": "ctrl",
    "commandorcontrol": "ctrl",
    "shift": "shift",
    "alt": "alt",
    "option": "alt",
    "super": "super",
    "meta": "super",
    "win": "super",
    "cmd": "super",
}

_KEY_PATTERN = re.compile(r"^([a-z0-9]|f([1-9]|1[0-9]|2[0-4])|space|enter|tab|esc|pause|insert|home|end)$")


@dataclass(frozen=True)
class HotkeyCombo:
    """A set of modifier groups plus one trigger key."""
    modifiers: FrozenSet[str]
    key: str

    def __str__(self) -> str:
        order = ["ctrl", "alt", "shift", "super"]
        parts = [m for m in order if m in self.modifiers]
        return "+".join(parts + [self.key])


def parse_combo(combo: str) -> HotkeyCombo:
    """
    Parse a hotkey string.

    Args:
        combo: Keys joined with "+", e.g. "ctrl+shift+r" or "super+F9"

    Returns:
        HotkeyCombo with normalised modifier names

    Raises:
        HotkeyComboError: If the string has no trigger key, more than one
            trigger key, or an unknown key name
    """
    parts = [p.strip().lower() for p in (combo or "").split("+") if p.strip()]
    if not parts:
        raise HotkeyComboError("Hotkey is empty")

    modifiers = set()
    keys = []
    for part in parts:
        if part in MODIFIER_ALIASES:
            modifiers.add(MODIFIER_ALIASES[part])
        elif _KEY_PATTERN.match(part):
            keys.append(part)
        else:
            raise HotkeyComboError(f"Unknown key in hotkey '{combo}': {part}")

    if len(keys) != 1:
        raise HotkeyComboError(f"Hotkey '{combo}' must contain exactly one non-modifier key")

    return HotkeyCombo(modifiers=frozenset(modifiers), key=keys[0])
