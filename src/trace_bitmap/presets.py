from __future__ import annotations

from dataclasses import dataclass

from .contracts import TraceParameters


@dataclass(frozen=True, slots=True)
class TracePreset:
    preset_id: str
    label: str
    description: str
    params: TraceParameters


PRESETS: dict[str, TracePreset] = {
    "logo": TracePreset(
        preset_id="logo",
        label="Logo / icon",
        description="Flat shapes with clean edges; strong speckle suppression.",
        params=TraceParameters(blacklevel=0.3, turdsize=10, alphamax=0.5, optcurve=True, opttolerance=0.2),
    ),
    "sketch": TracePreset(
        preset_id="sketch",
        label="Sketch / scan",
        description="Keeps fine detail and line texture.",
        # Higher black level catches faint strokes; no curve optimization keeps the stroke shape.
        params=TraceParameters(blacklevel=0.45, turdsize=2, alphamax=1.0, optcurve=False, opttolerance=None),
    ),
}

DEFAULT_PRESET_ID = "logo"


def get_preset(preset_id: str | None) -> TracePreset:
    """
    Return the preset for `preset_id`, falling back to the default preset.
    """

    return PRESETS.get(preset_id or DEFAULT_PRESET_ID, PRESETS[DEFAULT_PRESET_ID])
