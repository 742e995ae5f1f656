"""
Presets component - one-click site presets with snapshot rollback.
"""

from .component import (
    PRESET_FIELDS,
    get_preset,
    history,
    list_presets,
    run,
    run_activate_preset,
    run_preview_preset,
    run_rollback_preset,
)
from .models import (
    ActivateOutput,
    ActivatePresetInput,
    HomePageSeedMode,
    PresetDiff,
    PresetSnapshot,
    PreviewOutput,
    PreviewPresetInput,
    RollbackOutput,
    RollbackPresetInput,
    SitePreset,
    ValidationError,
)
from .ports import SnapshotRepoPort, TimePort
from .seeds import BUILT_IN_PRESETS, HOME_TEMPLATES

__all__ = [
    "run",
    "run_preview_preset",
    "run_activate_preset",
    "run_rollback_preset",
    "history",
    "get_preset",
    "list_presets",
    "PRESET_FIELDS",
    "BUILT_IN_PRESETS",
    "HOME_TEMPLATES",
    "ActivateOutput",
    "ActivatePresetInput",
    "HomePageSeedMode",
    "PresetDiff",
    "PresetSnapshot",
    "PreviewOutput",
    "PreviewPresetInput",
    "RollbackOutput",
    "RollbackPresetInput",
    "SitePreset",
    "ValidationError",
    "SnapshotRepoPort",
    "TimePort",
]
