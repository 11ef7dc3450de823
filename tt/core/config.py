import json
from tt.common.logger import log
from tt.util import now_iso
from tt.common.setup import PATHS


_SCHEMA_VERSION = 1

#region === Helpers and Paths ===

STATE_PATH = PATHS.current / "state.json"

# Default values just for the settings section of the state dict.
_SETTINGS_DEFAULTS = {
    "show_hours": True,
    "always_on_top": False,
    "min_session_seconds": 60,
    "autosave_ticks": 20,
}
# Helper to return a truly fresh, default state.
def build_default_state():
    return {
        "meta": {
            "schema_version": _SCHEMA_VERSION,
            "saved_at": now_iso(),
        },
        "settings": dict(_SETTINGS_DEFAULTS),
        "tasks": [],
        "entries": [],
    }

#endregion === Helpers and Paths ===

#region === Saving and Loading State ===

# Loads the state from PATHS.current / state.json, validating each section and defaulting anything missing or of
# the wrong shape. A missing file means a fresh default state.
def load_state():
    try:
        if not STATE_PATH.exists():
            log.info("No existing state.json found in `current`, loading fresh state dict.")
            return build_default_state()

        with open(STATE_PATH, "r", encoding="utf-8") as f:
            state = json.load(f)
        if not isinstance(state, dict):
            raise TypeError(f"state.json holds a {type(state).__name__}, expected an object")
        defaulted_values = set()

        # Validate the meta dict
        if "meta" not in state or not isinstance(state["meta"], dict):
            defaulted_values.add("meta")
            state["meta"] = {}
        if "schema_version" not in state["meta"] or not isinstance(state["meta"]["schema_version"], int):
            defaulted_values.add("meta.schema_version")
            state["meta"]["schema_version"] = _SCHEMA_VERSION

        # Validate the settings dict, fill in any necessary defaults. Wrongly typed values are replaced too.
        if "settings" not in state or not isinstance(state["settings"], dict):
            defaulted_values.add("settings")
            state["settings"] = dict(_SETTINGS_DEFAULTS)
        else:
            for key, default in _SETTINGS_DEFAULTS.items():
                if key not in state["settings"] or type(state["settings"][key]) is not type(default):
                    defaulted_values.add(f"settings.{key}")
                    state["settings"][key] = default

        # Only the list shape is checked here. Tracker.from_state skips malformed records one by one
        for key in ("tasks", "entries"):
            if key not in state or not isinstance(state[key], list):
                defaulted_values.add(key)
                state[key] = []

        if defaulted_values:
            log.warning(f"Successfully loaded current state dict from '{STATE_PATH}', but with missing values that were defaulted: {', '.join(sorted(defaulted_values))}")
        else:
            log.info(f"Successfully loaded current state dict from '{STATE_PATH}'.")
        return state
    # Fall back to a fresh state dict in case of error, but warn in log
    except (json.JSONDecodeError, OSError, TypeError):
        log.warning("Ran into an error while trying to load state.json, falling back to loading a fresh state dict.",exc_info=True)
        return build_default_state()
# Write the given state to disk under PATHS.current / state.json
def save_state(state):
    state["meta"]["saved_at"] = now_iso()
    STATE_PATH.parent.mkdir(parents=True, exist_ok=True)
    with open(STATE_PATH, "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2)
    log.info(f"Successfully saved state to '{STATE_PATH}'")

#endregion === Saving and Loading State ===
