"""core.config
Configuration core: load/save helpers for config.ini.

This module provides a tiny ConfigManager used by the application to read
and persist simple key/value settings. It purposely keeps a small API:
ConfigManager.load(), get(key, fallback), get_bool(key, fallback) and save().
"""

import os
from configparser import ConfigParser
from pathlib import Path
from typing import Optional


DEFAULTS = {
    "log_level": "INFO",
    # Detection profile: high_recall or low_latency
    "profile": "low_latency",
    # Directory holding matching.png and accept_button.png (empty = bundled resources/)
    "templates_dir": "",
    "auto_watch": "True",
    "save_artifacts": "False",
    "click_move_duration": "0.05",
    "slow_tick_threshold_ms": "1500",
}


class ConfigManager:
    """Simple configuration manager backed by an INI file.

    Behaviour:
    - Uses a single DEFAULT section for lookups.
    - Creates the file with sensible defaults if it does not exist.
    - Defaults to a per-user config path (%APPDATA% on Windows,
      XDG_CONFIG_HOME or ~/.config on other systems) unless an explicit
      path is provided.
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        if config_path:
            self.config_path = Path(config_path)
        else:
            if os.name == "nt":
                base = Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming"))
                self.config_path = base.joinpath("AutoAccept", "config.ini")
            else:
                base = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
                self.config_path = base.joinpath("autoaccept", "config.ini")

        self.config = ConfigParser()
        self.load()

    def load(self) -> None:
        """Load configuration from disk, creating defaults when needed."""
        existed = self.config_path.exists()
        if existed:
            self.config.read(self.config_path, encoding="utf-8")

        missing = [key for key in DEFAULTS if key not in self.config["DEFAULT"]]
        for key in missing:
            self.config["DEFAULT"][key] = DEFAULTS[key]

        # Persist on first run, or when an older file lacks newer keys
        if not existed or missing:
            try:
                self.save()
            except OSError:
                pass

    def get(self, key: str, fallback=None):
        """Get a configuration value.

        Precedence is env > config.ini > fallback. Environment candidates are
        AA_<KEY>, <KEY> and the raw key name.
        """
        for ek in (f"AA_{str(key).upper()}", str(key).upper(), str(key)):
            val = os.environ.get(ek)
            if val is not None and str(val) != "":
                return val
        return self.config["DEFAULT"].get(key, fallback)

    def get_bool(self, key: str, fallback: bool = False) -> bool:
        val = self.get(key, None)
        if val is None:
            return fallback
        return str(val).strip().lower() in ("true", "1", "yes", "on")

    def get_float(self, key: str, fallback: float) -> float:
        try:
            return float(str(self.get(key, fallback)).strip())
        except ValueError:
            return fallback

    def save(self) -> None:
        """Persist current configuration to disk (creates parent directories)."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with self.config_path.open("w", encoding="utf-8") as fh:
            self.config.write(fh)
