import json
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field, fields, asdict

logger = logging.getLogger(__name__)

class ConfigError(ValueError):
    """Raised when a configuration file cannot be turned into a ReloadConfig"""

@dataclass
class ReloadConfig:
    root: str = "."
    resource_paths: List[str] = field(default_factory=lambda: ["resources"])
    http_server_root: str = "public"
    output_dir: str = "resources/public/js/compiled/out"
    output_to: str = "resources/public/js/compiled/main.js"
    css_dirs: List[str] = field(default_factory=list)
    host: str = "localhost"
    server_port: int = 3449
    compile_wait_time: int = 10  # ms
    log_level: str = "INFO"

class ConfigManager:
    def __init__(self, config_path: str = "reload.json"):
        self.config_path = Path(config_path)
        self.config = self._load_config()

    def _load_config(self) -> ReloadConfig:
        """Load configuration from file or create default"""
        if not self.config_path.exists():
            return ReloadConfig()
        try:
            with open(self.config_path) as f:
                config_dict = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {self.config_path}: {e}") from e
        return self.from_dict(config_dict)

    @staticmethod
    def from_dict(config_dict: Dict[str, Any]) -> ReloadConfig:
        """Build a config from a plain dict, rejecting unknown keys"""
        if not isinstance(config_dict, dict):
            raise ConfigError("Configuration must be a JSON object")
        known = {f.name for f in fields(ReloadConfig)}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return ReloadConfig(**config_dict)

    def save_config(self):
        """Save current configuration to file"""
        with open(self.config_path, 'w') as f:
            json.dump(asdict(self.config), f, indent=2)

    def get(self, key: str) -> Any:
        """Get configuration value"""
        return getattr(self.config, key)

    def update(self, key: str, value: Any):
        """Update configuration value"""
        if hasattr(self.config, key):
            setattr(self.config, key, value)
            self.save_config()
        else:
            raise KeyError(f"Unknown configuration key: {key}")

    def apply_overrides(self, overrides: Dict[str, Optional[Any]]) -> ReloadConfig:
        """Apply non-None overrides (e.g. from the command line) without saving"""
        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(self.config, key):
                raise KeyError(f"Unknown configuration key: {key}")
            setattr(self.config, key, value)
            logger.debug(f"Config override {key}={value!r}")
        return self.config
