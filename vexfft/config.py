"""
Configuration system for vexfft.

Loads YAML configs that select the FFT engine backend and its device.

Example config.yaml:
```
backend: opencl
preferred_vendor: nvidia
device_index: 0
dispatch_log: /tmp/vexfft_dispatch.log
console_log: false
dispatch_log_entries: 10000
```
"""

import yaml
import os
from typing import Dict, Optional, Any
from dataclasses import dataclass, fields

from vexfft.debug import verbose_print


BACKENDS = ('numpy', 'pytorch', 'opencl')


@dataclass
class EngineConfig:
    """Which engine to create and where it runs."""
    backend: str = 'numpy'  # numpy | pytorch | opencl
    device_index: int = 0  # OpenCL fallback device index
    preferred_vendor: str = 'nvidia'  # OpenCL device name substring
    torch_device: str = 'cpu'  # torch device string, e.g. 'cuda:0'
    dispatch_log: Optional[str] = None  # Dispatch log file (None = no file)
    console_log: bool = False  # Echo dispatch log entries to stdout
    dispatch_log_entries: Optional[int] = 10000  # In-memory log entries kept (None = unbounded)


class Config:
    """
    Global configuration manager for vexfft.

    Holds a single EngineConfig. Values come from a YAML file, and the
    VEXFFT_BACKEND environment variable overrides the backend.
    """

    def __init__(self):
        self.engine = EngineConfig()
        self._config_file: Optional[str] = None

    def load(self, config_file: str):
        """Load configuration from YAML file."""
        from vexfft.errors import ConfigurationError

        self._config_file = config_file

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Config file not found: {config_file}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            return

        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"Config file {config_file} must contain a mapping")

        self.engine = self._parse_engine_config(raw_config)

    def _parse_engine_config(self, raw: Dict[str, Any]) -> EngineConfig:
        """Parse an engine configuration from dict."""
        from vexfft.errors import ConfigurationError

        known = {f.name for f in fields(EngineConfig)}
        unknown = set(raw) - known
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {sorted(unknown)}")

        config = EngineConfig(**raw)
        if config.backend not in BACKENDS:
            raise ConfigurationError(
                f"Unknown backend '{config.backend}' (expected one of {', '.join(BACKENDS)})")
        return config

    def load_from_env(self, env_var: str = 'VEXFFT_CONFIG'):
        """
        Load configuration from environment variable.

        Args:
            env_var: Environment variable name (default: VEXFFT_CONFIG)
        """
        config_path = os.environ.get(env_var, None)
        if config_path:
            verbose_print(f"vexfft: Loading config from {config_path}")
            self.load(config_path)

        backend = os.environ.get('VEXFFT_BACKEND', None)
        if backend:
            verbose_print(f"vexfft: Backend overridden by VEXFFT_BACKEND={backend}")
            self.engine = self._parse_engine_config({**vars(self.engine), 'backend': backend})

    def clear(self):
        """Reset to defaults."""
        self.engine = EngineConfig()
        self._config_file = None


# Global config instance
_config = Config()
_env_loaded = False


def load_config(config_file: str):
    """Load configuration from YAML file."""
    _config.load(config_file)


def get_config() -> Config:
    """Get the global config instance (reads VEXFFT_CONFIG on first use)."""
    global _env_loaded
    if not _env_loaded:
        _env_loaded = True
        _config.load_from_env()
    return _config
