"""
Configuration management for picam.
"""

import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/etc/picam/config.yaml"
USER_CONFIG_PATH = Path.home() / ".config" / "picam" / "config.yaml"


@dataclass
class CameraConfig:
    """Camera and executable settings."""
    runner: str = "raspicam"  # raspicam or simulation
    capture_command: str = "raspistill"
    record_command: str = "raspivid"
    transcode_command: str = "MP4Box"
    max_duration_sec: float = 10
    start_settle_ms: int = 20
    stop_settle_ms: int = 20
    capture_timeout_sec: float = 30
    transcode_timeout_sec: float = 120


@dataclass
class StorageConfig:
    """Where recordings are written."""
    video_dir: str = "."
    raw_video_name: str = "vid.h264"
    output_video_name: str = "vid.mp4"


@dataclass
class ServerConfig:
    """HTTP server settings."""
    host: str = "0.0.0.0"
    port: int = 8000
    cors_enabled: bool = True


@dataclass
class Config:
    """Main configuration class."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    production_mode: bool = True

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load configuration from file."""
        paths_to_try = []

        if config_path:
            paths_to_try.append(Path(config_path))

        paths_to_try.extend([
            Path(DEFAULT_CONFIG_PATH),
            USER_CONFIG_PATH,
            Path("config/config.yaml"),
        ])

        for path in paths_to_try:
            if path.exists():
                logger.info(f"Loading config from {path}")
                return cls._load_from_file(path)

        logger.warning("No config file found, using defaults")
        return cls()

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        config = cls()

        if "camera" in data:
            config.camera = cls._load_dataclass(CameraConfig, data["camera"])
        if "storage" in data:
            config.storage = cls._load_dataclass(StorageConfig, data["storage"])
        if "server" in data:
            config.server = cls._load_dataclass(ServerConfig, data["server"])
        if "production_mode" in data:
            config.production_mode = data["production_mode"]

        return config

    @staticmethod
    def _load_dataclass(cls, data: Dict[str, Any]):
        """Load a dataclass from a dictionary, ignoring unknown keys."""
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in (data or {}).items() if k in valid_fields}
        return cls(**filtered_data)

    @staticmethod
    def _dataclass_to_dict(obj) -> Dict[str, Any]:
        """Convert a dataclass to a dictionary."""
        return {k: v for k, v in obj.__dict__.items()}

    def to_dict(self) -> Dict[str, Any]:
        """Convert entire config to dictionary."""
        return {
            "camera": self._dataclass_to_dict(self.camera),
            "storage": self._dataclass_to_dict(self.storage),
            "server": self._dataclass_to_dict(self.server),
            "production_mode": self.production_mode,
        }
