"""Configuration helpers for the outfit engine."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_DATABASE_PATH = "data/outfit_engine.db"
DEFAULT_DONATION_URL = "https://donateclothes.uk/"


@dataclass
class EngineConfig:
    """Configuration values for the outfit engine.

    Thresholds and tunables live here so that the scorers, the rejection
    tracker and the wardrobe gate share one source of truth.
    """

    database_path: str = DEFAULT_DATABASE_PATH
    rejection_threshold: int = 3
    minimum_items_per_category: int = 3
    donation_url: str = DEFAULT_DONATION_URL
    random_seed: Optional[int] = None
    streetwear_dark_boost: float = 1.5
    log_level: str = "INFO"
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables, which win.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("ENGINE_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        def get_int(key: str, default: Optional[int]) -> Optional[int]:
            raw = get_value(key)
            if raw in (None, ""):
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ValueError(f"Config value '{key}' must be an integer, got {raw!r}") from exc

        def get_positive_int(key: str, default: int) -> int:
            value = get_int(key, default)
            if value < 1:
                raise ValueError(f"Config value '{key}' must be at least 1, got {value}")
            return value

        def get_float(key: str, default: float) -> float:
            raw = get_value(key)
            if raw in (None, ""):
                return default
            try:
                return float(raw)
            except ValueError as exc:
                raise ValueError(f"Config value '{key}' must be a number, got {raw!r}") from exc

        return cls(
            database_path=str(get_value("database_path", DEFAULT_DATABASE_PATH) or DEFAULT_DATABASE_PATH),
            rejection_threshold=get_positive_int("rejection_threshold", 3),
            minimum_items_per_category=get_positive_int("minimum_items_per_category", 3),
            donation_url=str(get_value("donation_url", DEFAULT_DONATION_URL) or DEFAULT_DONATION_URL),
            random_seed=get_int("random_seed", None),
            streetwear_dark_boost=get_float("streetwear_dark_boost", 1.5),
            log_level=str(get_value("log_level", "INFO") or "INFO"),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a minimal YAML/INI-style config without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
