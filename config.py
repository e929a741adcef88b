"""Configuration management for Bajeti.

Reads configuration from ~/.config/bajeti.toml and creates default config if needed.
"""

from pathlib import Path
from dataclasses import dataclass
import tomllib
import tomli_w


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    reports_dir: Path
    report_format: str = "csv"
    recent_limit: int = 5
    allow_destructive_rebuild: bool = False
    enable_reset: bool = False

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        base_dir = _default_base_dir()
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="bajeti.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
            reports_dir=base_dir / "reports",
        )


def _default_base_dir() -> Path:
    return Path.home() / "data" / "bajeti"


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "bajeti.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def get_seed_dir() -> Path:
    """Get the path to the seed data directory."""
    return Path(__file__).parent / "db" / "seed"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Returns:
        Config object with loaded or default values.
    """
    config_path = get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        _write_config(config)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return parse_config(data)


def parse_config(data: dict) -> Config:
    """Build a Config from parsed TOML data, filling in defaults.

    Args:
        data: Dictionary as returned by tomllib.

    Returns:
        Config object.
    """
    base_dir = Path(data.get("base_dir", _default_base_dir()))

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", "bajeti.db")
    allow_destructive_rebuild = db_config.get("allow_destructive_rebuild", False)

    log_config = data.get("logging", {})
    log_level = log_config.get("level", "INFO")
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    report_config = data.get("reports", {})
    reports_dir = Path(report_config.get("output_dir", base_dir / "reports"))
    report_format = report_config.get("format", "csv")
    recent_limit = int(report_config.get("recent_limit", 5))

    return Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        reports_dir=reports_dir,
        report_format=report_format,
        recent_limit=recent_limit,
        allow_destructive_rebuild=allow_destructive_rebuild,
        enable_reset=data.get("enable_reset", False),
    )


def _write_config(config: Config) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
    """
    config_path = get_config_path()

    # Ensure config directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "base_dir": str(config.base_dir),
        "enable_reset": config.enable_reset,
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
            "allow_destructive_rebuild": config.allow_destructive_rebuild,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "reports": {
            "output_dir": str(config.reports_dir),
            "format": config.report_format,
            "recent_limit": config.recent_limit,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
