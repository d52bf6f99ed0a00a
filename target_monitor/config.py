from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict
from .utils.host_config import get_hostname_settings_file


class Settings(BaseSettings):
    # Target konfiguration
    targets_config_path: str = "config.json"

    # Monitoring cyklus
    monitor_interval_seconds: int = 300  # 5 minutter mellem cykler

    # Website probes
    website_timeout_seconds: float = 10.0
    user_agent: str = "Target-Monitor/1.0"

    # File share probes
    store_call_timeout_seconds: float = 30.0  # Deadline per netværkskald under traversal

    # Orchestrator
    target_deadline_seconds: float = 300.0  # Hard deadline per target per cyklus
    max_concurrent_probes: int = 50

    # Admin / auth
    admin_username: str = "admin"
    admin_password: str = "admin123"
    jwt_secret: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24

    # Logging konfiguration
    log_level: str = "INFO"
    log_file_path: str = "logs/target_monitor.log"
    log_retention_days: int = 30

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=get_hostname_settings_file(), extra="ignore"
    )

    @property
    def log_directory(self) -> Path:
        """Returnerer log directory som Path objekt"""
        return Path(self.log_file_path).parent

    @property
    def config_file_info(self) -> dict:
        """Return information about which configuration file is being used."""
        from .utils.host_config import get_hostname, list_all_settings_files

        return {
            "hostname": get_hostname(),
            "active_config_file": get_hostname_settings_file(),
            "all_available_configs": list_all_settings_files(),
        }
