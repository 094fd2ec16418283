"""Environment-backed settings shared by the scanner and both services."""

import os
from dataclasses import dataclass, fields
from typing import Dict, Optional


class ConfigError(Exception):
    """A required setting is missing or invalid."""
    pass


REJECT_POLICIES = ("keep", "mark")


def _env_int(environ: Dict[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """All configuration, read once from the environment.

    Every attribute maps to an upper-case environment variable of the same
    name. Components validate only the settings they use via require().
    """

    # Drive
    inbox_folder_id: str = ""
    destination_root_id: str = ""
    google_service_account_json: str = ""
    service_account_file: str = "service_account_key.json"

    # Classifier
    llm_provider: str = "mistral"

    # Scanner → relay
    relay_url: str = ""
    relay_api_key: str = ""

    # Relay → worker
    commit_url: str = ""
    commit_api_key: str = ""
    scan_url: str = ""
    reject_url: str = ""
    reject_policy: str = "keep"

    # Discord
    discord_public_key: str = ""
    discord_bot_token: str = ""
    discord_application_id: str = ""
    discord_channel_id: str = ""

    # Scanner limits
    scan_page_size: int = 20
    scan_max_documents: int = 10
    scan_interval: int = 300

    port: int = 8080

    _int_fields = ("scan_page_size", "scan_max_documents", "scan_interval", "port")

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Raises:
            ConfigError: If an integer setting can't be parsed or the reject
                policy is unknown
        """
        if environ is None:
            environ = os.environ

        values = {}
        for f in fields(cls):
            env_name = f.name.upper()
            if f.name in cls._int_fields:
                values[f.name] = _env_int(environ, env_name, f.default)
            elif env_name in environ:
                values[f.name] = environ[env_name].strip()

        settings = cls(**values)
        settings.llm_provider = settings.llm_provider.lower() or "mistral"
        settings.reject_policy = settings.reject_policy.lower() or "keep"
        if settings.reject_policy not in REJECT_POLICIES:
            raise ConfigError(
                f"REJECT_POLICY must be one of {', '.join(REJECT_POLICIES)}, "
                f"got {settings.reject_policy!r}"
            )
        return settings

    def require(self, *names: str) -> None:
        """Raise ConfigError listing every named setting that is empty."""
        missing = [name.upper() for name in names if not getattr(self, name)]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")
