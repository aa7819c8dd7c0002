"""Settings resolution with a 4-step profile precedence chain."""

import os
import re
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

import tomlkit
import typer
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "jtl" / "config.toml"

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class JtlSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="JTL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: str | None = None

    # Jira Cloud site
    jira_base_url: str | None = None  # https://your-company.atlassian.net
    jira_email: str | None = None
    jira_api_token: SecretStr | None = None

    # Filesystem defaults
    template_dir: Path = Path("templates")
    output_dir: Path = Path("output")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Profile values arrive as init kwargs; the environment wins over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/jtl/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.parse(CONFIG_PATH.read_text(encoding="utf-8"))


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def validation_errors(settings: JtlSettings) -> list[str]:
    """Return human-readable problems with the Jira connection settings."""
    missing = [
        name
        for name, value in (
            ("jira_base_url", settings.jira_base_url),
            ("jira_email", settings.jira_email),
            ("jira_api_token", settings.jira_api_token),
        )
        if not value
    ]
    if missing:
        return [f"Missing required configuration: {', '.join(missing)}"]

    errors = []
    parsed = urlparse(settings.jira_base_url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.append("Invalid jira_base_url - must be a valid http(s) URL")
    if not _EMAIL.match(settings.jira_email or ""):
        errors.append("Invalid jira_email - must be a valid email address")
    return errors


def get_settings(profile: str | None = None) -> JtlSettings:
    """Resolve the active profile and return a validated JtlSettings.

    Precedence (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. JTL_DEFAULT_PROFILE env var
    3. default_profile key in ~/.config/jtl/config.toml
    4. First profile defined in ~/.config/jtl/config.toml
    """
    toml_config = _load_toml()

    active = (
        profile
        or os.environ.get("JTL_DEFAULT_PROFILE")
        or toml_config.get("default_profile")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        elif active not in toml_config:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    settings = JtlSettings(**profile_defaults)

    errors = validation_errors(settings)
    if errors:
        for error in errors:
            typer.echo(error)
        typer.echo(
            "Set JTL_JIRA_BASE_URL, JTL_JIRA_EMAIL and JTL_JIRA_API_TOKEN, "
            f"or the matching keys in the [{active or 'profile'}] section of {CONFIG_PATH}. "
            "Run 'jtl init' to create a profile."
        )
        raise typer.Exit(1)

    return settings
