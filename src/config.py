# Copyright (c) 2025 Stephen Clau

# This file is part of Voice Teamup.

# Voice Teamup is dual-licensed:

# 1. GNU Affero General Public License v3.0 (AGPL-3.0)
#    See LICENSE file for full terms

# 2. Commercial License
#    For proprietary use without AGPL requirements
#    Contact: licensing@laudiversified.com

# SPDX-License-Identifier: AGPL-3.0-only OR Commercial

"""
Configuration module for Voice Teamup.

Sources, highest priority first:
- Docker secrets at /run/secrets/* (bot token, guild id)
- Environment variables
- Optional bot.yml in CONFIG_DIR (non-secret settings)
- Hardcoded defaults

Loaded once at process start.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml

from engine.executor import RELOCATION_POLICY
from engine.models import RelocationPolicy

logger = structlog.get_logger()

SETTINGS_FILE_NAME = "bot.yml"

CONGRATULATIONS_GIF_URL = (
    "https://media.discordapp.net/attachments/1379075185935913001/1379093353865678958/"
    "congrats-leonardo-dicaprio.gif?ex=683fa505&is=683e5385&hm=9985763ded4578f7318e8b0d"
    "c6fe72c3b39085b385c4ebd5f8626e884cb176e4&=&width=688&height=290"
)

LOG_LEVEL_CHOICES = ("debug", "info", "warning", "error")
LOG_FORMAT_CHOICES = ("console", "json")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _read_docker_secret(secret_name: str) -> Optional[str]:
    """Contents of /run/secrets/<secret_name>, stripped; None when absent or unreadable."""
    path = Path(f"/run/secrets/{secret_name}")
    if not path.exists():
        return None
    try:
        return path.read_text().strip()
    except OSError as e:
        logger.warning("docker_secret_unreadable", secret=secret_name, error=str(e))
        return None


def get_config_value(
    env_var: str,
    secret_name: Optional[str] = None,
    required: bool = False,
    default: Optional[str] = None,
) -> Optional[str]:
    """
    Resolve one setting: Docker secret, then environment, then ``default``.

    ``secret_name`` defaults to ``env_var.lower()``, so DISCORD_BOT_TOKEN is
    looked up as /run/secrets/discord_bot_token.

    Raises:
        ValueError: ``required`` is set and no source had a value
    """
    secret_name = secret_name or env_var.lower()

    for source, value in (
        ("docker_secret", lambda: _read_docker_secret(secret_name)),
        ("environment", lambda: os.getenv(env_var)),
        ("default", lambda: default),
    ):
        found = value()
        if found is not None:
            logger.debug("config_value_resolved", var=env_var, source=source)
            return found

    if required:
        raise ValueError(
            f"Required configuration value not found for '{env_var}' "
            f"(no Docker secret '{secret_name}', no environment variable)"
        )
    return None


def _safe_int(value: Any, field_name: str, default: Optional[int]) -> Optional[int]:
    """
    Convert value to int, passing None through as ``default``.

    Raises:
        ValueError: If the value is not an integer
    """
    if value is None or value == "":
        return default

    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {field_name} to int: bool")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ValueError(f"Invalid integer for {field_name}: {value}")

    raise ValueError(f"Cannot convert {field_name} to int: {type(value).__name__}")


def _safe_bool(value: Any, field_name: str, default: bool) -> bool:
    """
    Convert YAML/env flags ("true", "0", True, ...) to bool.

    Raises:
        ValueError: If the value is not a recognizable flag
    """
    if value is None or value == "":
        return default

    if isinstance(value, bool):
        return value

    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False

    raise ValueError(f"Invalid boolean for {field_name}: {value}")


def _expand_env_vars(value: Any) -> Any:
    """Expand ${VAR_NAME} references, leaving unknown variables untouched."""
    if not isinstance(value, str):
        return value

    def replace_var(match: Any) -> str:
        var_name = match.group(1)
        return os.getenv(var_name, match.group(0))

    return re.sub(r"\$\{([^}]+)\}", replace_var, value)


@dataclass
class CommandSettings:
    """Settings passed explicitly into every command handler."""

    relocation_policy: RelocationPolicy = RELOCATION_POLICY
    """What teamup does after a failed move: fail_fast or best_effort."""

    reject_duplicate_destinations: bool = False
    """Refuse teamup when the same channel name is listed twice."""

    serialize_channel_commands: bool = False
    """Hold a per-channel lock from presence read through the last move."""

    winner_image_url: str = CONGRATULATIONS_GIF_URL
    """Image shown in the winner announcement."""

    random_seed: Optional[int] = None
    """Seed the process random source (deterministic draws, debugging only)."""

    def __post_init__(self) -> None:
        if not isinstance(self.relocation_policy, RelocationPolicy):
            self.relocation_policy = RelocationPolicy.parse(self.relocation_policy)

        if not self.winner_image_url:
            raise ValueError("winner_image_url cannot be empty")


@dataclass
class Config:
    """Process-wide settings: credentials, command behavior, health server, logging."""

    discord_bot_token: str
    """Discord bot token."""

    guild_id: int
    """Server the slash commands are registered in."""

    bot_name: str = "Voice Teamup"
    """Bot display name used in logs and the health endpoint."""

    commands: CommandSettings = field(default_factory=CommandSettings)
    """Command-layer settings."""

    # Health endpoint
    health_check_host: str = "0.0.0.0"
    health_check_port: int = 8080
    health_check_enabled: bool = True

    # structlog output
    log_level: str = "info"
    """One of LOG_LEVEL_CHOICES."""

    log_format: str = "console"
    """One of LOG_FORMAT_CHOICES."""

    def __post_init__(self) -> None:
        if not self.discord_bot_token:
            raise ValueError("discord_bot_token is REQUIRED")

        if not isinstance(self.guild_id, int) or self.guild_id <= 0:
            raise ValueError(f"guild_id must be a positive integer, got {self.guild_id!r}")

        _require_choice("log_level", self.log_level, LOG_LEVEL_CHOICES)
        _require_choice("log_format", self.log_format, LOG_FORMAT_CHOICES)

        if not 0 < self.health_check_port < 65536:
            raise ValueError(f"health_check_port out of range (1-65535): {self.health_check_port}")


def _require_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value.lower() not in choices:
        raise ValueError(f"Invalid {name} '{value}'. Must be one of: {', '.join(choices)}")


def _load_settings_file(config_dir: Path) -> Dict[str, Any]:
    """
    Read bot.yml from the config directory.

    Returns:
        Parsed mapping, or {} when the file does not exist

    Raises:
        ValueError: If the file does not contain a mapping
        yaml.YAMLError: If the file is not valid YAML
    """
    settings_path = config_dir / SETTINGS_FILE_NAME
    if not settings_path.exists():
        logger.debug("settings_file_not_found", path=str(settings_path))
        return {}

    with open(settings_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{settings_path} must contain a mapping, got {type(data).__name__}")

    logger.info("settings_file_loaded", path=str(settings_path))
    return {key: _expand_env_vars(value) for key, value in data.items()}


def _setting(env_var: str, yaml_data: Dict[str, Any], key: str) -> Any:
    """Environment wins over YAML for non-secret settings."""
    env_value = os.getenv(env_var)
    if env_value is not None:
        return env_value
    return _expand_env_vars(yaml_data.get(key))


def load_config() -> Config:
    """
    Load configuration from secrets, environment variables and bot.yml.

    Returns:
        Validated Config

    Raises:
        ValueError: If required values are missing or invalid
        yaml.YAMLError: If bot.yml is invalid YAML
    """
    config_dir = Path(os.getenv("CONFIG_DIR", "."))
    file_data = _load_settings_file(config_dir)
    command_data = file_data.get("commands") or {}
    if not isinstance(command_data, dict):
        raise ValueError("'commands' in bot.yml must be a mapping")

    discord_bot_token = get_config_value(
        env_var="DISCORD_BOT_TOKEN",
        secret_name="discord_bot_token",
        required=True,
    )

    guild_id = _safe_int(
        get_config_value(env_var="GUILD_ID", secret_name="guild_id", required=True),
        "guild_id",
        None,
    )

    policy_value = _setting("RELOCATION_POLICY", command_data, "relocation_policy")
    commands = CommandSettings(
        relocation_policy=(
            RelocationPolicy.parse(policy_value) if policy_value else RELOCATION_POLICY
        ),
        reject_duplicate_destinations=_safe_bool(
            _setting("REJECT_DUPLICATE_DESTINATIONS", command_data, "reject_duplicate_destinations"),
            "reject_duplicate_destinations",
            False,
        ),
        serialize_channel_commands=_safe_bool(
            _setting("SERIALIZE_CHANNEL_COMMANDS", command_data, "serialize_channel_commands"),
            "serialize_channel_commands",
            False,
        ),
        winner_image_url=(
            _setting("WINNER_IMAGE_URL", command_data, "winner_image_url")
            or CONGRATULATIONS_GIF_URL
        ),
        random_seed=_safe_int(
            _setting("RANDOM_SEED", command_data, "random_seed"),
            "random_seed",
            None,
        ),
    )

    config = Config(
        discord_bot_token=discord_bot_token or "",
        guild_id=guild_id or 0,
        bot_name=_setting("BOT_NAME", file_data, "bot_name") or "Voice Teamup",
        commands=commands,
        health_check_host=_setting("HEALTH_CHECK_HOST", file_data, "health_check_host") or "0.0.0.0",
        health_check_port=_safe_int(
            _setting("HEALTH_CHECK_PORT", file_data, "health_check_port"),
            "health_check_port",
            8080,
        ),
        health_check_enabled=_safe_bool(
            _setting("HEALTH_CHECK_ENABLED", file_data, "health_check_enabled"),
            "health_check_enabled",
            True,
        ),
        log_level=_setting("LOG_LEVEL", file_data, "log_level") or "info",
        log_format=_setting("LOG_FORMAT", file_data, "log_format") or "console",
    )

    logger.info(
        "config_loaded",
        guild_id=config.guild_id,
        relocation_policy=config.commands.relocation_policy.value,
        reject_duplicate_destinations=config.commands.reject_duplicate_destinations,
        serialize_channel_commands=config.commands.serialize_channel_commands,
    )
    return config
