"""Configuration loading from environment variables."""

import os
from dataclasses import dataclass

REQUIRED_VARS = {
    "base_url": "GITLAB_BASE",
    "token": "GITLAB_TOKEN",
    "username": "GITLAB_USERNAME",
}


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed."""


@dataclass(frozen=True)
class Config:
    base_url: str = ""
    token: str = ""
    username: str = ""
    teammates: tuple[str, ...] = ()
    port: int = 8080
    timeout: float = 10.0
    max_concurrency: int = 8
    refresh_seconds: int = 60

    @classmethod
    def from_env(cls) -> "Config":
        kwargs = {}

        if base := os.environ.get("GITLAB_BASE"):
            kwargs["base_url"] = base.strip().rstrip("/")

        if token := os.environ.get("GITLAB_TOKEN"):
            kwargs["token"] = token.strip()

        if user := os.environ.get("GITLAB_USERNAME"):
            kwargs["username"] = user.strip()

        kwargs["teammates"] = split_usernames(os.environ.get("TEAMMATE_USERNAMES", ""))

        if port := os.environ.get("PORT"):
            kwargs["port"] = _parse_number(int, "PORT", port)

        if timeout := os.environ.get("GLDASH_TIMEOUT"):
            kwargs["timeout"] = _parse_number(float, "GLDASH_TIMEOUT", timeout)

        if fanout := os.environ.get("GLDASH_MAX_CONCURRENCY"):
            kwargs["max_concurrency"] = max(1, _parse_number(int, "GLDASH_MAX_CONCURRENCY", fanout))

        if refresh := os.environ.get("GLDASH_REFRESH_SECONDS"):
            kwargs["refresh_seconds"] = _parse_number(int, "GLDASH_REFRESH_SECONDS", refresh)

        return cls(**kwargs)

    def missing(self) -> list[str]:
        """Names of the required environment variables that are unset."""
        return [env for attr, env in REQUIRED_VARS.items() if not getattr(self, attr)]

    def validate(self) -> "Config":
        missing = self.missing()
        if missing:
            raise ConfigError(f"Set env vars: {', '.join(missing)}")
        return self


def split_usernames(value: str) -> tuple[str, ...]:
    """Split a comma-separated username list, dropping blanks."""
    if not value:
        return ()
    return tuple(p.strip() for p in value.split(",") if p.strip())


def _parse_number(kind, name: str, raw: str):
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def get_config() -> Config:
    return Config.from_env()
