# src/kubetune/core/config.py

import logging
import os
import re
from typing import List, Optional

from dotenv import load_dotenv

from .exceptions import MissingCredentialsError

# Load environment variables from a .env file located in the project root
dotenv_path = os.path.join(os.path.dirname(__file__), "..", "..", "..", ".env")
load_dotenv(dotenv_path=dotenv_path)

WINDOW_PATTERN = re.compile(r"^(\d+)([mhd])$")


class Config:
    """
    Handles the application's configuration by loading values from environment variables.
    """

    def __init__(self):
        # --- Datadog credentials ---
        self.DD_API_KEY = self._get_secret("DD_API_KEY")
        self.DD_APP_KEY = self._get_secret("DD_APP_KEY")

        # --- Analysis defaults, read per instance ---
        self.AUDIT_DEFAULT_WINDOW = os.getenv("AUDIT_DEFAULT_WINDOW", "24h")
        self.INCIDENT_DEFAULT_WINDOW = os.getenv("INCIDENT_DEFAULT_WINDOW", "30m")
        self.INCIDENT_DEFAULT_DEPLOYMENT = os.getenv("INCIDENT_DEFAULT_DEPLOYMENT") or None
        # Target requested/allocatable ratios used for incident capacity planning
        self.CAPACITY_TARGETS = os.getenv("CAPACITY_TARGETS", "0.8,0.7")

    @staticmethod
    def _get_secret(key: str, default: str = None) -> str:
        """
        Retrieves a secret from a file (Docker secret/volume) or falls back to environment variable.

        Raises:
            PermissionError: If the secret file exists but cannot be read due to permissions.
            IOError: If the secret file exists but cannot be read due to I/O errors.
        """
        secret_file = f"/etc/kubetune/secrets/{key}"
        if os.path.exists(secret_file):
            try:
                with open(secret_file, "r") as f:
                    value = f.read().strip()
                    logging.getLogger(__name__).debug(f"Loaded secret '{key}' from {secret_file}")
                    return value
            except PermissionError as e:
                raise PermissionError(
                    f"Secret file '{secret_file}' exists but cannot be read due to permission denied. "
                    f"Please check file permissions or run with appropriate privileges."
                ) from e
            except (IOError, OSError) as e:
                raise IOError(
                    f"Secret file '{secret_file}' exists but cannot be read: {e}. "
                    f"Please check the file integrity and system resources."
                ) from e
        return os.getenv(key, default)

    # DD_SITE is resolved at access time so a CLI run picks up env changes
    # made after import (tests rely on this through monkeypatch).
    @property
    def DD_SITE(self) -> str:
        return os.getenv("DD_SITE") or "datadoghq.com"

    def resolve_site(self, site: Optional[str] = None) -> str:
        """Returns the explicit site if given, else DD_SITE, else datadoghq.com."""
        return site or self.DD_SITE

    def require_credentials(self) -> None:
        """
        Fails fast when either Datadog key is missing, before any network call.
        """
        if not self.DD_API_KEY or not self.DD_APP_KEY:
            raise MissingCredentialsError("Missing DD_API_KEY or DD_APP_KEY environment variables.")

    # --- Logging variables ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

    # --- HTTP variables ---
    DEFAULT_TIMEOUT_CONNECT = float(os.getenv("DEFAULT_TIMEOUT_CONNECT", "5"))
    DEFAULT_TIMEOUT_READ = float(os.getenv("DEFAULT_TIMEOUT_READ", "30"))
    USER_AGENT = os.getenv("USER_AGENT", "kubetune")

    @property
    def capacity_targets(self) -> List[float]:
        return [float(part) for part in self.CAPACITY_TARGETS.split(",") if part.strip()]

    def validate_instance(self):
        for name in ("AUDIT_DEFAULT_WINDOW", "INCIDENT_DEFAULT_WINDOW"):
            value = getattr(self, name)
            if not WINDOW_PATTERN.match(value.strip()):
                raise ValueError(f"{name} format is invalid: '{value}'. Use 'm', 'h' or 'd' (e.g. '30m', '24h').")
        try:
            targets = self.capacity_targets
        except ValueError as e:
            raise ValueError(f"CAPACITY_TARGETS must be a comma-separated list of numbers: {e}") from e
        if not targets:
            raise ValueError("CAPACITY_TARGETS must contain at least one target ratio.")
        for target in targets:
            if not 0 < target <= 1:
                raise ValueError(f"CAPACITY_TARGETS values must be in (0, 1], got {target}.")
        percents = [round(target * 100, 2) for target in targets]
        if len(set(percents)) != len(percents):
            raise ValueError(f"CAPACITY_TARGETS contains duplicate targets: {self.CAPACITY_TARGETS}")
        if self.DEFAULT_TIMEOUT_CONNECT <= 0 or self.DEFAULT_TIMEOUT_READ <= 0:
            raise ValueError("DEFAULT_TIMEOUT_CONNECT and DEFAULT_TIMEOUT_READ must be positive.")
        if not self.DD_API_KEY or not self.DD_APP_KEY:
            logging.getLogger(__name__).debug("DD_API_KEY or DD_APP_KEY is not set.")


# Instantiate the config to be imported by other modules
config = Config()
config.validate_instance()
