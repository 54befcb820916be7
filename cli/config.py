"""Configuration management for the gallery uploader."""

import json
import os
import shutil
from pathlib import Path
from typing import Optional

from common.constants import DEFAULT_AUTH_HEADER, DEFAULT_CATEGORY_TITLES
from common.logging_config import get_logger
from common.types import RemoteFileRecord

logger = get_logger(__name__)


class Config:
    """Manages uploader configuration stored in a JSON file."""

    DEFAULT_CONFIG = {
        "api_url": "http://localhost:8787",
        "api_key": "",
        "auth_header": DEFAULT_AUTH_HEADER,
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "default_categories": list(DEFAULT_CATEGORY_TITLES),
        "static_entries": [],
    }

    ENV_OVERRIDES = {
        "api_url": "GALLERY_API_URL",
        "api_key": "GALLERY_API_KEY",
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.gallery-uploader/config.json)
        """
        self.config_path = config_path
        self.data = self._load()
        # environment values win over the file and are never written back to it
        self.overrides = {
            name: os.environ[var] for name, var in self.ENV_OVERRIDES.items() if os.environ.get(var)
        }
        if self.overrides:
            logger.info(f"Using environment overrides for {sorted(self.overrides)}")

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / '.gallery-uploader' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        config = json.loads(json.dumps(self.DEFAULT_CONFIG))

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config.update(data)
                return config
            except (json.JSONDecodeError, IOError) as e:
                backup_path = self.config_path.with_suffix('.json.bak')
                logger.warning(f"Config file unreadable ({e}), backing up to {backup_path}")
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError as copy_error:
                    logger.warning(f"Could not back up config file: {copy_error}")
                return config

        try:
            with open(self.config_path, 'w') as f:
                json.dump(config, f, indent=2)
        except IOError as e:
            logger.warning(f"Could not write default config: {e}")
        return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.error(f"Could not save config to {self.config_path}: {e}")

    def get_api_key(self) -> Optional[str]:
        """
        Get stored upload API key.

        Returns:
            API key string or None if not set
        """
        return self.overrides.get('api_key') or self.data.get('api_key') or None

    def set_api_key(self, key: str) -> None:
        """
        Set upload API key and save to file.

        Replaces a key taken from GALLERY_API_KEY for the rest of the session.

        Args:
            key: Shared secret accepted by the upload API
        """
        self.data['api_key'] = key
        self.overrides.pop('api_key', None)
        self.save()

    def get_base_url(self) -> Optional[str]:
        """
        Get upload API base URL.

        Returns:
            Base URL without trailing slash (e.g., "http://localhost:8787"), or None if unset
        """
        url = self.overrides.get('api_url') or self.data.get('api_url') or ''
        return url.rstrip('/') or None

    def get_auth_header(self) -> str:
        return self.data.get('auth_header') or DEFAULT_AUTH_HEADER

    def is_configured(self) -> bool:
        return bool(self.get_base_url() and self.get_api_key())

    def get_timeout(self) -> int:
        """
        Get request timeout in seconds.

        Returns:
            Timeout value in seconds
        """
        return self.data.get('timeout', 30)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }

    def get_default_categories(self) -> list[str]:
        return list(self.data.get('default_categories') or DEFAULT_CATEGORY_TITLES)

    def get_static_entries(self) -> list[RemoteFileRecord]:
        """
        Build the fixed gallery items defined in the config file.

        Each entry needs 'key' and 'url'; 'thumbnailUrl', 'categories' and
        'name' are optional. Invalid entries are skipped with a warning.

        Returns:
            Immutable records in definition order
        """
        records = []
        for raw in self.data.get('static_entries') or []:
            if not isinstance(raw, dict) or not raw.get('key') or not raw.get('url'):
                logger.warning(f"Skipping invalid static entry: {raw!r}")
                continue
            records.append(RemoteFileRecord(
                key=raw['key'],
                url=raw['url'],
                thumbnail_url=raw.get('thumbnailUrl') or raw['url'],
                categories=tuple(raw.get('categories') or ()),
                original_name=raw.get('name'),
                is_immutable=True,
            ))
        return records
