"""Project configuration loading and validation.

Configuration lives in .cms-sync/config.yaml and names the repository the
editor works against. Credentials never go in this file; they come from
the environment (see src.github_client.auth).

Configuration file structure:
    repository: "owner/site"
    branch: "main"
    commit_message: "Update {name} via CMS editor"
    media_folders: ["images", "pdfs"]
    default_media_folder: "images"
    timeout: 30
"""

import os
from typing import Any, Dict, List, Optional

import yaml

from src.github_client.session import RepositoryReference
from .errors import ConfigError, ConfigNotFoundError, FilesystemError
from .models import CmsConfig

DEFAULT_CONFIG_DIR = '.cms-sync'
DEFAULT_CONFIG_PATH = os.path.join(DEFAULT_CONFIG_DIR, 'config.yaml')


class ConfigLoader:
    """Handles configuration file loading, validation, and saving."""

    REQUIRED_FIELDS = {'repository'}

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> CmsConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            CmsConfig with defaults applied for optional fields

        Raises:
            ConfigNotFoundError: If the file does not exist
            FilesystemError: If the file cannot be read
            ConfigError: If the configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ConfigNotFoundError(config_path)
        except PermissionError:
            raise FilesystemError(config_path, 'read', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            raise ConfigError("Configuration file is empty")

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def save(cls, config_path: str, config: CmsConfig) -> None:
        """Save configuration to a YAML file.

        Raises:
            FilesystemError: If the file cannot be written
        """
        config_dict = {
            'repository': config.repository,
            'branch': config.branch,
            'commit_message': config.commit_message,
            'media_folders': list(config.media_folders),
            'default_media_folder': config.default_media_folder,
            'timeout': config.timeout,
        }

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except OSError as e:
                raise FilesystemError(config_dir, 'create_directory', str(e))

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise FilesystemError(config_path, 'write', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'write', str(e))

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> CmsConfig:
        missing_fields = cls.REQUIRED_FIELDS - set(config_dict.keys())
        if missing_fields:
            raise ConfigError(
                f"Missing required fields: {', '.join(sorted(missing_fields))}"
            )

        repository = cls._string(config_dict, 'repository')
        try:
            reference = RepositoryReference.parse(repository)
        except ValueError as e:
            raise ConfigError(str(e), 'repository')

        defaults = CmsConfig(repository=reference.slug)

        branch = cls._string(config_dict, 'branch', defaults.branch)
        commit_message = cls._string(config_dict, 'commit_message', defaults.commit_message)
        default_media_folder = cls._string(
            config_dict, 'default_media_folder', defaults.default_media_folder
        )
        media_folders = cls._string_list(config_dict, 'media_folders', defaults.media_folders)

        timeout = config_dict.get('timeout', defaults.timeout)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError("Field 'timeout' must be a positive number", 'timeout')

        try:
            commit_message.format(name='page.json', path='page.json')
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigError(
                f"Invalid placeholder in commit message template: {e}", 'commit_message'
            )

        return CmsConfig(
            repository=reference.slug,
            branch=branch,
            commit_message=commit_message,
            media_folders=media_folders,
            default_media_folder=default_media_folder,
            timeout=timeout,
        )

    @staticmethod
    def _string(config_dict: Dict[str, Any], name: str, default: Optional[str] = None) -> str:
        value = config_dict.get(name)
        if value is None and default is not None:
            return default
        if not isinstance(value, str):
            raise ConfigError(
                f"Field '{name}' must be a string, got {type(value).__name__}", name
            )
        if not value.strip():
            raise ConfigError(f"Field '{name}' cannot be empty", name)
        return value.strip()

    @staticmethod
    def _string_list(config_dict: Dict[str, Any], name: str, default: List[str]) -> List[str]:
        value = config_dict.get(name)
        if value is None:
            return list(default)
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"Field '{name}' must be a list of strings", name)
        folders = [v.strip().strip('/') for v in value if v.strip().strip('/')]
        if not folders:
            raise ConfigError(f"Field '{name}' cannot be empty", name)
        return folders
