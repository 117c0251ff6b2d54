"""
YAML configuration loader.

Supports plain YAML files and SOPS-encrypted YAML files (``*.enc.yaml``),
so the collector API key can be kept encrypted at rest.
"""

import subprocess
from pathlib import Path
from typing import Any

import yaml

from ..exceptions import ConfigurationError


def is_encrypted_config(file_path: Path) -> bool:
    """Check if a config path follows the SOPS naming convention."""
    return file_path.name.endswith((".enc.yaml", ".enc.yml"))


def decrypt_sops_file(file_path: Path) -> dict[str, Any]:
    """
    Decrypt a SOPS-encrypted file and return parsed YAML.

    Args:
        file_path: Path to the encrypted file

    Returns:
        Decrypted configuration as dictionary

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigurationError: If SOPS is missing or decryption fails
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Encrypted config file not found: {file_path}")

    try:
        result = subprocess.run(
            ["sops", "-d", str(file_path)],
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise ConfigurationError(f"SOPS decryption failed: {e.stderr}") from e
    except FileNotFoundError as e:
        raise ConfigurationError(
            "SOPS not installed. Install with: brew install sops (macOS) "
            "or download from https://github.com/getsops/sops/releases"
        ) from e

    return _parse_yaml(result.stdout, file_path)


def load_yaml_config(file_path: Path) -> dict[str, Any]:
    """
    Load a plain YAML configuration file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigurationError: If the YAML cannot be parsed
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    return _parse_yaml(file_path.read_text(encoding="utf-8"), file_path)


def load_config(file_path: Path) -> dict[str, Any]:
    """Load a config file, decrypting it with SOPS when it is encrypted."""
    if is_encrypted_config(file_path):
        return decrypt_sops_file(file_path)
    return load_yaml_config(file_path)


def _parse_yaml(text: str, file_path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {file_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config root must be a mapping, got {type(data).__name__} in {file_path}"
        )
    return data


def check_sops_installed() -> bool:
    """Check if SOPS is installed and accessible."""
    try:
        subprocess.run(
            ["sops", "--version"],
            capture_output=True,
            check=True,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False
