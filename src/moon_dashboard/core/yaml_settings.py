"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

APP_NAME = "moon-dashboard"
CONFIG_FILENAME = f"{APP_NAME}.yaml"
DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"


def cli_includes(argv: list[str] | None = None) -> list[str]:
    """Collect the values of every --include flag in argv.

    They are read ahead of pydantic's own CLI parsing because the
    files they name contribute to the settings being parsed.
    """
    argv = sys.argv if argv is None else argv
    includes = []
    i = 1
    while i < len(argv):
        if argv[i] == "--include" and i + 1 < len(argv):
            includes.append(argv[i + 1])
            i += 1
        i += 1
    return includes


def deep_merge(base: dict, override: dict) -> dict:
    """Return base with override merged in; override wins."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source layering several config files.

    Files are deep merged, later ones winning:
        package defaults < user config < ./moon-dashboard.yaml
        < --include files
    Any file may carry an `include:` key naming further files,
    resolved relative to the including file.
    """

    def __init__(self, settings_cls: type[BaseSettings], yaml_file=None):
        includes = cli_includes()
        base = yaml_file or settings_cls.model_config.get("yaml_file")
        if base and includes:
            yaml_file = ([base] if isinstance(base, str) else list(base)) + includes
        elif includes:
            yaml_file = includes
        else:
            yaml_file = base

        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files):
        files_to_load = [
            DEFAULTS_FILE,
            Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME,
            Path(CONFIG_FILENAME),
        ]
        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        result = {}
        seen = set()
        for file_path in files_to_load:
            resolved = file_path.resolve()
            if resolved in seen or not file_path.is_file():
                continue
            seen.add(resolved)
            result = deep_merge(result, self._load_file_recursive(resolved, set()))
        return result

    def _load_file_recursive(self, filepath: Path, visited: set[Path]) -> dict:
        """Load a file with its include: directives resolved.

        Raises:
            ValueError: On a circular include
        """
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath) as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]

        for inc in includes:
            inc_path = Path(inc)
            if not inc_path.is_absolute():
                inc_path = (filepath.parent / inc_path).resolve()
            included = self._load_file_recursive(inc_path, visited.copy())
            # Including file overrides what it includes
            data = deep_merge(included, data)

        return data
