"""
Configuration loader for gh-project-pilot.

Loads ghpilot.yaml (from the working directory, or an explicit --config
path). Command-line flags override file values, which override the
built-in defaults below.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from ghpilot.lib.errors import ConfigError
from ghpilot.lib.validate import collect_errors

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "ghpilot.yaml"
DEFAULT_OUT_DIR = "out"
PUBLISH_STATE_FILENAME = "publish-state.json"
PROJECT_STATE_FILENAME = "project-drafts-state.json"


@dataclass
class PilotConfig:
    """Settings from ghpilot.yaml, with defaults applied."""
    out_dir: Path = Path(DEFAULT_OUT_DIR)
    report_dir: Path | None = None  # None means same as out_dir
    issue_template: Path | None = None  # None means bundled template
    plan_template: Path | None = None
    sort: str = "input"
    theme: str | None = None
    html: bool = False
    repo: str | None = None
    project_owner: str | None = None
    project_number: int | None = None
    publish_state: Path | None = None  # None means <out_dir>/publish-state.json
    project_state: Path | None = None
    delay_seconds: float = 0.0
    assign_owner: bool = False
    source: Path | None = None


PATH_KEYS = {"out_dir", "report_dir", "issue_template", "plan_template", "publish_state", "project_state"}


def load_config(path: Path | None = None, cwd: Path | None = None) -> PilotConfig:
    """Load config from path, or ghpilot.yaml in cwd if present.

    Raises:
        ConfigError: explicit path missing, invalid YAML or schema violation
    """
    explicit = path is not None
    if path is None:
        path = (cwd or Path.cwd()) / DEFAULT_CONFIG_FILENAME
    path = Path(path)

    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return PilotConfig()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from None
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e.strerror or e}") from None
    except UnicodeDecodeError as e:
        raise ConfigError(f"Cannot read config {path}: not UTF-8 ({e.reason} at byte {e.start})") from None

    if data is None:
        data = {}

    problems = collect_errors(data, "config")
    if problems:
        raise ConfigError(f"Invalid config {path}: {'; '.join(problems)}")

    # Relative paths in the file are relative to the file's directory
    base = path.parent
    values = {}
    for key, value in data.items():
        if key in PATH_KEYS:
            value = base / value
        values[key] = value

    logger.info(f"Loaded config from {path}")
    return PilotConfig(source=path, **values)


def pick(cli_value, config_value, default=None):
    """Return the first value that is not None: flag, config, default."""
    if cli_value is not None:
        return cli_value
    if config_value is not None:
        return config_value
    return default
