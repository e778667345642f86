"""YAML config loading with env var expansion."""

import os
import re
from collections.abc import Iterator
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import ChronotrieConfig

LOCAL_CONFIG = Path("chronotrie.yaml")
USER_CONFIG = Path(".chronotrie") / "config.yaml"

_ENV_REF = re.compile(r"\$\{(\w+)\}")


def _candidate_paths(cli_path: str | None) -> Iterator[Path]:
    """Config file locations, highest precedence first."""
    if cli_path:
        yield Path(cli_path)
    yield LOCAL_CONFIG
    yield Path.home() / USER_CONFIG


def _read_yaml(path: Path) -> dict | None:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping at top level")
    return raw


def load_config(cli_path: str | None = None) -> ChronotrieConfig:
    """Load config from the first non-empty file.

    Precedence is ``--config`` path, then ``./chronotrie.yaml``, then
    ``~/.chronotrie/config.yaml``. With none of those, defaults apply.
    """
    for path in _candidate_paths(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            continue
        try:
            return ChronotrieConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
    return ChronotrieConfig()


def _expand_env_vars(obj: object) -> object:
    """Replace ``${VAR}`` in every string value; unset variables become empty."""
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.getenv(m.group(1), ""), obj)
    return obj


# Default YAML template for `chronotrie config init`
DEFAULT_CONFIG_TEMPLATE = """\
# chronotrie.yaml

# Merkle trie shape. Every replica being compared must agree on all three.
trie:
  depth: 16                    # base-3 digits per key; 16 covers ~82 years of minutes
  bucket_ms: 60000             # time bucket per leaf
  hash_algorithm: "murmur3"    # murmur3 | sha256
  # max_divergences: 1000      # cap on paths reported by a diff

# Hybrid logical clock
clock:
  origin: "${CHRONOTRIE_ORIGIN}"
  max_drift_ms: 60000

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
