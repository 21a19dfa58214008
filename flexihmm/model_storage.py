"""
Settings and model storage for flexihmm.

Trained models are JSON files. By default they live in a common directory:
  ~/.flexihmm/models/

The models directory can be configured via:
  - Environment variable: FLEXIHMM_MODELS_DIR
  - Config file: ~/.flexihmm/config.json (set "models_dir" key)
  - Default: <config dir>/models/

The config directory itself is FLEXIHMM_CONFIG_DIR if set, otherwise
$XDG_DATA_HOME/flexihmm, otherwise ~/.flexihmm.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import __version__
from .errors import DataError
from .model import HMMModel

logger = logging.getLogger(__name__)

MODEL_SUFFIX = ".json"


def get_config_dir(create: bool = True) -> Path:
    """
    Get the flexihmm configuration directory.

    Args:
        create: If True, create the directory if it doesn't exist. If False, return the path
                without creating it (useful for read-only operations).

    Returns:
        Path to the flexihmm config directory
    """
    if "FLEXIHMM_CONFIG_DIR" in os.environ:
        base = Path(os.environ["FLEXIHMM_CONFIG_DIR"])
    elif "XDG_DATA_HOME" in os.environ:
        base = Path(os.environ["XDG_DATA_HOME"]) / "flexihmm"
    else:
        try:
            base = Path.home() / ".flexihmm"
        except (RuntimeError, KeyError):
            # Path.home() fails for system users without a home directory
            base = Path("/tmp/flexihmm")

    if create:
        try:
            base.mkdir(parents=True, exist_ok=True)
        except (OSError, PermissionError) as exc:
            logger.debug("Cannot create config directory %s: %s", base, exc)
    return base


def get_config_file(create_dir: bool = True) -> Path:
    """Get the path to the flexihmm configuration file."""
    return get_config_dir(create=create_dir) / "config.json"


def read_config() -> dict:
    """
    Read the flexihmm configuration file.

    Returns:
        Dictionary with configuration values (empty dict if file doesn't exist)
    """
    config_file = get_config_file(create_dir=False)
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", config_file, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: expected a JSON object", config_file)
        return {}
    return data


def write_config(config: dict) -> None:
    """
    Merge ``config`` into the flexihmm config file, keeping other settings.
    """
    config_file = get_config_file()
    existing_config = read_config()
    existing_config.update(config)

    with open(config_file, "w", encoding="utf-8") as f:
        json.dump(existing_config, f, indent=2, ensure_ascii=False)


def get_models_dir(create: bool = True) -> Path:
    """
    Get the directory where trained models are stored.

    Checks in order:
    1. FLEXIHMM_MODELS_DIR environment variable
    2. config.json file (models_dir key)
    3. <config dir>/models/ (default)
    """
    if "FLEXIHMM_MODELS_DIR" in os.environ:
        models_dir = Path(os.environ["FLEXIHMM_MODELS_DIR"])
    else:
        config = read_config()
        if "models_dir" in config:
            models_dir = Path(config["models_dir"])
        else:
            models_dir = get_config_dir(create=False) / "models"
    if create:
        models_dir.mkdir(parents=True, exist_ok=True)
    return models_dir


def set_models_dir(path: str | Path) -> Path:
    models_dir = Path(path).expanduser().resolve()
    models_dir.mkdir(parents=True, exist_ok=True)
    write_config({"models_dir": str(models_dir)})
    return models_dir


def get_default_penalty() -> Optional[float]:
    """Penalty configured in config.json, or None to derive it from the corpus."""
    value = read_config().get("default_penalty")
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid default_penalty in config: %r", value)
        return None


def set_default_penalty(penalty: Optional[float]) -> None:
    write_config({"default_penalty": penalty})


def resolve_model_path(name_or_path: str | Path, create_dir: bool = False) -> Path:
    """
    A bare model name (no directory part, no suffix) lives in the models
    directory as <name>.json; anything else is taken as a path.
    """
    candidate = Path(name_or_path)
    if candidate.suffix or len(candidate.parts) > 1:
        return candidate
    return get_models_dir(create=create_dir) / f"{candidate.name}{MODEL_SUFFIX}"


def save_model(model: HMMModel, path: str | Path, name: Optional[str] = None) -> Path:
    """Write a trained model as JSON. Returns the path written."""
    model_path = resolve_model_path(path, create_dir=True)
    model_path.parent.mkdir(parents=True, exist_ok=True)
    payload = model.to_dict()
    payload["name"] = name or model_path.stem
    payload["version"] = __version__
    payload["created"] = datetime.now().isoformat(timespec="seconds")
    with open(model_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False)
    logger.info("Saved model '%s' to %s", payload["name"], model_path)
    return model_path


def load_model(path: str | Path) -> HMMModel:
    """
    Load a model written by save_model().

    Raises:
        FileNotFoundError: if the model file does not exist
        DataError: if the file is not a valid flexihmm model
    """
    model_path = resolve_model_path(path)
    with open(model_path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise DataError(f"not a JSON model file ({exc})", path=model_path) from exc
    if not isinstance(data, dict):
        raise DataError("model file must contain a JSON object", path=model_path)
    try:
        model = HMMModel.from_dict(data)
    except DataError as exc:
        raise DataError(str(exc), path=model_path) from exc
    logger.debug("Loaded model '%s' from %s", data.get("name", model_path.stem), model_path)
    return model
