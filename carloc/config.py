from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

# --- Chemins de base ---
ROOT_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = ROOT_DIR / "data"
SETTINGS_JSON = DATA_DIR / "settings.json"

# variables d'environnement -> clés de Settings
ENV_KEYS = {
    "CARLOC_API_BASE": "api_base",
    "CARLOC_API_TOKEN": "api_token",
    "CARLOC_API_TIMEOUT": "timeout",
    "CARLOC_DATA_DIR": "data_dir",
}


class Settings(BaseModel):
    api_base: str = "http://localhost:5000"
    api_token: Optional[str] = None
    timeout: float = 30.0
    data_dir: Path = DATA_DIR
    default_tva_percentage: float = 20.0
    max_upload_bytes: int = 10_000_000


def _load_json(path: os.PathLike | str):
    p = Path(path)
    if not p.exists():
        return None
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Lecture impossible de %s (%s), valeurs par défaut utilisées", p, e)
        return None


def load_settings(path: os.PathLike | str = SETTINGS_JSON, environ: Optional[dict] = None) -> Settings:
    """
    Charge la configuration :
    - data/settings.json (clé "api" tolérée pour les anciens fichiers)
    - puis variables d'environnement CARLOC_* qui priment
    """
    raw: dict[str, Any] = {}
    s = _load_json(path) or {}
    if isinstance(s, dict):
        api_conf = s.get("api", {}) if isinstance(s.get("api"), dict) else {}
        raw.update({k: v for k, v in s.items() if k != "api"})
        if api_conf.get("base_url"):
            raw["api_base"] = api_conf["base_url"]
        if api_conf.get("token"):
            raw["api_token"] = api_conf["token"]

    env = os.environ if environ is None else environ
    for env_key, field in ENV_KEYS.items():
        val = env.get(env_key)
        if val:
            raw[field] = val

    try:
        return Settings.model_validate(raw)
    except ValidationError as e:
        logger.warning("Configuration invalide (%s), valeurs par défaut utilisées", e)
        return Settings()
