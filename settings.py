from __future__ import annotations

import os
import json
import logging
from typing import Dict

from languages import Language

logger = logging.getLogger(__name__)


SLOW = "slow"
NORMAL = "normal"


def default_settings() -> Dict:
    return {
        # pause in transcript growth that ends a phrase (seconds)
        "pause_interval_s": 1.2,
        # listen & repeat speech rates
        "slow_rate": 0.25,
        "normal_rate": 0.50,
        "word_rate": 0.25,
        # conversation partner speech rates
        "partner_slow_rate": 0.45,
        "partner_normal_rate": 0.9,
        "use_speaker": False,
        # remediation: word breakdown after N attempts scoring below threshold
        "remediation_attempts": 3,
        "remediation_threshold": 80,
        "daily_translation_limit": 150,
        # end the attempt on the first detected phrase boundary
        "auto_score_on_pause": False,
        "source_language": os.getenv("PRACTICE_SOURCE_LANGUAGE", "english"),
        "practice_language": os.getenv("PRACTICE_LANGUAGE", "spanish"),
        "history_db": "practice_history.db",
        # live translator
        "auto_detect_language": False,
        "auto_response_mode": False,
        "auto_response_pause_s": 1.5,
    }


def settings_path() -> str:
    return os.path.abspath(os.getenv("PRACTICE_SETTINGS", "settings.json"))


def load_settings(defaults: Dict, path: str) -> Dict:
    settings = dict(defaults)
    try:
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
                if isinstance(data, dict):
                    settings.update(data)
                else:
                    logger.warning("Ignoring settings file %s: not a JSON object", path)
    except (OSError, ValueError) as e:
        logger.warning("Could not read settings from %s: %s", path, e)
    return settings


def save_settings(settings: Dict, path: str) -> None:
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except OSError as e:
        logger.warning("Could not save settings to %s: %s", path, e)


def playback_rate(settings: Dict, speed: str = NORMAL, partner: bool = False) -> float:
    """Map a SLOW/NORMAL speed choice to the synthesizer rate for the given mode."""
    prefix = "partner_" if partner else ""
    key = f"{prefix}slow_rate" if speed == SLOW else f"{prefix}normal_rate"
    return float(settings.get(key, default_settings()[key]))


def languages(settings: Dict) -> tuple[Language, Language]:
    """Return (source language, practice language) from settings."""
    return (
        Language.from_key(settings.get("source_language", "english")),
        Language.from_key(settings.get("practice_language", "spanish")),
    )
