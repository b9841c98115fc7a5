import json
import os
from functools import lru_cache
from typing import Dict, Any, List, Optional

from app.core.config import settings
from app.core.logger import logger

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


@lru_cache
def load_shop_config() -> Dict[str, Any]:
    """
    Loads the shop catalog (services, fallback slot template, default prices)
    from the JSON file pointed to by SHOP_CONFIG_PATH.
    Raises FileNotFoundError if the file is missing.
    """
    config_path = _resolve_path(settings.SHOP_CONFIG_PATH)
    if not os.path.exists(config_path):
        logger.critical(f"❌ Shop config '{config_path}' not found! The application cannot start.")
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
            logger.info(f"✅ Shop config loaded for: {config.get('shop_name', 'Unknown')}")
            return config
    except json.JSONDecodeError as e:
        logger.critical(f"❌ Failed to parse shop config JSON: {e}")
        raise ValueError(f"Invalid JSON in config file: {e}")


def get_services(config: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Service catalog entries in display order."""
    return config.get("services", [])


def get_service(config: Dict[str, Any], service_id: str) -> Optional[Dict[str, Any]]:
    for service in get_services(config):
        if service.get("id") == service_id:
            return service
    return None


def service_ids(config: Dict[str, Any]) -> List[str]:
    return [s["id"] for s in get_services(config)]


def get_default_time_slots(config: Dict[str, Any]) -> List[str]:
    return list(config.get("default_time_slots", []))


def get_default_prices(config: Dict[str, Any]) -> Dict[str, float]:
    return {s["id"]: s.get("price", 0) for s in get_services(config)}
