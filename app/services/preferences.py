from typing import Any, Dict, Optional

from pydantic import ValidationError
from structlog import get_logger

from app.schemas.preferences import UserPreferences
from app.services.storage import USER_PREFERENCES, ClientStorage

logger = get_logger()


class PreferenceError(ValueError):
    pass


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class PreferencesStore:
    def __init__(self, storage: ClientStorage):
        self.storage = storage

    async def get(self) -> UserPreferences:
        defaults = UserPreferences().model_dump(mode="json")
        stored = await self.storage.get(USER_PREFERENCES, {})
        if not isinstance(stored, dict):
            return UserPreferences()
        try:
            return UserPreferences.model_validate(_deep_merge(defaults, stored))
        except ValidationError as e:
            logger.warning("Stored preferences unreadable, using defaults",
                           client_id=self.storage.client_id, error=str(e))
            return UserPreferences()

    async def update(self, category: str, key: Optional[str], value: Any) -> UserPreferences:
        current = (await self.get()).model_dump(mode="json")
        if category not in current:
            raise PreferenceError(f"Unknown preference category '{category}'")
        if isinstance(current[category], dict):
            if key is None or key not in current[category]:
                raise PreferenceError(f"Unknown preference '{category}.{key}'")
            current[category][key] = value
        else:
            if key is not None:
                raise PreferenceError(f"Preference '{category}' has no field '{key}'")
            current[category] = value
        try:
            preferences = UserPreferences.model_validate(current)
        except ValidationError as e:
            raise PreferenceError(f"Invalid value for preference '{category}'") from e
        await self.storage.set(USER_PREFERENCES, preferences.model_dump(mode="json"))
        return preferences

    async def reset(self) -> UserPreferences:
        await self.storage.remove(USER_PREFERENCES)
        return UserPreferences()
