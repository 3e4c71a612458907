import logging
from typing import Any, Dict, List, Optional, Sequence

from tourops.core import BaseService, NotFoundError, ValidationError
from tourops.infrastructure.repositories import SettingRepository
from tourops.models import Setting

logger = logging.getLogger(__name__)

# key -> (default value, description); inserted at startup when missing
DEFAULT_SETTINGS: Dict[str, tuple] = {
    "default_commission_percentage": (0, "Commission given to new companies when none is supplied"),
    "currency": ("USD", "Currency code shown with prices and quotes"),
}


class ConfigurationService(BaseService):
    """System-wide key/value settings"""

    def __init__(self, session, setting_repo: Optional[SettingRepository] = None):
        super().__init__(session)
        self.setting_repo = setting_repo or SettingRepository(session)

    async def list_settings(self) -> List[Setting]:
        return await self.setting_repo.get_multi(limit=1000)

    async def get_setting(self, key: str) -> Setting:
        setting = await self.setting_repo.get(key)
        if not setting:
            raise NotFoundError("Setting", key)
        return setting

    async def get_value(self, key: str, default: Any = None) -> Any:
        setting = await self.setting_repo.get(key)
        if setting is None:
            return DEFAULT_SETTINGS[key][0] if key in DEFAULT_SETTINGS else default
        return setting.value

    async def get_by_keys(self, keys: Sequence[str]) -> List[Setting]:
        cleaned = [k.strip() for k in keys if k and k.strip()]
        if not cleaned:
            raise ValidationError("At least one key is required", field="keys")
        return await self.setting_repo.get_many(cleaned)

    async def set_value(self, key: str, value: Any, description: Optional[str] = None) -> Setting:
        """Create or overwrite a setting"""
        key = (key or "").strip()
        if not key:
            raise ValidationError("Key is required", field="key")
        if value is None:
            raise ValidationError("Value is required", field="value")

        setting = await self.setting_repo.get(key)
        if setting:
            setting.value = value
            if description is not None:
                setting.description = description
        else:
            setting = Setting(key=key, value=value, description=description)
            self.session.add(setting)

        await self.session.flush()
        logger.info("Setting %s updated", key)
        return setting

    async def seed_defaults(self) -> int:
        """Insert default settings that do not exist yet"""
        added = 0
        for key, (value, description) in DEFAULT_SETTINGS.items():
            if await self.setting_repo.get(key) is None:
                self.session.add(Setting(key=key, value=value, description=description))
                added += 1
        if added:
            await self.session.flush()
            logger.info("Seeded %s default settings", added)
        return added
