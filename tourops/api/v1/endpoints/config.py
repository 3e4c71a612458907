from typing import List
from fastapi import APIRouter, Query

from tourops.api.v1.schemas import SettingUpdate, SettingOut
from tourops.deps import SessionDep
from tourops.services import ConfigurationService


router = APIRouter()


@router.get("", response_model=List[SettingOut])
async def list_settings(sess: SessionDep):
    service = ConfigurationService(sess)
    return [SettingOut.model_validate(s) for s in await service.list_settings()]


@router.get("/by-keys", response_model=List[SettingOut])
async def list_settings_by_keys(sess: SessionDep, keys: str = Query(..., description="Comma separated keys")):
    service = ConfigurationService(sess)
    settings = await service.get_by_keys(keys.split(","))
    return [SettingOut.model_validate(s) for s in settings]


@router.get("/{key}", response_model=SettingOut)
async def get_setting(key: str, sess: SessionDep):
    service = ConfigurationService(sess)
    return SettingOut.model_validate(await service.get_setting(key))


@router.put("/{key}", response_model=SettingOut)
async def update_setting(key: str, payload: SettingUpdate, sess: SessionDep):
    service = ConfigurationService(sess)
    setting = await service.set_value(key, payload.value, payload.description)
    await sess.commit()
    return SettingOut.model_validate(setting)
