# health/router.py
from fastapi import APIRouter

from core.deps import SettingsDep, StorageEnvDep
from providers.factory import SUPPORTED_PROVIDERS, detect_provider, validate_provider_config

router = APIRouter(tags=["health"])

FEATURES = ["presign", "session"]


@router.get("/health")
def health(settings: SettingsDep):
    # Keep this super simple and always unauthenticated
    return {"status": "ok", "version": settings.version, "features": FEATURES}


@router.get("/health/storage")
def health_storage(settings: SettingsDep, env: StorageEnvDep):
    """
    Reports:
      - which provider requests will use when they don't name one
      - which required keys are missing for it (names only, never values)
      - the same check for every supported provider
    """
    active = settings.presign.provider or detect_provider(env)
    result = validate_provider_config(active, env)

    return {
        "provider": result.provider,
        "valid": result.valid,
        "missing": result.missing,
        "providers": {
            name: validate_provider_config(name, env).valid
            for name in SUPPORTED_PROVIDERS
        },
    }
