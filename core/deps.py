from __future__ import annotations

from typing import Annotated, Any, Dict, Mapping

from fastapi import Depends

from auth.session import get_current_session
from core.settings import Settings, get_settings, storage_env


# -----------------------------
# Canonical settings access
# -----------------------------

def get_app_settings() -> Settings:
    """
    Canonical settings resolver. Overridable in tests via
    app.dependency_overrides[get_app_settings].
    """
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def get_storage_env() -> Mapping[str, str]:
    """
    Per-request storage configuration snapshot.
    """
    return storage_env()


StorageEnvDep = Annotated[Mapping[str, str], Depends(get_storage_env)]


# -----------------------------
# Canonical auth deps
# -----------------------------

SessionDep = Annotated[Dict[str, Any], Depends(get_current_session)]
