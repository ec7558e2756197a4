# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""Backup bundles: app state, local settings and the full backend dump."""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from shared.errors import BackupValidationError
from shared.local_config import CONTENT_KEYS, SETTINGS_KEYS, LocalConfig

logger = logging.getLogger(__name__)

BACKUP_VERSION = "3.0"
BACKUP_SOURCE = "QuickStor Admin"
STAGING_DOC_PATH = "sites/quickstor-staging"

# Settings block field -> local config key.
SETTINGS_FIELDS = {
    "aiConfig": "quickstor_ai_config",
    "systemPrompt": "quickstor_system_prompt_custom",
    "fillingPrompt": "quickstor_content_filling_prompt",
    "prompts": "quickstor_prompts",
}

# v2.0 localConfig content key -> staging field.
LEGACY_STAGING_FIELDS = {
    "quickstor_pages": "pages",
    "quickstor_navbar": "navbar",
    "quickstor_footer": "footer",
    "quickstor_savedThemes": "savedThemes",
    "quickstor_activeTheme": "theme",
    "quickstor_custom_sections": "customSections",
}


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def backup_filename(now: Optional[datetime] = None) -> str:
    return f"quickstor-full-backup-{_now(now).date().isoformat()}.json"


def create_backup(
    store,
    app_state: dict,
    local_config: LocalConfig,
    now: Optional[datetime] = None,
) -> dict:
    """
    Builds a backup bundle.

    Args:
        store: Document store client exposing ``dump()``.
        app_state: The working (possibly unpublished) staging state.
        local_config: Source of the settings block.
    """
    return {
        "version": BACKUP_VERSION,
        "timestamp": _now(now).isoformat(),
        "source": BACKUP_SOURCE,
        "appState": app_state,
        "settings": local_config.settings_snapshot(),
        "backendData": store.dump(),
    }


def parse_backup(text: str) -> dict:
    try:
        bundle = json.loads(text)
    except ValueError as exc:
        raise BackupValidationError(f"Invalid backup file: {exc}") from exc
    validate_backup(bundle)
    return bundle


def validate_backup(bundle) -> None:
    if not isinstance(bundle, dict) or not isinstance(bundle.get("backendData"), dict):
        raise BackupValidationError("Invalid backup format: missing backend data")


def _settings_to_restore(bundle: dict) -> dict:
    if bundle.get("settings"):
        settings = bundle["settings"]
        return {
            key: settings[field]
            for field, key in SETTINGS_FIELDS.items()
            if settings.get(field)
        }
    legacy = bundle.get("localConfig") or {}
    return {key: legacy[key] for key in SETTINGS_KEYS if legacy.get(key)}


def _staging_state_to_restore(bundle: dict) -> Optional[dict]:
    if bundle.get("appState"):
        logger.info("Restoring from v3.0 appState")
        return bundle["appState"]

    legacy = bundle.get("localConfig")
    if not legacy:
        return None

    logger.info("Restoring from v2.0 localConfig")
    state = {}
    for key, field in LEGACY_STAGING_FIELDS.items():
        raw = legacy.get(key)
        try:
            state[field] = json.loads(raw) if raw else None
        except ValueError as exc:
            raise BackupValidationError(f"Invalid {key} entry in backup: {exc}") from exc
    return state


def restore_backup(
    bundle: dict,
    store,
    local_config: LocalConfig,
    now: Optional[datetime] = None,
) -> dict:
    """
    Restores a bundle: the backend mapping first, then the local settings.

    The staging document is rebuilt from the bundle's app state and stamped
    with a ``RESTORED-<ms>`` version so clients notice the change.

    Raises:
        BackupValidationError: If the bundle lacks ``backendData`` or carries
            unparsable legacy entries. Nothing is written in that case.

    Returns:
        dict: The mapping pushed to the backend.
    """
    validate_backup(bundle)
    settings = _settings_to_restore(bundle)
    staging_state = _staging_state_to_restore(bundle)

    new_backend_data = dict(bundle["backendData"])
    if staging_state:
        restored_at = _now(now)
        new_backend_data[STAGING_DOC_PATH] = {
            **(new_backend_data.get(STAGING_DOC_PATH) or {}),
            **staging_state,
            "version": f"RESTORED-{int(restored_at.timestamp() * 1000)}",
            "lastUpdated": restored_at.isoformat(),
        }

    store.replace_all(new_backend_data)

    for key, value in settings.items():
        local_config.set(key, value)
    # Local working copies would shadow the restored server state.
    for key in CONTENT_KEYS:
        local_config.remove(key)

    return new_backend_data
