"""Restore-from-backup post hook and the backup service contract."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cluster_addons.exceptions import ConfigurationMissingError, PostHookParamError
from cluster_addons.posthooks.base import PostHook, PostHookParams

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle

ErrorHandler = Callable[[Exception], None]


class RestoreFromBackupParams(BaseModel):
    """Which backup to restore."""

    model_config = ConfigDict(strict=True, extra="forbid", populate_by_name=True, frozen=True)

    backup_name: str = Field(alias="backupName", min_length=1)
    backup_id: int = Field(alias="backupId", ge=0)

    @classmethod
    def from_hook_params(cls, hook: str, params: PostHookParams | None) -> RestoreFromBackupParams:
        """Validate the raw parameter bag handed to a post hook.

        Raises:
            PostHookParamError: If the bag is missing or malformed.
        """
        if params is None:
            raise PostHookParamError(hook, "parameters are required")
        try:
            return cls.model_validate(dict(params))
        except ValidationError as e:
            raise PostHookParamError(hook, str(e)) from e


@runtime_checkable
class BackupService(Protocol):
    """Restores cluster backups."""

    def restore_from_backup(
        self,
        params: RestoreFromBackupParams,
        cluster: ClusterHandle,
        *,
        timeout: int,
        error_handler: ErrorHandler,
    ) -> None:
        """Restore ``params`` onto ``cluster``, waiting at most ``timeout`` seconds."""
        ...


class RestoreFromBackup(PostHook):
    name = "RestoreFromBackup"

    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> None:
        restore = RestoreFromBackupParams.from_hook_params(self.name, params)
        if self._ctx.backups is None:
            raise ConfigurationMissingError("backups")

        log = self._cluster_log(cluster).bind(backup_name=restore.backup_name, backup_id=restore.backup_id)

        def handle_error(error: Exception) -> None:
            log.error("restore_from_backup_error", error=str(error))

        log.info("restoring_from_backup")
        self._ctx.backups.restore_from_backup(
            restore,
            cluster,
            timeout=self.config.disaster_recovery.restore_wait_timeout,
            error_handler=handle_error,
        )
        log.info("restored_from_backup")
