"""
Switching the active media server.

A switch runs as one transaction: optional rule migration, clearing of data
that holds backend item identifiers, and the settings row update. Either all
of it commits or none of it does. Refreshing the settings cache and releasing
the old server's client happen only after the commit, since neither can be
rolled back.

At most one switch runs at a time; a second request while one is in flight is
rejected immediately with SwitchInProgressError rather than queued.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, delete, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from curatarr.config import CREDENTIAL_FIELDS, RuntimeSettings, load_settings_from_db, runtime_settings
from curatarr.database import async_session
from curatarr.models import (
    AppSettings,
    Collection,
    CollectionLog,
    CollectionMedia,
    Connection,
    Exclusion,
    Rule,
    RuleGroup,
)
from curatarr.progress import SwitchProgress, switch_progress
from curatarr.services.media_server import MediaServerFactory, media_server_factory
from curatarr.services.property_catalog import normalize_server_type
from curatarr.services.rule_migration import (
    UNASSIGNED_LIBRARY,
    RuleMigrationPreview,
    RuleMigrationResult,
    RuleMigrationService,
)

logger = logging.getLogger(__name__)

STATUS_OK = "OK"
STATUS_NOK = "NOK"

# Process-wide gate for execute_switch
switch_lock = asyncio.Lock()


class SwitchInProgressError(Exception):
    """Raised when a media server switch is requested while one is running."""

    def __init__(self, message: str = "A media server switch is already in progress"):
        super().__init__(message)


@dataclass
class MediaServerDataCounts:
    collections: int = 0
    collection_media: int = 0
    exclusions: int = 0
    collection_logs: int = 0

    def to_dict(self) -> dict:
        return {
            "collections": self.collections,
            "collectionItems": self.collection_media,
            "exclusions": self.exclusions,
            "logs": self.collection_logs,
        }


@dataclass
class MediaServerSwitchPreview:
    current_server_type: Optional[str]
    target_server_type: str
    data_to_be_cleared: MediaServerDataCounts
    data_to_be_kept: dict
    rule_migration: Optional[RuleMigrationPreview] = None

    def to_dict(self) -> dict:
        data = {
            "currentServerType": self.current_server_type,
            "targetServerType": self.target_server_type,
            "dataToBeCleared": self.data_to_be_cleared.to_dict(),
            "dataToBeKept": self.data_to_be_kept,
        }
        if self.rule_migration is not None:
            data["ruleMigration"] = self.rule_migration.to_dict()
        return data


@dataclass
class SwitchMediaServerResponse:
    status: str
    code: int
    message: str
    cleared_data: Optional[MediaServerDataCounts] = None
    rule_migration: Optional[RuleMigrationResult] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> dict:
        data = {"status": self.status, "code": self.code, "message": self.message}
        if self.cleared_data is not None:
            data["clearedData"] = self.cleared_data.to_dict()
        if self.rule_migration is not None:
            data["ruleMigration"] = self.rule_migration.to_dict()
        return data


def build_switch_success_message(
    current: Optional[str],
    target: str,
    migrate_rules: bool,
    rule_result: Optional[RuleMigrationResult],
) -> str:
    if not current:
        return f"Successfully set {target} as media server"

    if not migrate_rules or rule_result is None:
        return f"Successfully switched from {current} to {target}"

    skipped = ""
    if rule_result.skipped_rules > 0:
        skipped = f" ({rule_result.skipped_rules} skipped due to incompatible properties)"

    return (
        f"Successfully switched from {current} to {target}. "
        f"{rule_result.migrated_rules} of {rule_result.total_rules} rules migrated{skipped}. "
        f"Rule groups have been deactivated and need library re-assignment."
    )


class MediaServerSwitchService:
    """Previews and executes media server switches."""

    def __init__(
        self,
        session_factory=None,
        rule_migration: Optional[RuleMigrationService] = None,
        config: Optional[RuntimeSettings] = None,
        factory: Optional[MediaServerFactory] = None,
        reload_settings=None,
        progress: Optional[SwitchProgress] = None,
        lock: Optional[asyncio.Lock] = None,
    ):
        self.session_factory = session_factory or async_session
        self.rule_migration = rule_migration or RuleMigrationService(self.session_factory)
        self.config = config or runtime_settings
        self.factory = factory or media_server_factory
        self.reload_settings = reload_settings or (lambda: load_settings_from_db(self.session_factory, self.config))
        self.progress = progress or switch_progress
        self._lock = lock or switch_lock

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    async def preview_switch(self, target_server_type) -> MediaServerSwitchPreview:
        """Preview what a switch would clear and migrate. Never writes."""
        target = normalize_server_type(target_server_type)
        current = self.config.media_server_type

        async with self.session_factory() as session:
            counts = await self._count_data(session)
            kept = await self._data_to_be_kept(session)

            rule_preview = None
            if current:
                rule_preview = await self.rule_migration.preview_migration(current, target, session=session)

        return MediaServerSwitchPreview(
            current_server_type=current,
            target_server_type=target,
            data_to_be_cleared=counts,
            data_to_be_kept=kept,
            rule_migration=rule_preview,
        )

    async def execute_switch(self, target_server_type, migrate_rules: bool = False) -> SwitchMediaServerResponse:
        """
        Switch the active media server.

        Returns a NOK response when already on the target or when the switch
        failed and was rolled back. Raises SwitchInProgressError when another
        switch holds the gate.
        """
        target = normalize_server_type(target_server_type)
        current = self.config.media_server_type

        if current and current == target:
            return SwitchMediaServerResponse(
                status=STATUS_NOK,
                code=0,
                message=f"Already using {target} as media server",
            )

        if self._lock.locked():
            logger.warning(f"Rejected switch to {target}: another switch is in progress")
            raise SwitchInProgressError()

        async with self._lock:
            self.progress.start(current, target, migrate_rules)
            response = SwitchMediaServerResponse(status=STATUS_NOK, code=0, message="Media server switch did not complete")
            try:
                response = await self._switch(current, target, migrate_rules)
            finally:
                self.progress.finish(response.status, response.message)
            return response

    async def _switch(self, current: Optional[str], target: str, migrate_rules: bool) -> SwitchMediaServerResponse:
        if current:
            suffix = " (with rule migration)" if migrate_rules else ""
            logger.info(f"Switching media server from {current} to {target}{suffix}")
        else:
            logger.info(f"Setting initial media server to {target}")

        rule_result = None
        try:
            async with self.session_factory() as session:
                cleared = await self._count_data(session)

            async with self.session_factory() as session:
                try:
                    if migrate_rules and current:
                        logger.info("Attempting rule migration...")
                        rule_result = await self.rule_migration.migrate_rules(
                            current, target, skip_incompatible=True, session=session
                        )

                    await self._clear_media_server_data(session, migrate_rules, target, cleared)
                    await self._update_media_server_type(session, target, current)
                    await session.commit()
                except Exception:
                    await session.rollback()
                    logger.error("Media server switch failed, transaction rolled back")
                    raise
        except Exception as e:
            logger.exception(f"Error switching media server: {e}")
            return SwitchMediaServerResponse(
                status=STATUS_NOK,
                code=0,
                message="Failed to switch media server. Please check your configuration and try again.",
            )

        await self._after_commit(current)
        logger.info(f"Successfully switched media server to {target}")

        return SwitchMediaServerResponse(
            status=STATUS_OK,
            code=1,
            message=build_switch_success_message(current, target, migrate_rules, rule_result),
            cleared_data=cleared,
            rule_migration=rule_result,
        )

    async def _after_commit(self, current: Optional[str]):
        try:
            await self.reload_settings()
        except Exception:
            logger.exception(
                "Media server switch was committed but reloading settings failed; "
                "the running process may use stale settings until the next reload or restart"
            )

        if not current:
            return

        try:
            self.factory.uninitialize(current)
        except Exception:
            logger.exception(f"Media server switch was committed but releasing the {current} client failed")

    async def _clear_media_server_data(
        self,
        session: AsyncSession,
        migrate_rules: bool,
        target: str,
        counts: MediaServerDataCounts,
    ):
        # Children before parents
        await session.execute(delete(CollectionMedia))
        logger.info(f"Cleared {counts.collection_media} collection media items")

        await session.execute(delete(CollectionLog))
        logger.info(f"Cleared {counts.collection_logs} collection logs")

        await session.execute(delete(Exclusion))
        logger.info(f"Cleared {counts.exclusions} exclusions")

        if not migrate_rules:
            await session.execute(delete(Rule))
            await session.execute(delete(RuleGroup))
            logger.info("Cleared rule groups and rules")

            await session.execute(delete(Collection))
            logger.info(f"Cleared {counts.collections} collections")
            return

        # Library IDs differ between servers; groups stay inactive until re-assigned
        await session.execute(
            update(RuleGroup).values(library_id=UNASSIGNED_LIBRARY, is_active=False)
        )
        await session.execute(
            update(Collection).values(
                media_server_id=None,
                media_server_type=target,
                library_id=UNASSIGNED_LIBRARY,
            )
        )
        logger.info(f"Preserved {counts.collections} collections, reset media server references")

    async def _update_media_server_type(self, session: AsyncSession, target: str, current: Optional[str]):
        result = await session.execute(select(AppSettings))
        app_settings = result.scalar_one_or_none()

        if not app_settings:
            app_settings = AppSettings()
            session.add(app_settings)

        app_settings.media_server_type = target

        # Only the active server may have credentials
        for name in CREDENTIAL_FIELDS.get(current or "", ()):
            setattr(app_settings, name, None)

        await session.flush()

    async def _count_data(self, session: AsyncSession) -> MediaServerDataCounts:
        async def count(model) -> int:
            return (await session.execute(select(func.count(model.id)))).scalar() or 0

        return MediaServerDataCounts(
            collections=await count(Collection),
            collection_media=await count(CollectionMedia),
            exclusions=await count(Exclusion),
            collection_logs=await count(CollectionLog),
        )

    async def _data_to_be_kept(self, session: AsyncSession) -> dict:
        result = await session.execute(
            select(Connection.service, func.count(Connection.id)).group_by(Connection.service)
        )
        arr_counts = dict(result.all())
        return {
            "generalSettings": True,
            "radarrSettings": arr_counts.get("radarr", 0),
            "sonarrSettings": arr_counts.get("sonarr", 0),
            "seerrSettings": self.config.seerr_configured(),
            "tautulliSettings": self.config.tautulli_configured(),
            "notificationSettings": True,
        }


# Global service instance; shares the process-wide switch lock
media_server_switch_service = MediaServerSwitchService()
