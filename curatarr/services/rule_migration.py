"""
Rule migration between media servers.

Rules reference properties as ``[application_id, property_id]`` operands in
``firstVal`` and (optionally) ``lastVal``. Migrating a rule rewrites every
operand that names the source application to the target application,
remapping the property ID where the target knows the property under another
ID. Operands naming other applications (Radarr, Sonarr, ...) are untouched.
"""
import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select, delete, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from curatarr.database import async_session
from curatarr.models import Rule, RuleGroup
from curatarr.services.compatibility import PropertyCompatibility, get_property_compatibility
from curatarr.services.property_catalog import (
    get_application_id,
    get_property_name,
    has_property,
    is_media_server_application,
)

logger = logging.getLogger(__name__)

OPERAND_KEYS = ("firstVal", "lastVal")
UNASSIGNED_LIBRARY = ""


class RuleMigrationError(Exception):
    """Raised when an incompatible rule is found and skipping is disabled."""


@dataclass
class RuleAnalysis:
    can_migrate: bool
    reason: str = ""
    property_name: Optional[str] = None


@dataclass
class SkippedRuleDetail:
    group_id: Optional[int]
    group_name: str
    rule_id: Optional[int]
    reason: str
    property_name: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "groupId": self.group_id,
            "groupName": self.group_name,
            "ruleId": self.rule_id,
            "reason": self.reason,
        }
        if self.property_name is not None:
            data["propertyName"] = self.property_name
        return data


@dataclass
class RuleMigrationPreview:
    total_groups: int = 0
    total_rules: int = 0
    migratable_rules: int = 0
    skipped_rules: int = 0
    skipped_details: list[SkippedRuleDetail] = field(default_factory=list)

    @property
    def can_migrate(self) -> bool:
        return self.migratable_rules > 0

    def to_dict(self) -> dict:
        return {
            "canMigrate": self.can_migrate,
            "totalGroups": self.total_groups,
            "totalRules": self.total_rules,
            "migratableRules": self.migratable_rules,
            "skippedRules": self.skipped_rules,
            "skippedDetails": [d.to_dict() for d in self.skipped_details],
        }


@dataclass
class RuleMigrationResult:
    total_rules: int = 0
    migrated_rules: int = 0
    skipped_rules: int = 0
    fully_migrated_groups: int = 0
    partially_migrated_groups: int = 0
    skipped_groups: int = 0
    skipped_details: list[SkippedRuleDetail] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "totalRules": self.total_rules,
            "migratedRules": self.migrated_rules,
            "skippedRules": self.skipped_rules,
            "fullyMigratedGroups": self.fully_migrated_groups,
            "partiallyMigratedGroups": self.partially_migrated_groups,
            "skippedGroups": self.skipped_groups,
            "skippedDetails": [d.to_dict() for d in self.skipped_details],
        }


@dataclass
class ImportedRuleMigration:
    rules: list[dict]
    migrated_rules: int = 0
    skipped_rules: int = 0

    def to_dict(self) -> dict:
        return {
            "rules": self.rules,
            "migratedRules": self.migrated_rules,
            "skippedRules": self.skipped_rules,
        }


def parse_operand(rule: dict, key: str) -> Optional[tuple[int, int]]:
    """Return the ``(application, property)`` pair stored under ``key``.

    Raises ValueError when the operand is present but not a pair of integers.
    """
    value = rule.get(key)
    if value is None:
        return None
    if (
        not isinstance(value, (list, tuple))
        or len(value) != 2
        or not all(isinstance(v, int) and not isinstance(v, bool) for v in value)
    ):
        raise ValueError(f"{key} must be an [application, property] pair, got {value!r}")
    return value[0], value[1]


def analyze_rule_definition(
    rule: dict,
    source_app: int,
    compat: PropertyCompatibility,
) -> RuleAnalysis:
    """Check whether a rule can be migrated away from ``source_app``.

    Remapped properties are compatible. Property IDs missing from the source
    catalog or in the incompatible set are not. A rule with no operand on the
    source application is left untouched and therefore always migratable.
    """
    if not isinstance(rule, dict):
        return RuleAnalysis(False, f"Invalid rule definition: expected an object, got {type(rule).__name__}")

    try:
        operands = [(key, parse_operand(rule, key)) for key in OPERAND_KEYS]
    except ValueError as e:
        return RuleAnalysis(False, f"Invalid rule definition: {e}")

    for key, operand in operands:
        if operand is None or operand[0] != source_app:
            continue
        property_id = operand[1]
        where = "" if key == "firstVal" else " in comparison"
        if not has_property(source_app, property_id):
            return RuleAnalysis(False, f"Uses unknown property ID {property_id}{where}")
        if property_id in compat.incompatible:
            return RuleAnalysis(
                False,
                f"Uses property ID {property_id}{where} which is not available in target server",
                get_property_name(source_app, property_id),
            )

    return RuleAnalysis(True)


def analyze_rule_json(rule_json: str, source_app: int, compat: PropertyCompatibility) -> RuleAnalysis:
    try:
        rule = json.loads(rule_json)
    except (TypeError, ValueError) as e:
        return RuleAnalysis(False, f"Invalid rule JSON: {e}")
    return analyze_rule_definition(rule, source_app, compat)


def migrate_rule_definition(
    rule: dict,
    source_app: int,
    target_app: int,
    compat: PropertyCompatibility,
) -> dict:
    """Return a copy of ``rule`` with its source operands rewritten to the target."""
    migrated = copy.deepcopy(rule)
    for key in OPERAND_KEYS:
        operand = parse_operand(migrated, key)
        if operand is not None and operand[0] == source_app:
            migrated[key] = [int(target_app), compat.map_property(operand[1])]
    return migrated


def migrate_rule_json(
    rule_json: str,
    source_app: int,
    target_app: int,
    compat: PropertyCompatibility,
) -> str:
    """Rewrite a serialized rule. Rules without source operands come back unchanged."""
    rule = json.loads(rule_json)
    migrated = migrate_rule_definition(rule, source_app, target_app, compat)
    if migrated == rule:
        return rule_json
    return json.dumps(migrated)


def detect_rule_source_app(rule: dict) -> Optional[int]:
    """Media server application a rule was authored for, if any.

    Returns None when the first operand is not a media server application or
    the last operand names a different, non media server application.
    Raises ValueError when the operands name two different media servers or
    are malformed.
    """
    first = parse_operand(rule, "firstVal")
    last = parse_operand(rule, "lastVal")

    if first is None or not is_media_server_application(first[0]):
        return None

    if last is not None and last[0] != first[0]:
        if is_media_server_application(last[0]):
            raise ValueError(
                f"Rule operands reference two media servers ({first[0]} and {last[0]})"
            )
        return None

    return first[0]


class RuleMigrationService:
    """Previews and applies rule migrations between media servers."""

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or async_session

    async def _load_rules(self, session: AsyncSession):
        result = await session.execute(
            select(Rule.id, Rule.rule_group_id, Rule.rule_json, RuleGroup.name.label("group_name"))
            .join(RuleGroup, Rule.rule_group_id == RuleGroup.id, isouter=True)
            .order_by(Rule.id)
        )
        return result.all()

    async def preview_migration(self, from_server, to_server, session: Optional[AsyncSession] = None) -> RuleMigrationPreview:
        """Preview what migrating rules would do. Read-only."""
        if session is None:
            async with self.session_factory() as own_session:
                return await self.preview_migration(from_server, to_server, own_session)

        source_app = get_application_id(from_server)
        target_app = get_application_id(to_server)
        compat = get_property_compatibility(source_app, target_app)

        rows = await self._load_rules(session)
        total_groups = (await session.execute(select(func.count(RuleGroup.id)))).scalar() or 0

        preview = RuleMigrationPreview(total_groups=total_groups, total_rules=len(rows))
        for rule_id, group_id, rule_json, group_name in rows:
            analysis = analyze_rule_json(rule_json, source_app, compat)
            if analysis.can_migrate:
                preview.migratable_rules += 1
            else:
                preview.skipped_rules += 1
                preview.skipped_details.append(SkippedRuleDetail(
                    group_id=group_id,
                    group_name=group_name or "Unknown",
                    rule_id=rule_id,
                    reason=analysis.reason,
                    property_name=analysis.property_name,
                ))

        return preview

    async def migrate_rules(
        self,
        from_server,
        to_server,
        skip_incompatible: bool = True,
        session: Optional[AsyncSession] = None,
    ) -> RuleMigrationResult:
        """
        Migrate all persisted rules from one media server to another.

        With ``skip_incompatible`` incompatible rules are deleted and reported;
        without it a RuleMigrationError is raised before anything is written.
        When ``session`` is given all writes happen in the caller's transaction
        and nothing is committed here.
        """
        if session is None:
            async with self.session_factory() as own_session:
                result = await self._migrate(from_server, to_server, skip_incompatible, own_session)
                await own_session.commit()
                return result

        return await self._migrate(from_server, to_server, skip_incompatible, session)

    async def _migrate(self, from_server, to_server, skip_incompatible: bool, session: AsyncSession) -> RuleMigrationResult:
        source_app = get_application_id(from_server)
        target_app = get_application_id(to_server)
        compat = get_property_compatibility(source_app, target_app)

        logger.info(
            f"Starting rule migration from {from_server} (app {source_app}) "
            f"to {to_server} (app {target_app})"
        )
        if compat.remapping:
            logger.info("Property remapping: " + ", ".join(
                f"{get_property_name(source_app, s)} ({s})->{get_property_name(target_app, t)} ({t})"
                for s, t in compat.remapping.items()
            ))

        rows = await self._load_rules(session)
        analyses = [(row, analyze_rule_json(row.rule_json, source_app, compat)) for row in rows]

        if not skip_incompatible:
            for row, analysis in analyses:
                if not analysis.can_migrate:
                    raise RuleMigrationError(
                        f'Rule {row.id} in group "{row.group_name or "Unknown"}" cannot be migrated: {analysis.reason}'
                    )

        result = RuleMigrationResult(total_rules=len(rows))
        # group id -> [migrated, skipped]
        group_status: dict[int, list[int]] = {}

        for row, analysis in analyses:
            status = group_status.setdefault(row.rule_group_id, [0, 0])

            if not analysis.can_migrate:
                result.skipped_rules += 1
                status[1] += 1
                result.skipped_details.append(SkippedRuleDetail(
                    group_id=row.rule_group_id,
                    group_name=row.group_name or "Unknown",
                    rule_id=row.id,
                    reason=analysis.reason,
                    property_name=analysis.property_name,
                ))
                suffix = f" (property: {analysis.property_name})" if analysis.property_name else ""
                logger.warning(f"Deleting incompatible rule {row.id}: {analysis.reason}{suffix}")
                await session.execute(delete(Rule).where(Rule.id == row.id))
                continue

            migrated_json = migrate_rule_json(row.rule_json, source_app, target_app, compat)
            if migrated_json != row.rule_json:
                await session.execute(
                    update(Rule).where(Rule.id == row.id).values(rule_json=migrated_json)
                )
                logger.debug(f"Migrated rule {row.id}")
            result.migrated_rules += 1
            status[0] += 1

        for group_id, (migrated, skipped) in group_status.items():
            if skipped == 0:
                result.fully_migrated_groups += 1
            elif migrated == 0:
                result.skipped_groups += 1
                await session.execute(delete(Rule).where(Rule.rule_group_id == group_id))
                await session.execute(delete(RuleGroup).where(RuleGroup.id == group_id))
                logger.info(f"Deleted rule group {group_id} - all {skipped} rules were incompatible")
            else:
                result.partially_migrated_groups += 1
                await session.execute(
                    update(RuleGroup)
                    .where(RuleGroup.id == group_id)
                    .values(is_active=False, library_id=UNASSIGNED_LIBRARY)
                )
                logger.info(
                    f"Deactivated rule group {group_id} - {skipped} of {migrated + skipped} rules were incompatible"
                )

        logger.info(
            f"Rule migration complete: {result.migrated_rules}/{result.total_rules} rules migrated, "
            f"{result.fully_migrated_groups} groups fully migrated, "
            f"{result.partially_migrated_groups} partially migrated, "
            f"{result.skipped_groups} skipped"
        )
        return result

    def migrate_imported_rules(self, rules: list[dict], to_server) -> ImportedRuleMigration:
        """
        Migrate in-memory rule definitions (e.g. an imported rule set) to ``to_server``.

        Rules not clearly authored for a media server, or already on the target,
        pass through unchanged. Rules using properties the target lacks, and rules
        whose operands disagree on the media server, are dropped.
        """
        if not rules:
            return ImportedRuleMigration(rules=list(rules or []))

        target_app = get_application_id(to_server)
        outcome = ImportedRuleMigration(rules=[])

        for rule in rules:
            try:
                source_app = detect_rule_source_app(rule) if isinstance(rule, dict) else None
            except ValueError as e:
                outcome.skipped_rules += 1
                logger.warning(f"Skipping imported rule migration: {e}")
                continue

            if source_app is None or source_app == target_app:
                outcome.rules.append(rule)
                continue

            compat = get_property_compatibility(source_app, target_app)
            analysis = analyze_rule_definition(rule, source_app, compat)
            if not analysis.can_migrate:
                outcome.skipped_rules += 1
                suffix = f" (property: {analysis.property_name})" if analysis.property_name else ""
                logger.warning(f"Skipping imported rule migration: {analysis.reason}{suffix}")
                continue

            outcome.migrated_rules += 1
            outcome.rules.append(migrate_rule_definition(rule, source_app, target_app, compat))

        return outcome
