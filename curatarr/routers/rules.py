from fastapi import APIRouter, Depends, HTTPException

from curatarr.config import runtime_settings
from curatarr.schemas import ImportedRulesRequest
from curatarr.services.rule_migration import RuleMigrationService

router = APIRouter()


def get_rule_migration_service() -> RuleMigrationService:
    return RuleMigrationService()


@router.post("/migrate-import")
async def migrate_imported_rules(
    payload: ImportedRulesRequest,
    service: RuleMigrationService = Depends(get_rule_migration_service)
):
    """Migrate imported rule definitions to the active media server."""
    server_type = runtime_settings.media_server_type
    if not server_type:
        raise HTTPException(status_code=400, detail="Media server not configured")

    outcome = service.migrate_imported_rules(payload.rules, server_type)
    return outcome.to_dict()
