from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from curatarr.services.property_catalog import MediaServerType


class SwitchMediaServerRequest(BaseModel):
    """Body of a media server switch request."""
    model_config = ConfigDict(populate_by_name=True)

    target_server_type: MediaServerType = Field(alias="targetServerType")
    migrate_rules: bool = Field(default=False, alias="migrateRules")


class ImportedRulesRequest(BaseModel):
    """Rule definitions from an external rule set."""
    rules: list[dict[str, Any]] = Field(default_factory=list)
