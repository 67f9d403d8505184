from curatarr.models.collection import Collection, CollectionMedia, CollectionLog
from curatarr.models.connection import Connection
from curatarr.models.exclusion import Exclusion
from curatarr.models.rules import Rule, RuleGroup
from curatarr.models.settings import AppSettings

__all__ = [
    "Collection",
    "CollectionMedia",
    "CollectionLog",
    "Connection",
    "Exclusion",
    "Rule",
    "RuleGroup",
    "AppSettings"
]
