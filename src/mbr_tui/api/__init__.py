"""Metabase API access for mbr-tui."""

from mbr_tui.api.client import MetabaseClient
from mbr_tui.api.models import (
    CollectionItem,
    CurrentUser,
    Database,
    Question,
    TableInfo,
    TabularResult,
    cell_to_text,
)
from mbr_tui.api.service import ResourceKind, ServiceClient

__all__ = [
    "MetabaseClient",
    "ResourceKind",
    "ServiceClient",
    "CollectionItem",
    "CurrentUser",
    "Database",
    "Question",
    "TableInfo",
    "TabularResult",
    "cell_to_text",
]
