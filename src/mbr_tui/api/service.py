"""Resource-level facade over :class:`MetabaseClient`.

The session layer asks for resources by kind and scope; this module maps
those requests onto concrete endpoints and configured limits.
"""

from enum import Enum
from typing import Any, Optional

from mbr_tui.api.client import MetabaseClient
from mbr_tui.api.models import CurrentUser, TabularResult


class ResourceKind(str, Enum):
    """Independently loadable datasets."""

    QUESTIONS = "questions"
    COLLECTIONS = "collections"
    DATABASES = "databases"
    COLLECTION_QUESTIONS = "collection_questions"
    SCHEMAS = "schemas"
    TABLES = "tables"
    QUERY_RESULT = "query_result"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class ServiceClient:
    """Answers ``list(kind, scope)``, ``execute`` and ``authenticate_check``.

    Scopes by kind:

    - ``QUESTIONS``: search term or None
    - ``COLLECTION_QUESTIONS``: collection id
    - ``SCHEMAS``: database id
    - ``TABLES``: ``(database id, schema name)``
    """

    def __init__(
        self,
        client: MetabaseClient,
        question_limit: int = 50,
        collection_question_limit: int = 100,
        preview_limit: int = 100,
    ):
        self.client = client
        self.question_limit = question_limit
        self.collection_question_limit = collection_question_limit
        self.preview_limit = preview_limit

    def authenticate_check(self) -> CurrentUser:
        return self.client.get_current_user()

    def list(self, kind: ResourceKind, scope: Any = None) -> list:
        if kind is ResourceKind.QUESTIONS:
            return self.client.list_questions(search=scope or None, limit=self.question_limit)
        if kind is ResourceKind.COLLECTIONS:
            return self.client.list_collections()
        if kind is ResourceKind.DATABASES:
            return self.client.list_databases()
        if kind is ResourceKind.COLLECTION_QUESTIONS:
            return self.client.list_questions(
                limit=self.collection_question_limit, collection=scope
            )
        if kind is ResourceKind.SCHEMAS:
            return self.client.list_schemas(scope)
        if kind is ResourceKind.TABLES:
            database_id, schema = scope
            return self.client.list_tables(database_id, schema)
        raise ValueError(f"{kind.value} is not a list resource")

    def execute(self, question_id: int, name: Optional[str] = None) -> TabularResult:
        return self.client.execute_question(question_id, name=name)

    def preview(self, database_id: int, table_id: int, name: Optional[str] = None) -> TabularResult:
        return self.client.preview_table(
            database_id, table_id, limit=self.preview_limit, name=name
        )

    def close(self) -> None:
        self.client.close()
