"""SQLModel schemas for Metabase API payloads.

None of these are tables; they validate and carry the JSON returned by the
server. Unknown fields are ignored so newer server versions keep working.
"""

import json
from typing import Any, Optional, Union

from sqlmodel import Field, SQLModel


EMPTY_CELL = "—"


def cell_to_text(value: Any) -> str:
    """Render a raw JSON cell the way the result table shows it."""
    if value is None:
        return EMPTY_CELL
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _root_to_none(data: Any) -> Any:
    # The root collection is reported as the string "root" rather than an id
    if isinstance(data, dict) and data.get("collection_id") == "root":
        data = {**data, "collection_id": None}
    return data


class ApiModel(SQLModel):
    """Base for payload models built from loose server JSON."""

    @classmethod
    def from_api(cls, data: dict[str, Any]):
        return cls.model_validate(data)


class CollectionRef(SQLModel):
    """Collection reference embedded in a question."""

    id: Optional[Union[int, str]] = None
    name: str = ""


class Question(ApiModel):
    """A saved question (card)."""

    id: int
    name: str
    description: Optional[str] = None
    collection_id: Optional[int] = None
    collection: Optional[CollectionRef] = None
    display: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Question":
        return cls.model_validate(_root_to_none(data))

    @property
    def collection_name(self) -> str:
        if self.collection and self.collection.name:
            return self.collection.name
        return EMPTY_CELL


class SearchResultItem(ApiModel):
    """Single entry of /api/search."""

    id: int
    name: str
    model: str
    description: Optional[str] = None
    collection_id: Optional[int] = None
    collection: Optional[CollectionRef] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "SearchResultItem":
        return cls.model_validate(_root_to_none(data))

    def to_question(self) -> Question:
        return Question(
            id=self.id,
            name=self.name,
            description=self.description,
            collection_id=self.collection_id,
            collection=self.collection,
        )


class CollectionItem(ApiModel):
    """A collection as listed by /api/collection."""

    id: Union[int, str]
    name: str
    description: Optional[str] = None
    archived: bool = False
    personal_owner_id: Optional[int] = None

    @property
    def owner_label(self) -> str:
        return "Personal" if self.personal_owner_id is not None else "Shared"


class Database(ApiModel):
    """A connected database."""

    id: int
    name: str
    engine: Optional[str] = None
    description: Optional[str] = None
    is_sample: bool = False


class TableInfo(ApiModel):
    """A table inside a database schema."""

    id: int
    name: str
    display_name: Optional[str] = None
    schema_name: Optional[str] = Field(default=None, alias="schema")
    description: Optional[str] = None
    db_id: Optional[int] = None

    @property
    def label(self) -> str:
        return self.display_name or self.name


class CurrentUser(ApiModel):
    """The user the API key belongs to."""

    id: int
    email: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    common_name: Optional[str] = None
    is_superuser: bool = False

    @property
    def display_name(self) -> str:
        if self.common_name:
            return self.common_name
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.email


class ResultColumn(SQLModel):
    name: str = ""
    display_name: Optional[str] = None


class ResultData(SQLModel):
    cols: list[ResultColumn] = Field(default_factory=list)
    rows: list[list[Any]] = Field(default_factory=list)


class DatasetResponse(ApiModel):
    """Raw response from /api/card/{id}/query and /api/dataset."""

    data: ResultData = Field(default_factory=ResultData)
    row_count: Optional[int] = None
    status: Optional[str] = None
    error: Optional[str] = None


class TabularResult(SQLModel):
    """A query result reduced to column headers and text cells.

    ``source_id`` is the question id for executed questions and the table id
    for previews.
    """

    source_id: int
    name: str
    columns: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)

    @classmethod
    def from_dataset(cls, source_id: int, name: str, response: DatasetResponse) -> "TabularResult":
        columns = [c.display_name or c.name for c in response.data.cols]
        rows = [[cell_to_text(v) for v in row] for row in response.data.rows]
        return cls(source_id=source_id, name=name, columns=columns, rows=rows)

    @property
    def row_count(self) -> int:
        return len(self.rows)
