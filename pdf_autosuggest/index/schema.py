"""
Index schema definitions.

The schema is fixed at creation time and persisted in the index metadata;
an existing index whose stored schema differs is refused at open.
"""

import json
from dataclasses import asdict, dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class FieldSpec:
    """A named text field."""
    name: str
    indexed: bool = True
    stored: bool = True


@dataclass(frozen=True)
class Schema:
    """Ordered collection of text fields."""
    fields: Tuple[FieldSpec, ...]

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def has_field(self, name: str) -> bool:
        return name in self.field_names

    def column_index(self, name: str) -> int:
        """Position of a field among the full-text columns."""
        return self.field_names.index(name)

    def to_json(self) -> str:
        return json.dumps([asdict(f) for f in self.fields])

    @classmethod
    def from_json(cls, raw: str) -> "Schema":
        return cls(tuple(FieldSpec(**item) for item in json.loads(raw)))


# Body is stored as well: previews are generated from it.
DEFAULT_SCHEMA = Schema((
    FieldSpec("title", indexed=True, stored=True),
    FieldSpec("body", indexed=True, stored=True),
))

# Separator between values of a multi-valued field in the full-text column
VALUE_SEPARATOR = "\n"

META_TABLE = """
CREATE TABLE IF NOT EXISTS index_meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


def documents_table_sql(schema: Schema) -> str:
    columns = ",\n".join(f"    {name} TEXT NOT NULL DEFAULT ''" for name in schema.field_names)
    return f"""
CREATE TABLE IF NOT EXISTS documents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
{columns},
    stored TEXT NOT NULL,
    generation INTEGER NOT NULL,
    indexed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""


def fts_table_sql(schema: Schema, tokenizer: str) -> str:
    columns = ", ".join(schema.field_names)
    return f"""
CREATE VIRTUAL TABLE IF NOT EXISTS documents_fts USING fts5(
    {columns},
    content='documents',
    content_rowid='id',
    tokenize='{tokenizer}'
)
"""


def fts_trigger_sql(schema: Schema) -> str:
    columns = ", ".join(schema.field_names)
    values = ", ".join(f"new.{name}" for name in schema.field_names)
    return f"""
CREATE TRIGGER IF NOT EXISTS documents_ai AFTER INSERT ON documents BEGIN
    INSERT INTO documents_fts(rowid, {columns})
    VALUES (new.id, {values});
END
"""


def insert_document_sql(schema: Schema) -> str:
    columns = ", ".join(schema.field_names)
    placeholders = ", ".join("?" for _ in schema.field_names)
    return (
        f"INSERT INTO documents ({columns}, stored, generation) "
        f"VALUES ({placeholders}, ?, ?)"
    )
