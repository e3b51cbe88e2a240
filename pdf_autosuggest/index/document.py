"""
Document model for the full-text index.

A document maps field names to one or more text values. Adding a value to
a field that already has one makes the field multi-valued; every value is
searchable under the field name.
"""

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class Document:
    """A set of (field, text) values to be indexed together."""
    fields: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def of(cls, title: str, body: str = "") -> "Document":
        """Build a title/body document."""
        doc = cls()
        doc.add_text("title", title)
        doc.add_text("body", body)
        return doc

    def add_text(self, name: str, value: str) -> "Document":
        self.fields.setdefault(name, []).append(str(value))
        return self

    def get_first(self, name: str) -> Optional[str]:
        values = self.fields.get(name)
        return values[0] if values else None

    def get_all(self, name: str) -> List[str]:
        return list(self.fields.get(name, []))

    @property
    def title(self) -> str:
        return self.get_first("title") or ""

    @property
    def body(self) -> str:
        return self.get_first("body") or ""

    def to_json(self) -> str:
        return json.dumps(self.fields, ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> "Document":
        return cls({name: list(values) for name, values in json.loads(raw).items()})
