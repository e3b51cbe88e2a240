"""
Query parser translating free-text queries into FTS5 expressions.

Accepts a Lucene-style query language:

- bare terms (``sea``) searched in every default field
- quoted phrases (``"old man"``)
- prefix terms (``fish*``)
- field restriction (``title:sea``, ``title:(old man)``)
- required / excluded clauses (``+sea``, ``-river``, ``NOT river``)
- boolean operators (``old AND man``, ``sea OR ocean``)
- grouping with parentheses
- boosts (``title:sea^2``), which raise the weight of the clause's fields

Malformed input raises QueryParseError; it is never mistaken for a query
that simply has no matches.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

from ..core import get_logger, QueryParseError
from .models import Query

logger = get_logger(__name__)


TOKEN_PATTERN = re.compile(r"""
    (?P<ws>\s+)
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<phrase>"[^"]*")
  | (?P<quote>")
  | (?P<boost>\^[^\s()"]*)
  | (?P<field>\w+:)
  | (?P<colon>:)
  | (?P<plus>\+)
  | (?P<minus>-)
  | (?P<word>[^\s()"^:]+)
""", re.VERBOSE)

KEYWORDS = {"AND": "and", "OR": "or", "NOT": "not"}

WORD_CHAR = re.compile(r"\w")

MAX_DEPTH = 32


class Occur(Enum):
    MUST = "must"
    SHOULD = "should"
    MUST_NOT = "must_not"


@dataclass
class Token:
    kind: str
    value: str
    pos: int


@dataclass
class TermNode:
    field: Optional[str]
    text: str
    prefix: bool = False


@dataclass
class PhraseNode:
    field: Optional[str]
    text: str


@dataclass
class Clause:
    occur: Occur
    node: "Node"
    explicit: bool = False


@dataclass
class BooleanNode:
    clauses: List[Clause]


Node = Union[TermNode, PhraseNode, BooleanNode, None]


class _ParseState:
    """Cursor over the tokens of one query; one instance per parse call."""

    def __init__(self, text: str, tokens: List[Token], weights: Dict[str, float]):
        self.text = text
        self.tokens = tokens
        self.index = 0
        self.weights = weights
        self.terms: List[str] = []

    def peek(self) -> Optional[Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def advance(self) -> Optional[Token]:
        token = self.peek()
        if token is not None:
            self.index += 1
        return token

    def error(self, message: str, pos: int = None) -> QueryParseError:
        if pos is None:
            token = self.peek()
            pos = token.pos if token else len(self.text)
        return QueryParseError(message, query=self.text, position=pos)


class QueryParser:
    """
    Parses query strings against a fixed set of fields.

    Instances hold only configuration and are safe to share between
    threads.
    """

    def __init__(
        self,
        fields: Sequence[str] = ("title", "body"),
        default_fields: Sequence[str] = None,
        field_weights: Dict[str, float] = None,
        conjunction_by_default: bool = False
    ):
        """
        Initialize the parser.

        Args:
            fields: Every searchable field, in index column order.
            default_fields: Fields searched by unqualified terms.
                Defaults to all fields.
            field_weights: Base BM25 weight per field (default 1.0).
            conjunction_by_default: Combine bare clauses with AND instead
                of OR.
        """
        self.fields = list(fields)
        self.default_fields = list(default_fields or fields)
        self.conjunction_by_default = conjunction_by_default

        unknown = [f for f in self.default_fields if f not in self.fields]
        if unknown:
            raise ValueError(f"Unknown default field(s): {unknown}")

        self.field_weights = {name: 1.0 for name in self.fields}
        self.field_weights.update(field_weights or {})

    @classmethod
    def for_index(cls, index, **kwargs) -> "QueryParser":
        return cls(index.schema.field_names, **kwargs)

    def parse(self, text: str) -> Query:
        """
        Plan a query.

        Args:
            text: Raw query string.

        Returns:
            Query ready for the ranker. Blank input yields an empty query.

        Raises:
            QueryParseError: If the query is malformed.
        """
        if text is None or not text.strip():
            return Query(text=text or "", expression=None, field_weights=dict(self.field_weights))

        state = _ParseState(text, self._tokenize(text), dict(self.field_weights))

        node = self._parse_boolean(state, field=None, depth=0)

        leftover = state.peek()
        if leftover is not None:
            raise state.error(f"Unbalanced parenthesis at position {leftover.pos}")

        expression = self._render(node)

        logger.debug(f"Planned query {text!r} as {expression!r}")

        return Query(
            text=text,
            expression=expression,
            field_weights=state.weights,
            terms=tuple(dict.fromkeys(state.terms))
        )

    def _tokenize(self, text: str) -> List[Token]:
        tokens = []
        pos = 0

        while pos < len(text):
            match = TOKEN_PATTERN.match(text, pos)
            kind = match.lastgroup
            value = match.group()

            if kind == "quote":
                raise QueryParseError("Unterminated quoted phrase", query=text, position=pos)
            if kind == "colon":
                raise QueryParseError("Unexpected ':' without a field name", query=text, position=pos)

            if kind == "word" and value in KEYWORDS:
                kind = KEYWORDS[value]

            if kind != "ws":
                tokens.append(Token(kind, value, pos))

            pos = match.end()

        return tokens

    def _parse_boolean(self, state: _ParseState, field: Optional[str], depth: int) -> BooleanNode:
        if depth > MAX_DEPTH:
            raise state.error("Query is nested too deeply")

        clauses: List[Clause] = []

        while True:
            token = state.peek()
            if token is None or token.kind == "rparen":
                break

            conjunction = None
            if token.kind in ("and", "or"):
                if not clauses:
                    raise state.error(f"'{token.value}' has no left operand")
                conjunction = token.kind
                state.advance()
                token = state.peek()
                if token is None or token.kind in ("rparen", "and", "or"):
                    raise state.error(f"'{conjunction.upper()}' has no right operand")

            modifier = None
            if token.kind in ("not", "plus", "minus"):
                modifier = Occur.MUST if token.kind == "plus" else Occur.MUST_NOT
                state.advance()
                following = state.peek()
                if following is None or following.kind in ("rparen", "and", "or"):
                    raise state.error(f"'{token.value}' must be followed by a term", pos=token.pos)

            node = self._parse_atom(state, field, depth)
            self._parse_boost(state, node, field)

            if conjunction == "and":
                previous = clauses[-1]
                if not previous.explicit and previous.occur is Occur.SHOULD:
                    previous.occur = Occur.MUST
            elif conjunction == "or" and self.conjunction_by_default:
                previous = clauses[-1]
                if not previous.explicit and previous.occur is Occur.MUST:
                    previous.occur = Occur.SHOULD

            if modifier is not None:
                occur = modifier
            elif conjunction == "and":
                occur = Occur.MUST
            elif conjunction == "or":
                occur = Occur.SHOULD
            else:
                occur = Occur.MUST if self.conjunction_by_default else Occur.SHOULD

            clauses.append(Clause(occur, node, explicit=modifier is not None))

        return BooleanNode(clauses)

    def _parse_atom(self, state: _ParseState, field: Optional[str], depth: int) -> Node:
        token = state.advance()

        if token.kind == "field":
            name = token.value[:-1]
            if name not in self.fields:
                raise state.error(f"Unknown field '{name}'", pos=token.pos)

            following = state.peek()
            if following is None or following.kind not in ("word", "phrase", "lparen"):
                raise state.error(f"Missing value for field '{name}'", pos=token.pos)

            return self._parse_atom(state, name, depth)

        if token.kind == "lparen":
            node = self._parse_boolean(state, field, depth + 1)
            closing = state.advance()
            if closing is None or closing.kind != "rparen":
                raise state.error("Unbalanced parenthesis", pos=token.pos)
            return node

        if token.kind == "phrase":
            text = token.value[1:-1]
            if not WORD_CHAR.search(text):
                return None
            state.terms.extend(word.lower() for word in text.split())
            return PhraseNode(field, text)

        if token.kind == "word":
            prefix = token.value.endswith("*")
            text = token.value.rstrip("*")
            if not WORD_CHAR.search(text):
                return None
            state.terms.append(text.lower())
            return TermNode(field, text, prefix)

        raise state.error(f"Unexpected '{token.value}'", pos=token.pos)

    def _parse_boost(self, state: _ParseState, node: Node, field: Optional[str]) -> None:
        token = state.peek()
        if token is None or token.kind != "boost":
            return

        state.advance()

        try:
            boost = float(token.value[1:])
        except ValueError:
            raise state.error(f"Invalid boost '{token.value}'", pos=token.pos)

        if not math.isfinite(boost) or boost <= 0:
            raise state.error(f"Boost must be a positive number: '{token.value}'", pos=token.pos)

        if node is None:
            return

        target = getattr(node, "field", None) or field
        for name in ([target] if target else self.default_fields):
            state.weights[name] = max(state.weights[name], boost)

    def _columns(self, field: Optional[str]) -> str:
        if field is not None:
            return "{%s} : " % field
        if self.default_fields == self.fields:
            return ""
        return "{%s} : " % " ".join(self.default_fields)

    def _render(self, node: Node) -> Optional[str]:
        """Render a node as an FTS5 expression; None means it matches nothing."""
        if node is None:
            return None

        if isinstance(node, TermNode):
            return self._columns(node.field) + quote(node.text) + ("*" if node.prefix else "")

        if isinstance(node, PhraseNode):
            return self._columns(node.field) + quote(node.text)

        required, optional, excluded = [], [], []

        for clause in node.clauses:
            rendered = self._render(clause.node)

            if rendered is None:
                if clause.occur is Occur.MUST:
                    return None
                continue

            if clause.occur is Occur.MUST:
                required.append(rendered)
            elif clause.occur is Occur.SHOULD:
                optional.append(rendered)
            else:
                excluded.append(rendered)

        if required:
            positive = " AND ".join(required)
        elif optional:
            positive = " OR ".join(optional)
        else:
            return None

        if excluded:
            return f"(({positive}) NOT ({' OR '.join(excluded)}))"

        return f"({positive})"


def quote(text: str) -> str:
    """Quote text as an FTS5 string."""
    return '"' + text.replace('"', '""') + '"'
