"""Filter expression language shared by every record store.

Filters look like ``user_email = "a@b.org" && (status = "pending" || status = "in_progress")``:
top-level conditions joined by ``&&``, each either a single comparison or a
parenthesized group of comparisons joined by ``||``. Supported operators are
``= != > < >= <= ~`` where ``~`` is a case-insensitive substring match. Values are quoted
literals or bare words such as ``true`` and ``42``. Double-quoted literals use JSON
string escapes, which is what ``sanitize_param`` writes.

Each store renders the parsed form into its own query dialect (SQL for SQLite,
formulas for Airtable).
"""

import json
import re
from dataclasses import dataclass
from typing import Any


FilterValue = str | int | float | bool | None

_COMPARISON_RE = re.compile(
    r"""^(\w+)\s*(!=|>=|<=|=|>|<|~)\s*(?:"((?:[^"\\]|\\.)*)"|'((?:[^'\\]|\\.)*)'|([\w.\-]+))$"""
)
_SINGLE_QUOTE_ESCAPE_RE = re.compile(r"\\(.)")

_SQL_OPERATORS = {
    "=": "=",
    "!=": "!=",
    ">": ">",
    "<": "<",
    ">=": ">=",
    "<=": "<=",
    "~": "LIKE",
}


@dataclass(frozen=True)
class Comparison:
    """A single ``field op value`` term."""

    field: str
    op: str
    value: FilterValue


# Outer list is AND-ed, inner lists are OR-ed.
ParsedFilter = list[list[Comparison]]


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding inside a double-quoted filter literal."""
    return json.dumps(str(value))[1:-1]


def _parse_value(value: str) -> FilterValue:
    """Parse a literal into the Python type used for comparison."""
    if value.isdigit():
        return int(value)
    if value.replace(".", "", 1).isdigit():
        return float(value)

    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False

    return value


def _parse_comparison(text: str) -> Comparison:
    """Parse a single comparison expression."""
    match = _COMPARISON_RE.match(text.strip())
    if not match:
        msg = f"Invalid filter syntax: {text}"
        raise ValueError(msg)

    field, op, double_quoted, single_quoted, bare = match.groups()
    if double_quoted is not None:
        try:
            raw_value = json.loads(f'"{double_quoted}"')
        except json.JSONDecodeError as e:
            msg = f"Invalid filter syntax: {text}"
            raise ValueError(msg) from e
    elif single_quoted is not None:
        raw_value = _SINGLE_QUOTE_ESCAPE_RE.sub(r"\1", single_quoted)
    else:
        raw_value = bare
    value: FilterValue = raw_value if op == "~" else _parse_value(raw_value)
    return Comparison(field=field, op=op, value=value)


def _split_top_level(filter_query: str, separator: str) -> list[str]:
    """Split on ``separator`` outside quoted literals and parenthesized groups."""
    parts = []
    current = ""
    paren_depth = 0
    quote: str | None = None
    escaped = False

    for char in filter_query:
        current += char

        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in "\"'":
            quote = char
        elif char == "(":
            paren_depth += 1
        elif char == ")":
            paren_depth -= 1
        elif paren_depth == 0 and current.endswith(separator):
            parts.append(current[: -len(separator)].strip())
            current = ""

    if current.strip():
        parts.append(current.strip())

    return parts


def parse_filter(filter_query: str) -> ParsedFilter:
    """Parse a filter expression into AND-ed groups of OR-ed comparisons.

    Args:
        filter_query: Filter expression, may be empty

    Returns:
        Parsed filter; empty when the query is empty

    Raises:
        ValueError: If the expression is malformed
    """
    if not filter_query or not filter_query.strip():
        return []

    groups: ParsedFilter = []
    for raw_part in _split_top_level(filter_query, "&&"):
        part = raw_part.strip()
        if part.startswith("(") and part.endswith(")"):
            groups.append([_parse_comparison(p) for p in _split_top_level(part[1:-1], "||")])
        else:
            groups.append([_parse_comparison(part)])

    return groups


def to_sql(parsed: ParsedFilter) -> tuple[str, list[FilterValue]]:
    """Render a parsed filter as a SQL WHERE clause with positional parameters."""
    conditions = []
    params: list[FilterValue] = []

    for group in parsed:
        group_conditions = []
        for comparison in group:
            sql_op = _SQL_OPERATORS[comparison.op]
            if sql_op == "LIKE":
                escaped = str(comparison.value).replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
                group_conditions.append(f"{comparison.field} LIKE ? ESCAPE '\\'")
                params.append(f"%{escaped}%")
            else:
                group_conditions.append(f"{comparison.field} {sql_op} ?")
                params.append(comparison.value)

        if len(group_conditions) == 1:
            conditions.append(group_conditions[0])
        else:
            conditions.append(f"({' OR '.join(group_conditions)})")

    return " AND ".join(conditions), params


def _formula_literal(value: FilterValue) -> str:
    if value is True:
        return "TRUE()"
    if value is False:
        return "FALSE()"
    if isinstance(value, int | float):
        return str(value)
    return "'" + str(value).replace("\\", "\\\\").replace("'", "\\'") + "'"


def _formula_comparison(comparison: Comparison) -> str:
    field_ref = "{" + comparison.field + "}"
    if comparison.op == "~":
        return f"FIND(LOWER({_formula_literal(comparison.value)}), LOWER({field_ref} & ''))"
    if comparison.op == "=" and comparison.value is False:
        # Airtable leaves unchecked boxes empty
        return f"NOT({field_ref})"
    op = "!=" if comparison.op == "!=" else comparison.op
    return f"{field_ref} {op} {_formula_literal(comparison.value)}"


def to_airtable_formula(parsed: ParsedFilter) -> str:
    """Render a parsed filter as an Airtable ``filterByFormula`` expression."""
    terms = []
    for group in parsed:
        rendered = [_formula_comparison(c) for c in group]
        terms.append(rendered[0] if len(rendered) == 1 else f"OR({', '.join(rendered)})")

    if not terms:
        return ""
    if len(terms) == 1:
        return terms[0]
    return f"AND({', '.join(terms)})"


def _compare(actual: Any, comparison: Comparison) -> bool:  # noqa: PLR0911
    expected = comparison.value
    op = comparison.op

    if op == "~":
        return str(expected).lower() in str(actual if actual is not None else "").lower()

    if isinstance(expected, bool):
        actual_bool = bool(actual)
        return actual_bool == expected if op == "=" else actual_bool != expected

    if op == "=":
        return actual == expected or (actual is not None and str(actual) == str(expected))
    if op == "!=":
        return not (actual == expected or (actual is not None and str(actual) == str(expected)))

    if actual is None:
        return False

    left: Any = actual
    right: Any = expected
    if isinstance(expected, int | float) and not isinstance(actual, int | float):
        right = str(expected)
        left = str(actual)
    elif isinstance(actual, int | float) and not isinstance(expected, int | float):
        left = str(actual)

    if op == ">":
        return left > right
    if op == "<":
        return left < right
    if op == ">=":
        return left >= right
    return left <= right


def matches(parsed: ParsedFilter, record: dict[str, Any]) -> bool:
    """Evaluate a parsed filter against a plain record dictionary."""
    return all(any(_compare(record.get(c.field), c) for c in group) for group in parsed)
