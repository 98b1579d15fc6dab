"""Result export formats for query rows.

Columns are taken from the first row, which is how result grids display
them; rows missing a column export it as empty/NULL.
"""

import csv
import io
from typing import Any


def result_columns(rows: list[dict[str, Any]]) -> list[str]:
    return list(rows[0].keys()) if rows else []


def rows_to_csv(rows: list[dict[str, Any]]) -> str:
    """Render rows as CSV with a header line.

    Args:
        rows: Query result rows

    Returns:
        CSV text, or an empty string for an empty result
    """
    if not rows:
        return ""

    columns = result_columns(rows)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({col: "" if row.get(col) is None else row.get(col) for col in columns})
    return buffer.getvalue().rstrip("\n")


def rows_to_markdown(rows: list[dict[str, Any]]) -> str:
    """Render rows as a Markdown table."""
    if not rows:
        return ""

    columns = result_columns(rows)
    output = [
        f"| {' | '.join(columns)} |",
        f"| {' | '.join('---' for _ in columns)} |",
    ]
    for row in rows:
        cells = [_markdown_cell(row.get(col)) for col in columns]
        output.append(f"| {' | '.join(cells)} |")
    return "\n".join(output)


def _markdown_cell(value: Any) -> str:
    if value is None:
        return "NULL"
    return str(value).replace("|", "\\|").replace("\n", " ")


def _sql_literal(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("'", "''")
    return f"'{text}'"


def rows_to_sql_inserts(rows: list[dict[str, Any]], table_name: str) -> str:
    """Render rows as one INSERT statement per row."""
    if not rows:
        return ""

    columns = result_columns(rows)
    column_list = ", ".join(columns)
    statements = []
    for row in rows:
        values = ", ".join(_sql_literal(row.get(col)) for col in columns)
        statements.append(f"INSERT INTO {table_name} ({column_list}) VALUES ({values});")
    return "\n".join(statements)
