"""Tool descriptions for the DBBase MCP server."""

from dbbase.constants import DEFAULT_ROW_LIMIT


class ToolDescriptions:
    """Centralized management of tool names, descriptions and input schemas."""

    GET_SCHEMA = "get_schema"
    RUN_READ_QUERY = "run_read_query"
    INSPECT_TABLE = "inspect_table"

    @classmethod
    def get_schema_description(cls) -> str:
        """Get the description for the get_schema tool."""
        return (
            "Returns the full database structure (tables, columns, types and comments). "
            "ALWAYS use this tool before writing or explaining queries so that table and "
            "column names are known to exist."
        )

    @classmethod
    def get_run_read_query_description(cls) -> str:
        """Get the description for the run_read_query tool."""
        return (
            f"Runs read-only SQL (SELECT or WITH). Results are limited to {DEFAULT_ROW_LIMIT} "
            "rows automatically unless the query sets its own LIMIT. Any other statement "
            "(INSERT/UPDATE/DELETE/DDL) is rejected. Use it to check data or answer questions "
            "about table contents."
        )

    @classmethod
    def get_inspect_table_description(cls) -> str:
        """Get the description for the inspect_table tool."""
        return (
            "Returns the details of one table: primary and foreign keys, indexes, constraints "
            "and, where the backend provides it, the CREATE statement. Use it to understand "
            "relationships and integrity rules before writing complex queries."
        )

    @classmethod
    def get_sql_description(cls) -> str:
        """Get the sql parameter description."""
        return "SELECT query (e.g. SELECT count(*) FROM orders)"

    @classmethod
    def get_table_name_description(cls) -> str:
        """Get the tableName parameter description."""
        return "Exact name of the table to inspect"

    @classmethod
    def input_schemas(cls) -> dict[str, dict]:
        """JSON schemas for every tool, keyed by tool name."""
        return {
            cls.GET_SCHEMA: {"type": "object", "properties": {}},
            cls.RUN_READ_QUERY: {
                "type": "object",
                "properties": {
                    "sql": {"type": "string", "description": cls.get_sql_description()},
                },
                "required": ["sql"],
            },
            cls.INSPECT_TABLE: {
                "type": "object",
                "properties": {
                    "tableName": {
                        "type": "string",
                        "description": cls.get_table_name_description(),
                    },
                },
                "required": ["tableName"],
            },
        }

    @classmethod
    def descriptions(cls) -> dict[str, str]:
        return {
            cls.GET_SCHEMA: cls.get_schema_description(),
            cls.RUN_READ_QUERY: cls.get_run_read_query_description(),
            cls.INSPECT_TABLE: cls.get_inspect_table_description(),
        }
