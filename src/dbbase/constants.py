"""Constants and static configuration for the DBBase MCP server."""

# Application constants
SERVER_NAME = "dbbase"
SERVER_VERSION = "0.1.0"
EXIT_SUCCESS = 0
EXIT_FAILURE = 1

# Active connection configuration
CONFIG_ENV_VAR = "DBBASE_MCP_CONFIG"
DEFAULT_CONFIG_FILENAME = "active_connection.json"

# Database constants
CONNECT_TIMEOUT = 5.0  # seconds, applied to the initial connect only
DEFAULT_ROW_LIMIT = 100  # LIMIT injected into automated read queries
DEFAULT_POSTGRES_DATABASE = "postgres"
DEFAULT_KEYVALUE_DB = 0
KEY_SCAN_COUNT = 1000  # Keys per SCAN page
QUERY_PREVIEW_LENGTH = 100

# Statement verbs that get a synthetic status row when no rows come back
MUTATING_COMMANDS = ("INSERT", "UPDATE", "DELETE")

# Line prefixes treated as comments by the locator and key-value parser
COMMENT_PREFIXES = ("--", "#")
