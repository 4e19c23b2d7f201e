"""SQLite schema definitions for Sentinel."""

# SQL schema definitions
SCHEMA_VERSION = 1

CREATE_TABLES = [
    # Wallets table - one row per custodied key, the private key only ever as an encrypted envelope
    """
    CREATE TABLE IF NOT EXISTS wallets (
        id INTEGER PRIMARY KEY,
        pubkey TEXT UNIQUE NOT NULL,
        encrypted_private_key BLOB NOT NULL,
        label TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # Schema version table
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
]

CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_wallets_label ON wallets(label)",
]


def get_init_schema():
    """
    Get complete schema initialization SQL

    Returns:
        List of SQL statements to execute
    """
    statements = []
    statements.extend(CREATE_TABLES)
    statements.extend(CREATE_INDEXES)
    statements.append(
        f"INSERT OR IGNORE INTO schema_version (version) VALUES ({SCHEMA_VERSION})"
    )
    return statements


def get_drop_schema():
    """
    Get SQL statements to drop all tables for testing

    Returns:
        List of DROP TABLE statements
    """
    return [
        "DROP TABLE IF EXISTS wallets",
        "DROP TABLE IF EXISTS schema_version",
    ]
