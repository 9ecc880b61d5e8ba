# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable infrastructure:
# - database.py: PostgreSQL connection pool, configuration checks, liveness ping
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.database import (
    Database,
    PoolConfig,
    check_database_config,
    create_database,
)

__all__ = [
    "Database",
    "PoolConfig",
    "check_database_config",
    "create_database",
]
