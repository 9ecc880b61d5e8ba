# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Multi-Level Marketing API:
# - test_config.py: Settings derivations and environment validation
# - test_database.py: Pool configuration, pool creation, liveness ping
# - test_file_upload_service.py: Upload filter, naming, size limit, helpers
# - test_app.py: App wiring (docs, static files, CORS, routes, auth)
# - test_entrypoint.py: Startup checks and exit codes
#
# Run tests with: pytest
# =============================================================================
