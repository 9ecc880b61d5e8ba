# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# This package contains the FastAPI web application:
# - __main__.py: Process entry point (startup checks, uvicorn)
# - main.py: App factory, static uploads, API docs, CORS, error handlers
# - config.py: Environment variable loading and settings
# - routers/: API endpoint definitions organized by feature
#
# The app layer is thin - it handles HTTP concerns and delegates
# file and database work to core/ and lib/.
# =============================================================================
