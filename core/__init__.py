# =============================================================================
# core/ - Service Package
# =============================================================================
# This package contains the application services:
# - services/file_upload_service.py: product image storage on local disk
#
# Services receive their configuration through their constructors and never
# read the environment themselves.
# =============================================================================
