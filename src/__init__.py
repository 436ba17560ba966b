"""
Memorial Gallery - shared photo and video uploads backed by object storage.

This package contains the complete application:
- core: Framework-agnostic upload and gallery logic
- infrastructure: Object storage integration (R2 via boto3)
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
