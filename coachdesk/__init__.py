"""
CoachDesk - backend for a personal training and nutrition coaching app.

Packages:
- core: Markdown rendering, progress statistics and library models
- infrastructure: Supabase tables and S3-compatible object storage
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
