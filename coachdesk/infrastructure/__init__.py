"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- database: Supabase tables (table gateway)
- repositories: domain persistence over the gateway
- storage: Supabase Storage via the S3 API (boto3)

These wrappers translate between external formats and our domain models.
"""
