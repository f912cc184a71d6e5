"""
Object storage integration for exercise videos, recipe images and progress photos.

Talks to Supabase Storage via its S3-compatible API.
Includes mock mode for local development without credentials.
"""
