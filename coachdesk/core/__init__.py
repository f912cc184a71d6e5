"""
Core business logic for coaching.

This package is framework-agnostic - it doesn't import FastAPI, Supabase,
boto3 or any infrastructure concerns. Markdown rendering and progress
statistics can be tested in isolation.
"""
