"""
Contracts (data models).

This folder defines the request/response shapes for external integrations:
- Addon catalogue records (static table and Supabase rows)
- Payment request/response formats and webhook events

Both mock and real HTTP clients should use these contracts.
"""
