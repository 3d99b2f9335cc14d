"""
Mock integration clients.

These clients return local (but realistic) data without calling any external API.
They are used when:
- Supabase or Stripe credentials are not configured
- We want to test flows end-to-end without external dependencies

Important:
- Mock clients must follow the SAME interface as real HTTP clients.
- Mock clients should return data shaped according to palworks/integrations/contracts/*

Switching to real:
Set INTEGRATIONS_MODE=real plus the credentials; palworks/api/services.py then wires
clients/real_http/* implementations instead.
"""
