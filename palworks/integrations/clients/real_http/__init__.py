"""
Real HTTP integration clients.

These clients communicate with real external systems:
- Supabase PostgREST (contract_addons table)
- Stripe PaymentIntents

Important:
- Must implement the same interfaces as the mock clients
- Must return data shaped according to palworks/integrations/contracts/*

Switching:
The selection of mock vs real clients happens in palworks/api/services.py only.
"""
