"""
Real HTTP integration clients.

These clients communicate with the real external systems:
- SignNow REST API
- Stripe (through the official SDK)
- ClickUp REST API

Important:
- Must implement the same interfaces as the mock clients
- Must return data shaped according to src/integrations/contracts/*

Switching:
The selection of mock vs real clients happens in src/pipeline/orchestrator.py only.
"""
