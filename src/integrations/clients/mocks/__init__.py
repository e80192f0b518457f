"""
Mock integration clients.

These clients return fake (but realistic) responses without calling any external API.
They are used when:
- Provider credentials are not configured
- We want to run the pipeline end-to-end without external dependencies

Important:
- Mock clients must follow the SAME interface as real HTTP clients.
- Each mock records what it was asked to do so tests can assert on it.

Switching to real:
Set INTEGRATIONS_MODE=real (or configure SignNow credentials) and
build_pipeline() wires clients/real_http/* instead.
"""
