"""
Contracts (data models).

This folder defines the shapes shared by the pipeline and its providers:
- The normalized contract submission
- Per-stage results (invoice, task, signing link) and the aggregate pipeline result
- Abstract provider interfaces

Both mock and real HTTP clients implement these interfaces.
"""
