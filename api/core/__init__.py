"""
Shared, cross-cutting code for the API.

`core/` holds the small building blocks every feature uses (settings, the
storage backends, schema bootstrap). Feature-specific SQL and business logic
live in the corresponding feature package (e.g. `catalog/`).
"""
