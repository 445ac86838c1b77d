"""
Shared service integrations.

Simple modules that wrap APIs and process-wide setup. No magic.

- http.py     - throttled requests Session with retry/backoff (use for every API call)
- routing.py  - Driving routes for route searches (OpenRouteService)
- logging.py  - Logging configuration for the CLI
"""
