"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants, rate limiting
    └── {feature}.py      # Dataclasses + fetch functions (one per concept)

Adding a new datasource
-----------------------
1. Create ``datasources/{name}/`` with files above.
   See ``ebird/`` for the reference layout.

2. Write fetch functions that return dataclasses::

       from traveling_birder.services.http import session

       def fetch_something(lat, lng) -> list[Something]:
           resp = session.get(API_URL, params={...})
           resp.raise_for_status()
           return [_parse_something(r) for r in resp.json()]

3. Re-export public API in ``__init__.py`` with ``__all__``.

4. Wire into the pipeline (see ``flows/search.py``): wrap the fetch function
   in an async adapter matching the orchestrator's fetcher signature.

5. Add tests in ``tests/test_{name}.py``.
"""
