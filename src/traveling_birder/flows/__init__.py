"""
Prefect flows.

Flows:
- search: run a point/box/route/region search against eBird and save results

Usage (local):
    python -m traveling_birder.flows.search

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    traveling-birder search box --bbox 45.0 -123.5 46.0 -122.0
"""
