"""Static birding constants.

Reference data that doesn't change with API calls: search defaults, grid
spacing, ABA rarity codes, frequency tier thresholds.

Adding a new module:
1. Create ``reference/{name}.py`` with constants/dataclasses
2. Re-export from this ``__init__.py``
"""

from traveling_birder.reference.rarity import ABA_CODES as ABA_CODES
from traveling_birder.reference.rarity import aba_label as aba_label
from traveling_birder.reference.search import DEFAULT_LOOKBACK_DAYS as DEFAULT_LOOKBACK_DAYS
from traveling_birder.reference.search import DEFAULT_RADIUS_KM as DEFAULT_RADIUS_KM
from traveling_birder.reference.search import DEFAULT_TOP_N as DEFAULT_TOP_N
from traveling_birder.reference.search import GRID_SPACING_MILES as GRID_SPACING_MILES
from traveling_birder.reference.search import MAX_RADIUS_KM as MAX_RADIUS_KM
