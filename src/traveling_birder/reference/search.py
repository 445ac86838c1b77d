"""Search defaults and sampling constants."""

# Radius passed to eBird ``dist`` (km). The API rejects anything above 50.
DEFAULT_RADIUS_KM: float = 15.0
MAX_RADIUS_KM: float = 50.0

# eBird ``back`` accepts 1-30 days.
DEFAULT_LOOKBACK_DAYS: int = 30
MAX_LOOKBACK_DAYS: int = 30

# Spacing between sample points, independent of search radius.
GRID_SPACING_MILES: float = 20.0

# Approximate length of one degree of latitude.
MILES_PER_DEGREE: float = 69.0
KM_PER_MILE: float = 1.60934

# Upper bound on sample points per search (each point is one API request).
MAX_SAMPLE_POINTS: int = 100

# Ranked lists (checklists, hotspots) are truncated to this many entries.
DEFAULT_TOP_N: int = 10

# Hotspot reference data changes slowly, so only every Nth point fetches it.
GRID_HOTSPOT_STRIDE: int = 3
ROUTE_HOTSPOT_STRIDE: int = 2
