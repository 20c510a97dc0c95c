"""Application-wide constants.

These are fixed values that don't change between environments.
For configurable values, see config.py Settings.
"""

# ─────────────────────────────────────────────────────────────
# API Rate Limits (external constraints)
# ─────────────────────────────────────────────────────────────
FINNHUB_RATE_LIMIT_CALLS_PER_MINUTE = 60  # Free tier limit

# ─────────────────────────────────────────────────────────────
# Cache TTLs (sensible defaults)
# ─────────────────────────────────────────────────────────────
CALENDAR_CACHE_TTL_SECONDS = 3600  # 1 hour for assembled calendar results
HISTORY_CACHE_TTL_SECONDS = 86400  # 24 hours for historical moves / options data
YAHOO_SESSION_TTL_SECONDS = 600  # 10 minutes for cookie/crumb session

# ─────────────────────────────────────────────────────────────
# Provider URLs
# ─────────────────────────────────────────────────────────────
FINNHUB_API_URL = "https://finnhub.io/api/v1"
FMP_API_URL = "https://financialmodelingprep.com/api/v3"
ORATS_API_URL = "https://api.orats.io/datav2"
ALPHA_VANTAGE_API_URL = "https://www.alphavantage.co/query"
YAHOO_COOKIE_URL = "https://fc.yahoo.com/"
YAHOO_CRUMB_URL = "https://query2.finance.yahoo.com/v1/test/getcrumb"
YAHOO_QUERY1_URL = "https://query1.finance.yahoo.com"
YAHOO_QUERY2_URL = "https://query2.finance.yahoo.com"
YAHOO_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

# ─────────────────────────────────────────────────────────────
# Cache key prefixes
# ─────────────────────────────────────────────────────────────
CACHE_PREFIX = "ivcrush"

# ─────────────────────────────────────────────────────────────
# Enrichment
# ─────────────────────────────────────────────────────────────
FINNHUB_SURPRISE_LIMIT = 20
ESTIMATE_LOOKBACK_QUARTERS = 8
SESSION_PROBE_TIMEOUT_SECONDS = 8.0
