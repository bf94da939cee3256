"""
Centralized constants for restaurants and dinner groups.

Values that vary by deployment live in config.Settings; these are fixed.
"""

# Cache key prefix for the nearby-restaurants list; full key is prefix:lat:lng:radius
RESTAURANTS_CACHE_KEY_PREFIX = "all-restaurants"

# Haversine earth radius in miles
EARTH_RADIUS_MILES = 3958.8
METERS_PER_MILE = 1609.34

# Listing: max rows in the "nearby" list
NEARBY_LIMIT = 50

# Photo proxy: width requested from Places, browser cache lifetime (24h)
PHOTO_MAX_WIDTH = 400
PHOTO_CACHE_CONTROL = "public, max-age=86400"

# Dinner group free-text note cap
NOTES_MAX_LENGTH = 500

# Header carrying the caller's person id (authentication happens upstream)
USER_ID_HEADER = "X-User-Id"
