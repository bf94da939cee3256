"""
Single source of truth for database tables that exist after migrations (001).

Use these names when writing raw SQL (e.g. TRUNCATE). Order is FK-safe for deletes
(children first).
"""
ALL_TABLE_NAMES = (
    "attendees",
    "dinner_groups",
    "restaurants",
)
