"""
Restaurants: provider facts (store + refreshable cache) merged with live dinner-group attendance.
Import submodules directly; details depends on dinner_group_service, which depends on store.
"""
