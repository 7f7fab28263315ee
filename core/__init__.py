"""
Core infrastructure for the API manager.

This package contains what the notification machinery and the REST layer share:
- Configuration (environment-backed settings)
- Domain models (users, organizations, APIs, plans, policies)
- Data store for JSON-backed persistence
- Security context, search criteria and manager exceptions
- Mock email channel
"""
