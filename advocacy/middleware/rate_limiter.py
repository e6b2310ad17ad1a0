"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in advocacy/__init__.py with no default
limits; this module applies granular limits per route category.

Usage:
    from advocacy.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# Blueprint name -> limit string
BLUEPRINT_LIMITS = {
    "admin_permissions_bp": "60/minute",   # permission writes
    "congress_bp": "120/minute",
    "me_bp": "200/minute",                 # polled by the navigation shell
}


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints (per remote IP).

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name, limit in BLUEPRINT_LIMITS.items():
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(limit)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: %s",
        ", ".join(f"{name}={limit}" for name, limit in BLUEPRINT_LIMITS.items()),
    )
