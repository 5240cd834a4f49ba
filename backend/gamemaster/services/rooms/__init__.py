"""Room session domain services: coordinator, presence, broadcast and ticks.

HTTP routes and socket handlers reach these through ``get_services()``,
keeping transport concerns separated from the timer and hint rules.
"""

from flask import current_app

EXTENSION_KEY = 'gamemaster'


def get_services() -> dict:
    """Return the service registry attached to the current Flask app."""
    return current_app.extensions[EXTENSION_KEY]
