"""
Core domain package.

Typed entities, record mapping and search resolution. Nothing in here
touches sockets; consumers should usually import from the specific module
they need (e.g. `mpdlink.core.models`).
"""
