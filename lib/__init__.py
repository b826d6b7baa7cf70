# =============================================================================
# lib/ - Standalone Client Modules
# =============================================================================
# This package contains the pieces that talk to the outside world:
# - api_client.py: Typed async wrapper for the meme REST API (httpx)
# - author_cache.py: Single-flight, session-lifetime author lookup cache
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================
