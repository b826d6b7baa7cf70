# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the meme feed client:
# - test_models.py: Wire-format parsing and pagination arithmetic
# - test_session.py: Token decoding, expiry and persistence
# - test_api_client.py: HTTP mapping of statuses and auth headers
# - test_author_cache.py: Single-flight author lookups
# - test_feed_service.py: Feed pagination and merging
# - test_scroll_trigger.py: Sentinel-driven page loads
# - test_comment_service.py: Thread loading and optimistic comments
# - test_feed_page.py: Feed page, login, meme creation, client lifecycle
#
# Run tests with: pytest
# =============================================================================
