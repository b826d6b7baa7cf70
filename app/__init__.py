# =============================================================================
# app/ - Client Application Package
# =============================================================================
# This package wires the sync core into a running client:
# - main.py: Composition root, logging setup, session lifecycle
# - config.py: Environment variable loading and settings
# - exceptions.py: Client error taxonomy and user-facing messages
# - auth/: Session store, token storage and login flow
# - feed_page.py: Feed page controller (view state over the sync core)
# =============================================================================
