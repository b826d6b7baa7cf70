# =============================================================================
# core/ - Feed Synchronization Logic
# =============================================================================
# This package contains the rendering-agnostic sync core:
# - models/: Pydantic schemas for memes, comments, authors and pagination
# - services/: Feed paginator, scroll trigger, comment threads, meme creation
#
# Code in this package should NOT know about any UI toolkit.
# This keeps the logic testable and reusable.
# =============================================================================
