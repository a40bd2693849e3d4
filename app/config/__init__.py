# =============================================================================
# Django Project Configuration Package
# =============================================================================
# This package contains the Django settings for the chat client core.
# There is no URL configuration or ASGI/WSGI application: the chat engine is
# driven in-process by the presentation layer.
# =============================================================================
