"""
Services package for modelbridge.

Holds the backend adapters that translate between the unified prompt and
generation shapes and each backend's own request and response fields.
"""
