"""Upstream provider payload builders.

Each module knows the JSON body one kind of upstream expects and how to
build its ``ProviderAdapter`` from settings. Transport and error handling
live in ``services/upstream.py``.
"""
