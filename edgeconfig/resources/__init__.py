"""Per-resource operations.

Every operation takes an :class:`~edgeconfig.http_client.client.ApiClient`
and one input dataclass, validates required identifiers before any I/O and
returns a decoded model.
"""
