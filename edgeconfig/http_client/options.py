from dataclasses import dataclass, field


@dataclass
class RequestOptions:
    """Headers, query parameters and optional raw body for one call.

    Create a fresh instance per call; the verb helpers mutate ``headers``.
    """

    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    @classmethod
    def create(cls) -> "RequestOptions":
        return cls()

    def with_params(self, **params: object) -> "RequestOptions":
        """Add query params, skipping None values; returns self."""
        for key, value in params.items():
            if value is not None:
                self.params[key] = str(value)
        return self
