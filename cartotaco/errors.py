from __future__ import annotations


class CartoTacoError(Exception):
    """Base class for errors raised inside the site pipeline."""


class PartialDataError(CartoTacoError):
    """A joined entity is missing one or more required sections."""

    def __init__(self, est_id: object, missing: list[str]) -> None:
        self.est_id = est_id
        self.missing = missing
        super().__init__(f"site {est_id} missing sections: {', '.join(missing)}")


class FetchError(CartoTacoError):
    """A remote table could not be read."""

    def __init__(self, table: str, message: str, code: str | None = None) -> None:
        self.table = table
        self.code = code
        super().__init__(f"{table}: {message}")


class ComputationError(CartoTacoError):
    """Deriving one site's view model failed on malformed data."""


class ConfigError(CartoTacoError):
    """Startup configuration is unusable."""
