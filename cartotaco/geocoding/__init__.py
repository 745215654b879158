from .client import GeocodeMatch, GeocodeResult, geocode_address, haversine_km

__all__ = ["GeocodeMatch", "GeocodeResult", "geocode_address", "haversine_km"]
