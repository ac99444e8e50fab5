from .correlator import correlate

__all__ = ["correlate"]
