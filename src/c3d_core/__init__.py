"""C3D Core - Shared on-disk constants and numeric layouts."""
from .codec import NumericCodec, Processor, round_single

__all__ = ["NumericCodec", "Processor", "round_single"]
