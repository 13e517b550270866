from .base import ImageDecoderEngine
from .pillow_engine import PillowEngine

__all__ = ["ImageDecoderEngine", "PillowEngine"]
