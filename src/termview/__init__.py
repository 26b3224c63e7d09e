"""Render files, documents and URLs as images in the terminal."""

__version__ = "0.1.0"

from .config import RenderConfig, load_config
from .core import RenderService
from .models import BatchRenderResult, RenderResult, Target

__all__ = [
    "RenderConfig",
    "load_config",
    "BatchRenderResult",
    "RenderService",
    "RenderResult",
    "Target",
    "__version__",
]
