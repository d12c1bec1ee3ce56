from __future__ import annotations

from .config import Subs2LangConfig
from .pipeline import Subs2LangPipeline

__all__ = ["Subs2LangConfig", "Subs2LangPipeline"]

__version__ = "0.1.0"
