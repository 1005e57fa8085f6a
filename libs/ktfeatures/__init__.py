"""keytempo analysis core.

Tempo (BPM) and musical key estimation from a decoded mono sample buffer.
No decoding, rendering or I/O happens here.
"""

__version__ = "0.1.0"

from .analyzer import analyze, analyze_async
from .types import AnalysisResult

__all__ = ["analyze", "analyze_async", "AnalysisResult"]
