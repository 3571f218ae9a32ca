"""Elliott Wave counting and validation over OHLC bars."""

from wavecount.data.bars import Bar, BarSeries  # noqa: F401
from wavecount.errors import (  # noqa: F401
    DegeneratePivotSequence,
    InsufficientData,
    InvalidBar,
    WaveAnalysisError,
)
from wavecount.ew.core.model import AnalysisResult, FibTarget, Trend, Wave, WaveLabel  # noqa: F401
from wavecount.ew.core.options import EngineConfig  # noqa: F401
from wavecount.ew.detectors.analyzer import analyze_waves  # noqa: F401

__version__ = "0.1.0"
