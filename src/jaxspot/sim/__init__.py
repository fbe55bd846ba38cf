# JaxSpot Sim Module
"""
Trade simulation core: funnel classification, sizing, targets, position
lifecycle, adaptive confidence and the engine that owns them.
"""

from .interfaces import IPriceFeed, IStateStore, INotifier
from .clock import IClock, SystemClock, ManualClock
from .sizing import size_usd, base_size_usd
from .targets import calculate_targets, target_percentages
from .confidence import ConfidenceController, confidence_delta, clamp_confidence
from .classifier import FunnelConfig, FunnelResult, StagePlacement, classify, score_confidence
from .lifecycle import PositionLifecycleManager
from .notifier import WebhookNotifier, build_payload
from .observers import ObserverRegistry
from .engine import TradeSimEngine, TickReport
from .evaluation_loop import EvaluationLoop

__all__ = [
    # Protocols
    "IPriceFeed",
    "IStateStore",
    "INotifier",
    "IClock",
    "SystemClock",
    "ManualClock",
    # Pure calculators
    "size_usd",
    "base_size_usd",
    "calculate_targets",
    "target_percentages",
    "confidence_delta",
    "clamp_confidence",
    "score_confidence",
    # Components
    "ConfidenceController",
    "FunnelConfig",
    "FunnelResult",
    "StagePlacement",
    "classify",
    "PositionLifecycleManager",
    "WebhookNotifier",
    "build_payload",
    "ObserverRegistry",
    # Engine
    "TradeSimEngine",
    "TickReport",
    "EvaluationLoop",
]
