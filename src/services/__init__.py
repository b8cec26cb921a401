"""
Services for the Social Battery.

Services:
    - social_battery: drain, recovery, limits, stats and daily readings
    - SocialPatternAnalyzer: five pattern detectors plus insights
    - recommend: tiered recovery recommendations
    - SocialBatteryStore: command funnel, persistence and queries
    - RecoveryScheduler: periodic recovery tick
    - SocialBatteryAssistant: free-text questions via a TextGenerator
"""

from .assistant import SocialBatteryAssistant
from .pattern_detection import SocialPatternAnalyzer, get_pattern_analyzer, pearson_correlation
from .persistence import (
    BlobStore,
    MemoryBlobStore,
    RedisBlobStore,
    SnapshotRepository,
    SqlBlobStore,
    create_blob_store,
)
from .recommendation_engine import recommend
from .recovery_scheduler import RecoveryScheduler
from .state_store import (
    AddInteraction,
    AppState,
    LoadData,
    ResetState,
    SocialBatteryStore,
    TickRecovery,
    UpdateEnergyLevel,
    UpdateRecoveryRate,
    reduce,
)
from .text_generator import (
    FallbackTextGenerator,
    OpenAITextGenerator,
    TextGenerator,
    create_text_generator,
)

__all__ = [
    # Pattern analysis
    "SocialPatternAnalyzer",
    "get_pattern_analyzer",
    "pearson_correlation",
    # Recommendations
    "recommend",
    # Persistence
    "BlobStore",
    "MemoryBlobStore",
    "RedisBlobStore",
    "SqlBlobStore",
    "SnapshotRepository",
    "create_blob_store",
    # Store
    "SocialBatteryStore",
    "AppState",
    "AddInteraction",
    "UpdateEnergyLevel",
    "UpdateRecoveryRate",
    "TickRecovery",
    "LoadData",
    "ResetState",
    "reduce",
    # Scheduler
    "RecoveryScheduler",
    # Assistant
    "SocialBatteryAssistant",
    "TextGenerator",
    "FallbackTextGenerator",
    "OpenAITextGenerator",
    "create_text_generator",
]
