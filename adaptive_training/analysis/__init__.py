"""Analysis module for plan generation, matching and adherence."""

from .adherence import PlanAdherenceAnalyzer, PlanAdherenceReport
from .catalog import WorkoutCatalog, default_catalog
from .comparison import ComparisonEngine
from .matching import ActivityMatcher, MatchingConfig, ScoringProfile
from .patterns import ActivityPatternAnalyzer
from .plan_adjustment import AdjustmentOptions, ModificationType, PlanAdjustmentEngine, PlanAdjustmentResult
from .plan_selector import CatalogConfigurationError, PlanRequest, PlanSelector, PlanSettings
from .readiness import ReadinessCalculator, determine_phase
from .tracking import create_tracked_workout, create_unplanned_workout, reconcile_upload

__all__ = [
    "ActivityMatcher",
    "ActivityPatternAnalyzer",
    "AdjustmentOptions",
    "CatalogConfigurationError",
    "ComparisonEngine",
    "MatchingConfig",
    "ModificationType",
    "PlanAdjustmentEngine",
    "PlanAdjustmentResult",
    "PlanAdherenceAnalyzer",
    "PlanAdherenceReport",
    "PlanRequest",
    "PlanSelector",
    "PlanSettings",
    "ReadinessCalculator",
    "ScoringProfile",
    "WorkoutCatalog",
    "create_tracked_workout",
    "create_unplanned_workout",
    "default_catalog",
    "determine_phase",
    "reconcile_upload",
]
