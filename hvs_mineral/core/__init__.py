# Public API of the core package (re-export)
from .color import rgb_to_hsv, rgb_to_hsv_array, luma
from .catalog import (
    MaterialKind,
    MaterialRange,
    MaterialCatalog,
    material_from_mapping,
    build_catalog,
    default_catalog,
)
from .rules import HeuristicRule, rules_for, heuristic_factor
from .labels import BACKGROUND, INDETERMINATE, ConfidenceLevel, PixelLabel, LabelGrid
from .classifier import (
    ClassifiedBlock,
    PixelDecision,
    PixelClassifier,
    confidence_level,
)
from .diagnostics import (
    QualityStatus,
    DiagnosticsAccumulator,
    ImageDiagnostics,
    focus_score,
    exposure_score,
    mask_score,
    quality_index,
    quality_status,
)
from .segmentation import ParticleFeatures, min_particle_size, segment_particles
from .particles import (
    ParticleRecord,
    ScoreFusion,
    PassThroughFusion,
    WeightedFusion,
    build_particle_record,
)
from .results import MaterialResult, AnalysisResult, material_results, build_summary
from .roi import RoiShape, RoiDefinition, apply_roi
from .consistency import AlertSeverity, ConsistencyAlert, ConsistencyReport, check_consistency
from .pipeline import AnalysisPipeline
from .reanalysis import ConvergenceDecision, evaluate_convergence, ReanalysisOrchestrator
from .io_utils import imread_rgb, imread_mask
from .exceptions import HvsAnalysisError, InputShapeError, ImageLoadError, AnalysisCancelled
from .params import AnalysisParams

__all__ = [
    # color
    "rgb_to_hsv", "rgb_to_hsv_array", "luma",
    # catalog / rules
    "MaterialKind", "MaterialRange", "MaterialCatalog", "material_from_mapping", "build_catalog",
    "default_catalog", "HeuristicRule", "rules_for", "heuristic_factor",
    # labels / classifier
    "BACKGROUND", "INDETERMINATE", "ConfidenceLevel", "PixelLabel", "LabelGrid",
    "ClassifiedBlock", "PixelDecision", "PixelClassifier", "confidence_level",
    # diagnostics
    "QualityStatus", "DiagnosticsAccumulator", "ImageDiagnostics", "focus_score", "exposure_score",
    "mask_score", "quality_index", "quality_status",
    # particles
    "ParticleFeatures", "min_particle_size", "segment_particles",
    "ParticleRecord", "ScoreFusion", "PassThroughFusion", "WeightedFusion", "build_particle_record",
    # results / pipeline
    "MaterialResult", "AnalysisResult", "material_results", "build_summary",
    "RoiShape", "RoiDefinition", "apply_roi",
    "AlertSeverity", "ConsistencyAlert", "ConsistencyReport", "check_consistency",
    "AnalysisPipeline", "ConvergenceDecision", "evaluate_convergence", "ReanalysisOrchestrator",
    # io
    "imread_rgb", "imread_mask",
    # errors / params
    "HvsAnalysisError", "InputShapeError", "ImageLoadError", "AnalysisCancelled", "AnalysisParams",
]
