from .camera import DEFAULT_CAMERA, CameraPlacement, frame
from .config import DisplayConfig, InterpreterConfig
from .errors import GCodePreviewError, ParseError
from .geometry import GeometryResult, InstanceBatch, build_geometry, clamp_layer_index
from .interpreter import interpret, parse_gcode
from .layers import aggregate
from .bounds import compute_bounds
from .models import BoundingBox, InstanceTransform, Layer, ParsedModel, ToolpathSegment
from .summary import ModelSummary, summarize

__all__ = [
    'interpret',
    'parse_gcode',
    'aggregate',
    'compute_bounds',
    'build_geometry',
    'clamp_layer_index',
    'frame',
    'summarize',
    'ParseError',
    'GCodePreviewError',
    'InterpreterConfig',
    'DisplayConfig',
    'ParsedModel',
    'Layer',
    'ToolpathSegment',
    'BoundingBox',
    'InstanceTransform',
    'InstanceBatch',
    'GeometryResult',
    'CameraPlacement',
    'DEFAULT_CAMERA',
    'ModelSummary',
]
