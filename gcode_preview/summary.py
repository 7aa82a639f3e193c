"""
모델 요약 (상세 정보 패널용)
ParsedModel에서 바운딩 박스, 예상 높이, 메타데이터, 명령 수, 레이어 수를 정리
"""
from typing import Any, Dict, Sequence

import numpy as np
from pydantic import BaseModel

from .models import BoundingBox, Layer, ParsedModel

DEFAULT_LAYER_HEIGHT = 0.2
MIN_LAYER_HEIGHT = 0.04
MAX_LAYER_HEIGHT = 0.5
LAYER_HEIGHT_SAMPLE = 20  # 앞쪽 레이어만 사용


class ModelSummary(BaseModel):
    bounds: Dict[str, float]
    bounds_empty: bool
    estimated_height: float
    metadata: Dict[str, str]
    total_commands: int
    layer_count: int
    extrusion_count: int
    travel_count: int
    layer_height: float
    first_layer_height: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "boundingBox": self.bounds,
            "boundsEmpty": self.bounds_empty,
            "estimatedHeight": round(self.estimated_height, 3),
            "metadata": dict(self.metadata),
            "totalCommands": self.total_commands,
            "layerCount": self.layer_count,
            "extrusionCount": self.extrusion_count,
            "travelCount": self.travel_count,
            "layerHeight": round(self.layer_height, 3),
            "firstLayerHeight": round(self.first_layer_height, 3),
        }


def estimate_layer_height(layers: Sequence[Layer]) -> float:
    """
    레이어 높이 추정

    앞쪽 레이어들의 Z 간격 중 합리적인 범위만 남겨 상하위 25%를 잘라낸 평균.
    레이어가 2개 미만이거나 쓸 만한 간격이 없으면 기본값.
    """
    zs = np.array([layer.z for layer in layers[:LAYER_HEIGHT_SAMPLE]], dtype=np.float64)
    deltas = np.diff(zs)
    deltas = np.sort(deltas[(deltas >= MIN_LAYER_HEIGHT) & (deltas <= MAX_LAYER_HEIGHT)])
    if deltas.size == 0:
        return DEFAULT_LAYER_HEIGHT

    trim = deltas.size // 4
    return float(deltas[trim:deltas.size - trim].mean())


def estimate_first_layer_height(layers: Sequence[Layer]) -> float:
    """첫 레이어가 비정상적으로 높으면 (시작 코드 Z 이동) 다음 레이어 Z 사용"""
    if not layers:
        return DEFAULT_LAYER_HEIGHT
    first_z = layers[0].z
    if first_z > 1.0 and len(layers) > 1:
        return layers[1].z
    if first_z > 0:
        return first_z
    return DEFAULT_LAYER_HEIGHT


def summarize(model: ParsedModel) -> ModelSummary:
    """Summarize a parsed model for the detail / metadata panel."""
    layers = list(model.layers)
    extrusion_count = sum(layer.extrusion_count for layer in layers)
    travel_count = sum(layer.travel_count for layer in layers)
    bounds: BoundingBox = model.bounds

    return ModelSummary(
        bounds=bounds.to_dict(),
        bounds_empty=bounds.is_empty,
        estimated_height=model.estimated_height,
        metadata=dict(model.metadata),
        total_commands=model.total_commands,
        layer_count=model.layer_count,
        extrusion_count=extrusion_count,
        travel_count=travel_count,
        layer_height=estimate_layer_height(layers),
        first_layer_height=estimate_first_layer_height(layers),
    )
