"""
레이어 분할기
시간 순서 세그먼트 스트림을 0부터 시작하는 연속 인덱스 레이어로 분할

경계 규칙:
- 명시적 레이어 마커 (;LAYER:N, ;LAYER_CHANGE 등)가 하나라도 있으면 마커만 사용
- 마커가 없으면 Z 상승 감지 (폴백):
  세그먼트 끝 Z가 현재 레이어 기준 높이보다 z_threshold 초과로 높아지면 새 레이어.
  기준 높이는 현재 레이어에서 본 가장 낮은 Z (시작 코드의 Z 리프트 대응)

슬라이서가 적은 레이어 번호는 버리고 항상 연속 인덱스를 부여한다.
"""
import logging
from typing import Iterable, List, Sequence, Tuple

from .models import Layer, ToolpathSegment

logger = logging.getLogger(__name__)

DEFAULT_Z_THRESHOLD = 1e-3


def _close(layers: List[Layer], current: List[ToolpathSegment]):
    layers.append(Layer(index=len(layers), segments=tuple(current)))
    logger.debug("Layer %d: %d segments", len(layers) - 1, len(current))


def aggregate(
    segments: Sequence[ToolpathSegment],
    markers: Iterable[int] = (),
    z_threshold: float = DEFAULT_Z_THRESHOLD,
) -> Tuple[Layer, ...]:
    """
    Partition chronological segments into index-ordered layers.

    Args:
        segments: 시간 순서 세그먼트
        markers: 레이어 마커 뒤 첫 세그먼트의 인덱스들
        z_threshold: 노이즈로 간주할 Z 상승량

    Returns:
        Layer 튜플 (빈 레이어 없음)
    """
    marker_set = set(markers)
    use_markers = bool(marker_set)

    layers: List[Layer] = []
    current: List[ToolpathSegment] = []
    reference_z = 0.0

    for i, segment in enumerate(segments):
        z = segment.end[2]
        if current:
            if use_markers:
                boundary = i in marker_set
            else:
                boundary = z > reference_z + z_threshold
            if boundary:
                _close(layers, current)
                current = []

        if not current or z < reference_z:
            reference_z = z
        current.append(segment)

    if current:
        _close(layers, current)

    return tuple(layers)
