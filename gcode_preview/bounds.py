"""
바운딩 박스 계산기
전체 세그먼트 끝점을 한 번에 훑어 축 정렬 바운딩 박스를 구한다
"""
from typing import NamedTuple, Sequence

import numpy as np

from .models import BoundingBox, ToolpathSegment


class BoundsSummary(NamedTuple):
    """(box, estimated_height, command_count)"""
    box: BoundingBox
    estimated_height: float
    command_count: int


def segment_endpoints(segments: Sequence[ToolpathSegment]) -> np.ndarray:
    """세그먼트 배열 -> (n, 2, 3) float64 배열 [start, end]"""
    if not segments:
        return np.empty((0, 2, 3), dtype=np.float64)
    return np.array([(s.start, s.end) for s in segments], dtype=np.float64)


def box_from_points(points: np.ndarray, padding: float = 0.0) -> BoundingBox:
    """(..., 3) 점 배열의 바운딩 박스 (점이 없으면 빈 센티널)"""
    flat = points.reshape(-1, 3)
    if flat.shape[0] == 0:
        return BoundingBox.empty()
    lo = flat.min(axis=0) - padding
    hi = flat.max(axis=0) + padding
    return BoundingBox(
        min=(float(lo[0]), float(lo[1]), float(lo[2])),
        max=(float(hi[0]), float(hi[1]), float(hi[2])),
    )


def segments_bounds(segments: Sequence[ToolpathSegment], padding: float = 0.0) -> BoundingBox:
    """모든 세그먼트 끝점을 포함하는 박스, padding만큼 균일 확장"""
    return box_from_points(segment_endpoints(segments), padding)


def compute_bounds(segments: Sequence[ToolpathSegment], padding: float = 0.0) -> BoundsSummary:
    """
    Compute global bounds, estimated print height and command count.

    estimated_height는 padding 없는 박스의 Z 범위 (빈 박스면 0).
    command_count는 실제 해석된 이동 명령 수 = 세그먼트 수.
    """
    box = segments_bounds(segments)
    height = 0.0 if box.is_empty else box.max[2] - box.min[2]
    if padding:
        box = box.expand_by_scalar(padding)
    return BoundsSummary(box=box, estimated_height=height, command_count=len(segments))
