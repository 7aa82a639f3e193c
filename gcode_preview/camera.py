"""
Camera Framer
바운딩 박스 -> 카메라 배치 (상태 없음, 같은 입력이면 같은 출력)
"""
import math
from dataclasses import dataclass
from typing import Any, Dict

from .models import BoundingBox, Vec3

FIT_DISTANCE_FACTOR = 1.5
MIN_FRAMED_SIZE = 1.0
NEAR_DIVISOR = 200.0
MIN_NEAR = 0.1
FAR_FACTOR = 20.0
MIN_FAR = 2000.0


@dataclass(frozen=True)
class CameraPlacement:
    target: Vec3
    position: Vec3
    near: float
    far: float
    distance: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": list(self.target),
            "position": list(self.position),
            "near": self.near,
            "far": self.far,
            "distance": self.distance,
        }


# 초기 / 리셋 카메라 (Z-up 뷰어 기준)
_DEFAULT_TARGET = (0.0, 0.0, 0.0)
_DEFAULT_POSITION = (200.0, 200.0, 220.0)

DEFAULT_CAMERA = CameraPlacement(
    target=_DEFAULT_TARGET,
    position=_DEFAULT_POSITION,
    near=MIN_NEAR,
    far=MIN_FAR,
    distance=math.dist(_DEFAULT_POSITION, _DEFAULT_TARGET),
)


def frame(box: BoundingBox) -> CameraPlacement:
    """
    Fit a camera to the given bounding box.

    - target: 박스 중심
    - distance: 1.5 × max(size, 1) (크기 0 박스 방지)
    - position: target + (distance, distance, distance) 대각선
    - near: max(distance / 200, 0.1), far: max(distance × 20, 2000)

    빈 박스는 DEFAULT_CAMERA를 반환한다.
    """
    if box.is_empty:
        return DEFAULT_CAMERA

    center = box.center
    distance = max(*box.size, MIN_FRAMED_SIZE) * FIT_DISTANCE_FACTOR

    return CameraPlacement(
        target=center,
        position=(center[0] + distance, center[1] + distance, center[2] + distance),
        near=max(distance / NEAR_DIVISOR, MIN_NEAR),
        far=max(distance * FAR_FACTOR, MIN_FAR),
        distance=distance,
    )
