"""
Toolpath Geometry Builder
보이는 레이어의 세그먼트를 원기둥 인스턴스 변환(translation, rotation, scale)으로 변환

- 기준 원기둥은 +Y 축 방향, 높이 1
- 길이가 0에 가까운 세그먼트도 자리를 유지 (중점 이동, 회전 없음, 단위 스케일)
- 호출마다 새 배열을 만든다 (공유 버퍼 수정 없음)

렌더러는 새 결과를 설치하기 전에 이전 결과로 만든 GPU 리소스를 해제해야 한다.
"""
import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple

import numpy as np

from .bounds import box_from_points, segment_endpoints
from .config import DisplayConfig, get_default_display_config
from .models import BoundingBox, InstanceTransform, ParsedModel, ToolpathSegment

logger = logging.getLogger(__name__)

UP_AXIS = (0.0, 1.0, 0.0)
DEGENERATE_LENGTH = 1e-9
_IDENTITY_ROTATION = (0.0, 0.0, 0.0, 1.0)


def _readonly(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


def shortest_arc_from_up(directions: np.ndarray) -> np.ndarray:
    """
    +Y 축을 각 단위 방향 벡터로 회전시키는 최단 호 쿼터니언 (x, y, z, w)

    cross(+Y, d) = (dz, 0, -dx), w = 1 + dot(+Y, d) = 1 + dy.
    반대 방향 (d ≈ -Y)이면 Z축 기준 180도 회전.
    """
    n = directions.shape[0]
    r = directions[:, 1] + 1.0
    quats = np.stack(
        [directions[:, 2], np.zeros(n), -directions[:, 0], r],
        axis=1,
    )
    opposite = r < DEGENERATE_LENGTH
    if opposite.any():
        quats[opposite] = (0.0, 0.0, 1.0, 0.0)
    quats /= np.linalg.norm(quats, axis=1)[:, None]
    return quats


def compose_matrices(translations: np.ndarray, rotations: np.ndarray, scales: np.ndarray) -> np.ndarray:
    """TRS 합성 -> (n, 4, 4) row-major 행렬"""
    x, y, z, w = (rotations[:, i] for i in range(4))
    x2, y2, z2 = x + x, y + y, z + z
    xx, xy, xz = x * x2, x * y2, x * z2
    yy, yz, zz = y * y2, y * z2, z * z2
    wx, wy, wz = w * x2, w * y2, w * z2
    sx, sy, sz = scales[:, 0], scales[:, 1], scales[:, 2]

    n = translations.shape[0]
    m = np.zeros((n, 4, 4), dtype=np.float64)
    m[:, 0, 0] = (1 - (yy + zz)) * sx
    m[:, 1, 0] = (xy + wz) * sx
    m[:, 2, 0] = (xz - wy) * sx
    m[:, 0, 1] = (xy - wz) * sy
    m[:, 1, 1] = (1 - (xx + zz)) * sy
    m[:, 2, 1] = (yz + wx) * sy
    m[:, 0, 2] = (xz + wy) * sz
    m[:, 1, 2] = (yz - wx) * sz
    m[:, 2, 2] = (1 - (xx + yy)) * sz
    m[:, :3, 3] = translations
    m[:, 3, 3] = 1.0
    return m


@dataclass(frozen=True, eq=False)
class InstanceBatch:
    """
    인덱스 정렬된 인스턴스 변환 배열 (읽기 전용)

    i번째 인스턴스 = 필터링된 세그먼트 배열의 i번째 세그먼트
    """
    translations: np.ndarray  # (n, 3)
    rotations: np.ndarray     # (n, 4) x, y, z, w
    scales: np.ndarray        # (n, 3) radius, length, radius
    radius: float = 0.0

    def __post_init__(self):
        for array in (self.translations, self.rotations, self.scales):
            _readonly(array)

    @classmethod
    def empty(cls, radius: float = 0.0) -> "InstanceBatch":
        return cls(np.empty((0, 3)), np.empty((0, 4)), np.empty((0, 3)), radius)

    def __len__(self) -> int:
        return self.translations.shape[0]

    def __getitem__(self, index: int) -> InstanceTransform:
        t, r, s = self.translations[index], self.rotations[index], self.scales[index]
        return InstanceTransform(
            translation=(float(t[0]), float(t[1]), float(t[2])),
            rotation=(float(r[0]), float(r[1]), float(r[2]), float(r[3])),
            scale=(float(s[0]), float(s[1]), float(s[2])),
        )

    def __iter__(self) -> Iterator[InstanceTransform]:
        for i in range(len(self)):
            yield self[i]

    def matrices(self) -> np.ndarray:
        return compose_matrices(self.translations, self.rotations, self.scales)

    def to_float32_base64(self) -> str:
        """
        인스턴스 행렬을 Float32Array + Base64로 인코딩

        WebGL instanceMatrix와 같은 column-major 순서, 인스턴스당 16 floats.
        """
        if len(self) == 0:
            return ""
        packed = self.matrices().transpose(0, 2, 1).astype('<f4').tobytes()
        return base64.b64encode(packed).decode('ascii')


def build_instances(segments: Sequence[ToolpathSegment], radius: float) -> InstanceBatch:
    """세그먼트 배열 -> 같은 길이의 InstanceBatch"""
    return _instances_from_endpoints(segment_endpoints(segments), radius)


def _instances_from_endpoints(endpoints: np.ndarray, radius: float) -> InstanceBatch:
    n = endpoints.shape[0]
    if n == 0:
        return InstanceBatch.empty(radius)

    starts = endpoints[:, 0]
    ends = endpoints[:, 1]
    directions = ends - starts
    lengths = np.linalg.norm(directions, axis=1)

    translations = (starts + ends) * 0.5
    rotations = np.tile(_IDENTITY_ROTATION, (n, 1))
    scales = np.ones((n, 3))

    valid = lengths >= DEGENERATE_LENGTH
    if valid.any():
        unit = directions[valid] / lengths[valid][:, None]
        rotations[valid] = shortest_arc_from_up(unit)
        scales[valid] = np.column_stack([
            np.full(int(valid.sum()), radius),
            lengths[valid],
            np.full(int(valid.sum()), radius),
        ])

    return InstanceBatch(translations, rotations, scales, radius)


def _hex_to_rgb(color: str) -> Tuple[int, int, int]:
    value = color.lstrip('#')
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def blend_colors(color: str, target: str, amount: float) -> str:
    """color -> target 방향으로 amount(0~1)만큼 선형 보간, '#rrggbb' 반환"""
    src = _hex_to_rgb(color)
    dst = _hex_to_rgb(target)
    mixed = [round(a + (b - a) * amount) for a, b in zip(src, dst)]
    return '#' + ''.join(f'{max(0, min(255, c)):02x}' for c in mixed)


@dataclass(frozen=True, eq=False)
class GeometryResult:
    """GeometryBuilder 출력 (렌더러 전달용)"""
    extruding: InstanceBatch
    travel: InstanceBatch
    visible_bounds: BoundingBox
    extrusion_color: str
    travel_color: str
    extruding_segments: Tuple[ToolpathSegment, ...] = field(default=())
    travel_segments: Tuple[ToolpathSegment, ...] = field(default=())

    @property
    def is_empty(self) -> bool:
        return len(self.extruding) == 0 and len(self.travel) == 0

    def to_dict(self) -> Dict[str, Any]:
        """Float32Array + Base64 형식으로 반환"""
        return {
            "extrusion": {
                "count": len(self.extruding),
                "radius": self.extruding.radius,
                "color": self.extrusion_color,
                "matrixData": self.extruding.to_float32_base64(),
            },
            "travel": {
                "count": len(self.travel),
                "radius": self.travel.radius,
                "color": self.travel_color,
                "matrixData": self.travel.to_float32_base64(),
            },
            "visibleBounds": self.visible_bounds.to_dict(),
            "isEmpty": self.is_empty,
        }


def clamp_layer_index(model: ParsedModel, value: int) -> int:
    """슬라이더 값을 [0, 마지막 레이어 인덱스]로 제한"""
    return max(0, min(int(value), model.max_layer_index))


def build_geometry(
    model: ParsedModel,
    max_layer_index: int,
    config: Optional[DisplayConfig] = None,
) -> GeometryResult:
    """
    Derive instance transforms and padded visible bounds for layers <= max_layer_index.

    Args:
        model: 파싱 결과 (변경하지 않음)
        max_layer_index: 표시할 마지막 레이어 인덱스 (음수면 아무것도 표시하지 않음)
        config: 표시 설정

    Returns:
        GeometryResult - 보이는 세그먼트가 없으면 빈 배치와 빈 박스
    """
    config = config or get_default_display_config()
    travel_color = blend_colors(config.base_color, config.travel_blend_target, config.travel_blend)

    visible = [] if max_layer_index < 0 else list(model.iter_segments(max_layer_index))
    extruding = tuple(s for s in visible if s.extruding)
    travel = tuple(s for s in visible if not s.extruding) if config.travel_visible else ()

    extruding_points = segment_endpoints(extruding)
    travel_points = segment_endpoints(travel)

    # 실제로 보이는 종류의 반지름 중 큰 값만큼 확장
    radii = []
    if extruding:
        radii.append(config.extrusion_radius)
    if travel:
        radii.append(config.travel_radius)

    if radii:
        visible_bounds = box_from_points(
            np.concatenate([extruding_points, travel_points]),
            padding=max(radii),
        )
    else:
        visible_bounds = BoundingBox.empty()

    logger.debug(
        "Geometry up to layer %d: %d extruding, %d travel instances",
        max_layer_index, len(extruding), len(travel),
    )

    return GeometryResult(
        extruding=_instances_from_endpoints(extruding_points, config.extrusion_radius),
        travel=_instances_from_endpoints(travel_points, config.travel_radius),
        visible_bounds=visible_bounds,
        extrusion_color=config.base_color,
        travel_color=travel_color,
        extruding_segments=extruding,
        travel_segments=travel,
    )
