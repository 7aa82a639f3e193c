from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from pydantic import BaseModel

Vec3 = Tuple[float, float, float]
Quaternion = Tuple[float, float, float, float]  # (x, y, z, w)

_INF = float('inf')


# --- From Parser ---
class GCodeLine(BaseModel):
    index: int           # 1-based line number (원본 라인 번호)
    raw: str             # Original string
    cmd: str             # G1, G0, M104, etc. (빈 문자열이면 명령 없음)
    params: Dict[str, float]  # {"X": 10.2, "E": 42.123}
    comments: List[str] = []    # ";" 주석과 괄호 주석
    bad_tokens: List[str] = []  # 단어로 해석되지 않은 토큰

    @property
    def comment(self) -> Optional[str]:
        return " ".join(self.comments) if self.comments else None

    @property
    def is_blank(self) -> bool:
        return not self.cmd and not self.params and not self.bad_tokens


# --- From Interpreter ---
@dataclass(frozen=True)
class ToolpathSegment:
    """단일 이동 세그먼트 (mm 단위)"""
    start: Vec3
    end: Vec3
    extruding: bool


@dataclass(frozen=True)
class Layer:
    """단일 레이어 (index는 0부터 빈틈없이 증가)"""
    index: int
    segments: Tuple[ToolpathSegment, ...] = ()

    @property
    def z(self) -> float:
        return self.segments[0].end[2] if self.segments else 0.0

    @property
    def extrusion_count(self) -> int:
        return sum(1 for s in self.segments if s.extruding)

    @property
    def travel_count(self) -> int:
        return len(self.segments) - self.extrusion_count


@dataclass(frozen=True)
class BoundingBox:
    """
    3D 축 정렬 바운딩 박스

    빈 박스는 min=+inf, max=-inf 센티널로 표현한다.
    size/center를 쓰기 전에 is_empty를 반드시 확인할 것.
    """
    min: Vec3 = (_INF, _INF, _INF)
    max: Vec3 = (-_INF, -_INF, -_INF)

    @classmethod
    def empty(cls) -> "BoundingBox":
        return cls()

    @property
    def is_empty(self) -> bool:
        return any(lo > hi for lo, hi in zip(self.min, self.max))

    @property
    def size(self) -> Vec3:
        if self.is_empty:
            return (0.0, 0.0, 0.0)
        return tuple(hi - lo for lo, hi in zip(self.min, self.max))

    @property
    def center(self) -> Vec3:
        if self.is_empty:
            return (0.0, 0.0, 0.0)
        return tuple((lo + hi) * 0.5 for lo, hi in zip(self.min, self.max))

    def expand_by_scalar(self, amount: float) -> "BoundingBox":
        if self.is_empty:
            return self
        return BoundingBox(
            min=tuple(v - amount for v in self.min),
            max=tuple(v + amount for v in self.max),
        )

    def union(self, other: "BoundingBox") -> "BoundingBox":
        if self.is_empty:
            return other
        if other.is_empty:
            return self
        return BoundingBox(
            min=tuple(min(a, b) for a, b in zip(self.min, other.min)),
            max=tuple(max(a, b) for a, b in zip(self.max, other.max)),
        )

    def contains_point(self, point: Vec3) -> bool:
        return all(lo <= p <= hi for lo, p, hi in zip(self.min, point, self.max))

    def to_dict(self) -> Dict[str, float]:
        if self.is_empty:
            return {"minX": 0, "maxX": 0, "minY": 0, "maxY": 0, "minZ": 0, "maxZ": 0}
        return {
            "minX": round(self.min[0], 3),
            "maxX": round(self.max[0], 3),
            "minY": round(self.min[1], 3),
            "maxY": round(self.max[1], 3),
            "minZ": round(self.min[2], 3),
            "maxZ": round(self.max[2], 3),
        }


@dataclass(frozen=True)
class ParsedModel:
    """
    Interpreter + LayerAggregator + BoundsCalculator 최종 결과

    생성 후 변경하지 않는다. 다시 표시할 때는 지오메트리를 새로 만든다.
    """
    layers: Tuple[Layer, ...] = ()
    bounds: BoundingBox = field(default_factory=BoundingBox.empty)
    estimated_height: float = 0.0
    metadata: Mapping[str, str] = field(default_factory=dict)
    total_commands: int = 0

    def __post_init__(self):
        # 읽기 전용 사본으로 고정
        object.__setattr__(self, 'metadata', MappingProxyType(dict(self.metadata)))

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    @property
    def max_layer_index(self) -> int:
        """마지막 레이어 인덱스 (레이어가 없으면 0)"""
        return self.layers[-1].index if self.layers else 0

    @property
    def segments(self) -> Tuple[ToolpathSegment, ...]:
        return tuple(self.iter_segments())

    def iter_segments(self, max_layer_index: Optional[int] = None) -> Iterator[ToolpathSegment]:
        """시간 순서대로 세그먼트 순회 (max_layer_index 이하 레이어만)"""
        for layer in self.layers:
            if max_layer_index is not None and layer.index > max_layer_index:
                break
            yield from layer.segments


# --- From GeometryBuilder ---
@dataclass(frozen=True)
class InstanceTransform:
    """인스턴스 하나의 변환 (translation, rotation, scale)"""
    translation: Vec3
    rotation: Quaternion = (0.0, 0.0, 0.0, 1.0)
    scale: Vec3 = (1.0, 1.0, 1.0)

    @property
    def is_identity_rotation(self) -> bool:
        return self.rotation == (0.0, 0.0, 0.0, 1.0)
