"""
G-code Preview Configuration
하드코딩 제거를 위한 설정 파일
"""
import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_HEX_COLOR = re.compile(r'^#[0-9a-fA-F]{6}$')

DEFAULT_TOOLPATH_COLOR = "#3b82f6"
TRAVEL_BLEND_TARGET = "#94a3b8"
EXTRUSION_RADIUS = 0.4
TRAVEL_RADIUS = EXTRUSION_RADIUS * 0.4


class InterpreterConfig(BaseModel):
    """해석 설정"""
    extrusion_epsilon: float = Field(1e-6, gt=0)  # 이보다 큰 E 증가량만 압출로 판단
    layer_z_threshold: float = Field(1e-3, ge=0)  # 부동소수점 노이즈 무시용 Z 상승 임계값
    use_layer_markers: bool = True               # ;LAYER:N, ;LAYER_CHANGE 등 슬라이서 마커 사용
    header_scan_limit: Optional[int] = Field(None, ge=0)  # None이면 첫 이동 명령까지 헤더 스캔

    model_config = {"frozen": True}


class DisplayConfig(BaseModel):
    """
    지오메트리 생성용 표시 설정 (저장하지 않음)

    travel_color는 base_color를 travel_blend_target 방향으로
    travel_blend 비율만큼 섞은 색.
    """
    extrusion_radius: float = Field(EXTRUSION_RADIUS, gt=0)
    travel_radius: float = Field(TRAVEL_RADIUS, gt=0)
    base_color: str = DEFAULT_TOOLPATH_COLOR
    travel_blend: float = Field(0.7, ge=0, le=1)
    travel_blend_target: str = TRAVEL_BLEND_TARGET
    travel_visible: bool = True

    model_config = {"frozen": True}

    @field_validator("base_color", "travel_blend_target")
    @classmethod
    def _check_hex_color(cls, value: str) -> str:
        if not _HEX_COLOR.match(value):
            raise ValueError(f"expected #rrggbb color, got {value!r}")
        return value.lower()


def get_default_config() -> InterpreterConfig:
    return InterpreterConfig()


def get_default_display_config() -> DisplayConfig:
    return DisplayConfig()
