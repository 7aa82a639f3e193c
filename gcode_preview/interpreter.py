"""
G-code Interpreter
명령 스트림을 해석하여 이동 세그먼트, 헤더 메타데이터, 레이어 마커를 추출

모달 상태 (위치, G90/G91, M82/M83, G20/G21, 마지막 이동 모드)는
MachineState 값으로 명시적으로 전달되고, step()이 새 상태를 반환한다.
"""
import logging
import re
from collections import Counter
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .bounds import compute_bounds
from .config import InterpreterConfig, get_default_config
from .errors import ParseError
from .layers import aggregate
from .models import GCodeLine, ParsedModel, ToolpathSegment, Vec3
from .parser import parse_text

logger = logging.getLogger(__name__)

MILLIMETERS = 1.0
INCHES = 25.4

LINEAR_MOTION = ('G0', 'G1')
CURVED_MOTION = ('G2', 'G3')
MODAL_COMMANDS = ('G20', 'G21', 'G90', 'G91', 'M82', 'M83')
POSITION_COMMANDS = ('G28', 'G92')
AXES = ('X', 'Y', 'Z', 'E')

# 슬라이서별 레이어 마커 패턴 (주석 텍스트 기준)
_LAYER_MARKERS = [
    re.compile(r'^LAYER:\s*-?\d+', re.IGNORECASE),                                # Cura
    re.compile(r'^LAYER_CHANGE\b', re.IGNORECASE),                               # OrcaSlicer / PrusaSlicer
    re.compile(r'^layer num/total_layer_count:\s*\d+\s*/\s*\d+', re.IGNORECASE),  # BambuStudio
    re.compile(r'^layer\s+\d+', re.IGNORECASE),                                   # Simplify3D
]

# 헤더 주석 어노테이션: "key = value" 또는 Cura 스타일 "KEY:value"
_KEY_VALUE = re.compile(r'^([^=]+?)\s*=\s*(.*?)$')
_KEY_COLON = re.compile(r'^([A-Za-z_][A-Za-z0-9_ \-]*?)\s*:\s*(.*?)$')


class Mode(str, Enum):
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


@dataclass(frozen=True)
class MachineState:
    """해석 중 모달 머신 상태 (한 번의 interpret 호출 안에서만 존재)"""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    e: float = 0.0
    positioning: Mode = Mode.ABSOLUTE   # G90/G91 (X, Y, Z)
    extrusion: Mode = Mode.ABSOLUTE     # M82/M83 (E)
    unit_scale: float = MILLIMETERS     # G21/G20
    motion_mode: Optional[str] = None   # 축만 있는 라인에 쓰일 마지막 G0/G1/G2/G3

    @property
    def position(self) -> Vec3:
        return (self.x, self.y, self.z)


def is_layer_marker(line: GCodeLine) -> bool:
    """명시적 레이어 변경 마커 여부"""
    if line.cmd == 'M73' and 'L' in line.params:
        return True
    return any(p.match(c) for c in line.comments for p in _LAYER_MARKERS)


def parse_header_annotation(comment: str) -> Optional[Tuple[str, str]]:
    """
    헤더 주석에서 (key, value) 추출

    >>> parse_header_annotation("layer_height = 0.2")
    ('layer_height', '0.2')
    >>> parse_header_annotation("FLAVOR:Marlin")
    ('FLAVOR', 'Marlin')
    """
    text = comment.strip()
    match = _KEY_VALUE.match(text) or _KEY_COLON.match(text)
    if not match:
        return None
    key = match.group(1).strip()
    if not key:
        return None
    return key, match.group(2).strip()


def _is_motion_line(line: GCodeLine, state: MachineState) -> bool:
    """
    G0/G1 또는 이전 G0/G1 모드를 이어받는 축만 있는 라인

    축 단어가 하나라도 있으면 해석 불가 토큰이 섞여 있어도 이동 라인으로 본다
    (step에서 ParseError). 축 단어가 없는 매크로 라인은 해당하지 않음.
    """
    if line.cmd in LINEAR_MOTION:
        return True
    return (
        not line.cmd
        and state.motion_mode in LINEAR_MOTION
        and any(axis in line.params for axis in AXES)
    )


def _is_curved_line(line: GCodeLine, state: MachineState) -> bool:
    if line.cmd in CURVED_MOTION:
        return True
    return (
        not line.cmd
        and state.motion_mode in CURVED_MOTION
        and any(axis in line.params for axis in AXES)
    )


def _reject_bad_tokens(line: GCodeLine, allow_flags: bool = False):
    for token in line.bad_tokens:
        # G28 X Y, G28 W 처럼 숫자 없는 단일 문자 플래그
        if allow_flags and len(token) == 1 and token.isalpha():
            continue
        raise ParseError(line.index, f"unparsable token '{token}' in '{line.raw.strip()}'")


def _move(state: MachineState, line: GCodeLine, config: InterpreterConfig) -> Tuple[MachineState, ToolpathSegment]:
    params = line.params
    scale = state.unit_scale
    relative_xyz = state.positioning == Mode.RELATIVE
    relative_e = state.extrusion == Mode.RELATIVE

    new = {}
    for axis, current in (('X', state.x), ('Y', state.y), ('Z', state.z)):
        if axis in params:
            value = params[axis] * scale
            new[axis] = current + value if relative_xyz else value
        else:
            new[axis] = current

    new_e = state.e
    if 'E' in params:
        value = params['E'] * scale
        new_e = state.e + value if relative_e else value

    # 두 모드 모두 E 증가량으로 정규화 (리트랙션/0 = 이동)
    e_delta = new_e - state.e

    segment = ToolpathSegment(
        start=state.position,
        end=(new['X'], new['Y'], new['Z']),
        extruding=e_delta > config.extrusion_epsilon,
    )
    next_state = replace(
        state,
        x=new['X'], y=new['Y'], z=new['Z'], e=new_e,
        motion_mode=line.cmd or state.motion_mode,
    )
    return next_state, segment


def step(
    state: MachineState,
    line: GCodeLine,
    config: Optional[InterpreterConfig] = None,
) -> Tuple[MachineState, Optional[ToolpathSegment]]:
    """
    Interpret one tokenized line.

    Returns:
        (다음 상태, 세그먼트 또는 None)

    Raises:
        ParseError: 이동 라인에 해석 불가능한 토큰이 있는 경우
    """
    config = config or get_default_config()
    cmd = line.cmd

    if _is_motion_line(line, state):
        _reject_bad_tokens(line)
        return _move(state, line, config)

    if cmd == 'G90':
        return replace(state, positioning=Mode.ABSOLUTE), None
    if cmd == 'G91':
        return replace(state, positioning=Mode.RELATIVE), None
    if cmd == 'M82':
        return replace(state, extrusion=Mode.ABSOLUTE), None
    if cmd == 'M83':
        return replace(state, extrusion=Mode.RELATIVE), None
    if cmd == 'G20':
        return replace(state, unit_scale=INCHES), None
    if cmd == 'G21':
        return replace(state, unit_scale=MILLIMETERS), None

    if cmd == 'G92':
        # 위치 재정의 (물리적 이동 없음, 세그먼트 없음)
        _reject_bad_tokens(line)
        changes = {
            axis.lower(): line.params[axis] * state.unit_scale
            for axis in AXES if axis in line.params
        }
        return replace(state, **changes), None

    if cmd == 'G28':
        # 홈 복귀: 지정 축 (없으면 X/Y/Z 전체)을 0으로
        _reject_bad_tokens(line, allow_flags=True)
        flags = {t.upper() for t in line.bad_tokens}
        named = {axis for axis in ('X', 'Y', 'Z') if axis in line.params or axis in flags}
        homed = named or {'X', 'Y', 'Z'}
        return replace(state, **{axis.lower(): 0.0 for axis in homed}), None

    if cmd in CURVED_MOTION:
        # 원호 이동은 미지원: 위치를 바꾸지 않고 건너뜀
        return replace(state, motion_mode=cmd), None

    return state, None


def interpret(text: str, config: Optional[InterpreterConfig] = None) -> ParsedModel:
    """
    Interpret complete G-code text into an immutable ParsedModel.

    Raises:
        ParseError: 잘못된 입력 (부분 결과 없음)
    """
    config = config or get_default_config()

    state = MachineState()
    segments: List[ToolpathSegment] = []
    markers: List[int] = []
    metadata: Dict[str, str] = {}
    ignored: Counter = Counter()
    curved_skipped = 0
    in_header = True
    line_count = 0

    for line in parse_text(text):
        line_count += 1

        if config.header_scan_limit is not None and line.index > config.header_scan_limit:
            in_header = False

        motion = _is_motion_line(line, state)
        if motion:
            in_header = False

        marker = is_layer_marker(line)
        if marker:
            markers.append(len(segments))

        if in_header and not marker:
            for comment in line.comments:
                annotation = parse_header_annotation(comment)
                if annotation:
                    key, value = annotation
                    metadata[key] = value

        if line.is_blank:
            continue

        if not motion and _is_curved_line(line, state):
            curved_skipped += 1
        elif not motion and line.cmd and line.cmd not in MODAL_COMMANDS + POSITION_COMMANDS:
            ignored[line.cmd] += 1

        state, segment = step(state, line, config)
        if segment is not None:
            segments.append(segment)

    if curved_skipped:
        logger.warning("Skipped %d curved move(s): G2/G3 are not supported", curved_skipped)
    if ignored:
        logger.debug("Ignored commands: %s", dict(ignored.most_common(10)))

    layers = aggregate(
        segments,
        markers=markers if config.use_layer_markers else (),
        z_threshold=config.layer_z_threshold,
    )
    box, estimated_height, command_count = compute_bounds(segments)

    logger.info(
        "Interpreted %d lines: %d segments, %d layers",
        line_count, len(segments), len(layers),
    )

    return ParsedModel(
        layers=layers,
        bounds=box,
        estimated_height=estimated_height,
        metadata=metadata,
        total_commands=command_count,
    )


parse_gcode = interpret
