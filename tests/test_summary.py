"""
모델 요약 / 설정 테스트
"""
import pytest
from pydantic import ValidationError

from gcode_preview import DisplayConfig, InterpreterConfig, interpret, summarize
from gcode_preview.models import Layer, ToolpathSegment
from gcode_preview.summary import estimate_first_layer_height, estimate_layer_height

SAMPLE = """; layer_height = 0.2
G28
G1 Z0.2 F3000
G1 X10 Y0 E1
G1 X10 Y10 E2
G1 E1.5
G0 X0 Y0
G1 Z0.4
G1 X10 Y0 E2.5
"""


def layer_at(index, z):
    segment = ToolpathSegment(start=(0.0, 0.0, z), end=(1.0, 0.0, z), extruding=True)
    return Layer(index=index, segments=(segment,))


class TestSummarize:

    def test_counts(self):
        summary = summarize(interpret(SAMPLE))
        assert summary.total_commands == 7
        assert summary.layer_count == 2
        assert summary.extrusion_count == 3
        assert summary.travel_count == 4
        assert summary.metadata == {"layer_height": "0.2"}

    def test_heights(self):
        summary = summarize(interpret(SAMPLE))
        assert summary.estimated_height == pytest.approx(0.4)
        assert summary.layer_height == pytest.approx(0.2)
        assert summary.first_layer_height == pytest.approx(0.2)

    def test_to_dict(self):
        data = summarize(interpret(SAMPLE)).to_dict()
        assert data["boundingBox"] == {"minX": 0, "maxX": 10, "minY": 0, "maxY": 10, "minZ": 0, "maxZ": 0.4}
        assert data["boundsEmpty"] is False
        assert data["layerCount"] == 2

    def test_empty_model(self):
        summary = summarize(interpret(""))
        assert summary.bounds_empty is True
        assert summary.layer_count == 0
        assert summary.estimated_height == 0.0
        assert summary.layer_height == pytest.approx(0.2)


class TestLayerHeightEstimate:

    def test_uniform_layers(self):
        layers = [layer_at(i, 0.3 + 0.15 * i) for i in range(10)]
        assert estimate_layer_height(layers) == pytest.approx(0.15)

    def test_outliers_ignored(self):
        """0.04~0.5mm 범위 밖 차이는 제외"""
        zs = [0.2, 0.4, 0.6, 5.0, 5.2, 5.4]
        layers = [layer_at(i, z) for i, z in enumerate(zs)]
        assert estimate_layer_height(layers) == pytest.approx(0.2)

    def test_trimmed_mean(self):
        """상하위 25% 제거: [0.2, 0.2, 0.2, 0.45] -> 가운데 두 값 평균"""
        zs = [0.2, 0.4, 0.6, 0.8, 1.25]
        layers = [layer_at(i, z) for i, z in enumerate(zs)]
        assert estimate_layer_height(layers) == pytest.approx(0.2)

    def test_only_leading_layers_sampled(self):
        zs = [0.1 * (i + 1) for i in range(20)] + [2.0 + 0.3 * i for i in range(1, 30)]
        layers = [layer_at(i, z) for i, z in enumerate(zs)]
        assert estimate_layer_height(layers) == pytest.approx(0.1)

    def test_single_layer_default(self):
        assert estimate_layer_height([layer_at(0, 0.3)]) == pytest.approx(0.2)

    def test_first_layer_after_start_lift(self):
        """시작 코드 Z 이동으로 첫 레이어가 높으면 다음 레이어 Z"""
        layers = [layer_at(0, 5.0), layer_at(1, 0.3)]
        assert estimate_first_layer_height(layers) == pytest.approx(0.3)

    def test_first_layer(self):
        assert estimate_first_layer_height([layer_at(0, 0.28)]) == pytest.approx(0.28)
        assert estimate_first_layer_height([]) == pytest.approx(0.2)


class TestConfig:

    def test_defaults(self):
        config = DisplayConfig()
        assert config.extrusion_radius == pytest.approx(0.4)
        assert config.travel_radius == pytest.approx(0.16)
        assert config.travel_visible is True

    def test_color_normalized(self):
        assert DisplayConfig(base_color="#ABCDEF").base_color == "#abcdef"

    @pytest.mark.parametrize("kwargs", [
        {"base_color": "blue"},
        {"travel_blend": 1.5},
        {"extrusion_radius": 0},
    ])
    def test_invalid_display_config(self, kwargs):
        with pytest.raises(ValidationError):
            DisplayConfig(**kwargs)

    def test_invalid_interpreter_config(self):
        with pytest.raises(ValidationError):
            InterpreterConfig(extrusion_epsilon=0)

    def test_frozen(self):
        config = InterpreterConfig()
        with pytest.raises(ValidationError):
            config.layer_z_threshold = 0.5
