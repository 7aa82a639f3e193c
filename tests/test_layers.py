"""
LayerAggregator 테스트
"""
from gcode_preview.layers import aggregate
from gcode_preview.models import ToolpathSegment


def chain(*zs, extruding=True):
    """Z 목록으로 연속 세그먼트 생성 (x는 1씩 증가)"""
    segments = []
    start = (0.0, 0.0, zs[0])
    for i, z in enumerate(zs):
        end = (float(i + 1), 0.0, z)
        segments.append(ToolpathSegment(start=start, end=end, extruding=extruding))
        start = end
    return segments


class TestZRise:
    """마커 없는 Z 상승 감지"""

    def test_empty(self):
        assert aggregate([]) == ()

    def test_single_layer(self):
        layers = aggregate(chain(0.2, 0.2, 0.2))
        assert len(layers) == 1
        assert layers[0].index == 0
        assert len(layers[0].segments) == 3

    def test_rise_starts_new_layer(self):
        layers = aggregate(chain(0.2, 0.2, 0.4))
        assert [len(layer.segments) for layer in layers] == [2, 1]
        assert [layer.index for layer in layers] == [0, 1]

    def test_noise_is_ignored(self):
        layers = aggregate(chain(0.2, 0.2000001, 0.2))
        assert len(layers) == 1

    def test_drop_lowers_reference(self):
        """시작 코드 Z 리프트 후 첫 레이어 높이로 내려와도 다음 레이어 감지"""
        layers = aggregate(chain(5.0, 0.2, 0.2, 0.4))
        assert [len(layer.segments) for layer in layers] == [3, 1]

    def test_custom_threshold(self):
        layers = aggregate(chain(0.2, 0.25, 0.3), z_threshold=0.1)
        assert len(layers) == 1

    def test_travel_z_hop_opens_layer_without_markers(self):
        """Z 상승 폴백에서는 travel Z-hop도 새 레이어"""
        layers = aggregate(chain(0.2, 0.2, 0.6, 0.2))
        assert [len(layer.segments) for layer in layers] == [2, 2]

    def test_markers_suppress_z_hop_boundaries(self):
        layers = aggregate(chain(0.2, 0.2, 0.6, 0.2), markers=[4])
        assert len(layers) == 1

    def test_chronological_order_kept(self):
        segments = chain(0.2, 0.2, 0.4, 0.4, 0.6)
        layers = aggregate(segments)
        flattened = [s for layer in layers for s in layer.segments]
        assert flattened == segments


class TestMarkers:
    """명시적 레이어 마커"""

    def test_markers_take_precedence(self):
        """마커가 있으면 Z 상승은 경계가 아님"""
        layers = aggregate(chain(0.2, 0.4, 0.4), markers=[2])
        assert [len(layer.segments) for layer in layers] == [2, 1]

    def test_marker_before_first_segment(self):
        """빈 레이어는 만들지 않음"""
        layers = aggregate(chain(0.2, 0.2), markers=[0])
        assert len(layers) == 1

    def test_duplicate_markers(self):
        layers = aggregate(chain(0.2, 0.2, 0.2), markers=[1, 1, 3])
        assert [len(layer.segments) for layer in layers] == [1, 2]

    def test_dense_indices(self):
        layers = aggregate(chain(*([0.2] * 6)), markers=[1, 2, 4])
        assert [layer.index for layer in layers] == [0, 1, 2, 3]

    def test_layer_z(self):
        layers = aggregate(chain(0.2, 0.2, 0.4))
        assert layers[0].z == 0.2
        assert layers[1].z == 0.4
