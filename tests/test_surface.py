from __future__ import annotations

import pytest

from allocviz.geometry import DrawableSize
from allocviz.surface import RenderSurface, heatmap_spec, time_series_spec


@pytest.mark.parametrize(
    ("container", "expected"),
    [(800.0, (1200.0, 675.0)), (1200.0, (1200.0, 675.0)), (1600.0, (1600.0, 900.0))],
)
def test_time_series_width_has_a_floor_and_keeps_aspect(
    container: float, expected: tuple[float, float]
) -> None:
    size = time_series_spec().measure(container)
    assert (size.width, size.height) == expected


def test_time_series_inner_area_excludes_margins() -> None:
    size = time_series_spec().measure(800.0)
    assert (size.inner_width, size.inner_height) == (1100.0, 595.0)


def test_heatmap_height_is_fixed() -> None:
    spec = heatmap_spec()
    assert spec.measure(500.0).height == 230.0
    assert spec.measure(1500.0, 900.0).height == 230.0
    assert spec.measure(1500.0).width == 1500.0
    assert heatmap_spec(cell_size=20, cell_margin=4).measure(100.0).height == 7 * 24 * 2


def test_notify_resize_only_fires_on_change() -> None:
    surface = RenderSurface(time_series_spec())
    seen: list[DrawableSize] = []
    surface.on_resize(seen.append)
    assert surface.size is None
    assert surface.notify_resize(1300.0)
    assert not surface.notify_resize(1300.0)
    # 900 and 1000 both clamp to the 1200 floor
    assert surface.notify_resize(900.0)
    assert not surface.notify_resize(1000.0)
    assert [size.width for size in seen] == [1300.0, 1200.0]
    assert surface.size == seen[-1]


def test_unsubscribed_handler_is_not_called() -> None:
    surface = RenderSurface(heatmap_spec())
    seen: list[DrawableSize] = []
    unsubscribe = surface.on_resize(seen.append)
    surface.notify_resize(700.0)
    unsubscribe()
    unsubscribe()
    surface.notify_resize(800.0)
    assert len(seen) == 1
