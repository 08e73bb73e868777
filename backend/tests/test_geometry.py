import math
from types import SimpleNamespace

import pytest

from app.services.geometry import (
    calculate_volume, calculate_weight, exceeds_capacity_warning,
    TankGeometryError, InvalidLevelError, CalculationError, validate_geometry,
)


def tank(**kwargs):
    defaults = dict(
        capacity_liters=1000.0,
        geo_factor=10.0,
        input_unit="CM",
        shape_type=None,
        dimensions=None,
        max_capacity_warning_kg=None,
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class TestLinearFactor:
    def test_level_times_factor(self):
        result = calculate_volume(tank(), 50)
        assert result.volume_liters == pytest.approx(500.0)
        assert result.over_capacity is False

    def test_clamped_to_capacity(self):
        result = calculate_volume(tank(), 150)
        assert result.volume_liters == pytest.approx(1000.0)
        assert result.raw_volume_liters == pytest.approx(1500.0)
        assert result.over_capacity is True

    def test_negative_level_floors_at_zero(self):
        assert calculate_volume(tank(), -5).volume_liters == 0.0

    def test_non_positive_factor_is_configuration_error(self):
        with pytest.raises(TankGeometryError):
            calculate_volume(tank(geo_factor=0), 10)


class TestPercentUnit:
    def test_percent_of_capacity(self):
        result = calculate_volume(tank(capacity_liters=2000.0, input_unit="PERCENT"), 25)
        assert result.volume_liters == pytest.approx(500.0)

    @pytest.mark.parametrize("level", [-1, 100.5])
    def test_out_of_range_rejected(self, level):
        with pytest.raises(InvalidLevelError):
            calculate_volume(tank(input_unit="PERCENT"), level)


class TestShapes:
    def test_vertical_cylinder(self):
        t = tank(capacity_liters=10000.0, shape_type="VERTICAL_CYLINDER",
                 dimensions={"diameter": 100, "height": 200})
        expected = math.pi * 50 ** 2 * 50 / 1000
        assert calculate_volume(t, 50).volume_liters == pytest.approx(expected)

    def test_vertical_cylinder_capped_at_height(self):
        t = tank(capacity_liters=10000.0, shape_type="VERTICAL_CYLINDER",
                 dimensions={"diameter": 100, "height": 200})
        expected = math.pi * 50 ** 2 * 200 / 1000
        assert calculate_volume(t, 250).volume_liters == pytest.approx(expected)

    def test_rectangular_with_sensor_offset(self):
        t = tank(shape_type="RECTANGULAR", dimensions={"length": 100, "width": 50, "sensor_offset": 10})
        # (20 + 10) cm * 100 * 50 = 150000 cm3
        assert calculate_volume(t, 20).volume_liters == pytest.approx(150.0)

    def test_horizontal_cylinder_full_flat_heads(self):
        t = tank(capacity_liters=5000.0, shape_type="HORIZONTAL_CYLINDER",
                 dimensions={"diameter": 100, "length": 200, "head_type": "FLAT"})
        expected = math.pi * 50 ** 2 * 200 / 1000
        assert calculate_volume(t, 100).volume_liters == pytest.approx(expected)

    def test_horizontal_cylinder_half_hemispherical(self):
        t = tank(capacity_liters=5000.0, shape_type="HORIZONTAL_CYLINDER",
                 dimensions={"diameter": 100, "length": 200, "head_type": "HEMISPHERICAL"})
        body = math.pi * 50 ** 2 * 200 / 2
        heads = (4 / 3) * math.pi * 50 ** 3 / 2
        assert calculate_volume(t, 50).volume_liters == pytest.approx((body + heads) / 1000)

    def test_semi_elliptical_is_default_and_half_of_hemispherical_heads(self):
        dims = {"diameter": 100, "length": 200}
        default = calculate_volume(tank(capacity_liters=5000.0, shape_type="HORIZONTAL_CYLINDER", dimensions=dims), 50)
        body = math.pi * 50 ** 2 * 200 / 2
        heads = (4 / 3) * math.pi * 50 ** 3 / 4
        assert default.volume_liters == pytest.approx((body + heads) / 1000)

    def test_missing_dimension_raises(self):
        t = tank(shape_type="VERTICAL_CYLINDER", dimensions={"height": 100})
        with pytest.raises(TankGeometryError):
            calculate_volume(t, 10)

    def test_dimensions_without_shape_raise(self):
        with pytest.raises(TankGeometryError):
            calculate_volume(tank(dimensions={"diameter": 100}), 10)


class TestValidateGeometry:
    def test_linear_and_complete_shapes_pass(self):
        validate_geometry(tank())
        validate_geometry(tank(shape_type="RECTANGULAR", dimensions={"length": 100, "width": 50, "height": 80}))

    @pytest.mark.parametrize("shape, dims", [
        ("VERTICAL_CYLINDER", {"diameter": -100, "height": 200}),
        ("VERTICAL_CYLINDER", {"diameter": 100, "height": 0}),
        ("HORIZONTAL_CYLINDER", {"diameter": 100}),
        ("RECTANGULAR", None),
        (None, {"diameter": 100}),
        ("SPHERE", {"diameter": 100}),
    ])
    def test_unusable_shapes_raise(self, shape, dims):
        with pytest.raises(TankGeometryError):
            validate_geometry(tank(shape_type=shape, dimensions=dims))

    def test_percent_tanks_are_not_checked(self):
        validate_geometry(tank(input_unit="PERCENT", shape_type="RECTANGULAR", dimensions=None))


def test_weight_uses_specific_gravity():
    assert calculate_weight(100.0, 1.2) == pytest.approx(120.0)


def test_weight_rejects_non_positive_sg():
    with pytest.raises(CalculationError):
        calculate_weight(100.0, 0)


def test_capacity_warning():
    t = tank(max_capacity_warning_kg=500.0)
    assert exceeds_capacity_warning(t, 500.1) is True
    assert exceeds_capacity_warning(t, 500.0) is False
    assert exceeds_capacity_warning(tank(), 10_000) is False
