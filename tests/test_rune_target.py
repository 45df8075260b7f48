import pytest

from runeaim.rune_target import (
    RuneTarget,
    assign_r_center,
    average_r_center,
    build_rune_target,
    filter_by_color,
    select_target,
)
from runeaim.rune_types import EnemyColor, FeaturePoints, RuneObject, RuneType


def _obj(color, rtype, prob, r_center=(10.0, 20.0), offset=0.0):
    pts = FeaturePoints(
        r_center=r_center,
        bottom_left=(1.0 + offset, 2.0),
        top_left=(3.0 + offset, 4.0),
        top_right=(5.0 + offset, 6.0),
        bottom_right=(7.0 + offset, 8.0),
    )
    return RuneObject(color=color, type=rtype, prob=prob, pts=pts)


def test_default_target_is_lost_with_five_points():
    target = RuneTarget()
    assert target.is_lost is True
    assert len(target.pts) == 5


def test_filter_by_color_keeps_order_and_colour():
    a = _obj(EnemyColor.RED, RuneType.ACTIVATED, 0.5)
    b = _obj(EnemyColor.BLUE, RuneType.ACTIVATED, 0.6)
    c = _obj(EnemyColor.RED, RuneType.INACTIVATED, 0.7)
    result = filter_by_color([a, b, c], EnemyColor.RED)
    assert result == [a, c]
    assert all(o.color == EnemyColor.RED for o in result)


def test_average_of_equal_centres_is_that_centre():
    objs = [_obj(EnemyColor.RED, RuneType.ACTIVATED, 0.5, r_center=(12.0, 34.0)) for _ in range(3)]
    assert average_r_center(objs) == pytest.approx((12.0, 34.0))


def test_average_of_two_centres():
    objs = [
        _obj(EnemyColor.RED, RuneType.ACTIVATED, 0.5, r_center=(0.0, 0.0)),
        _obj(EnemyColor.RED, RuneType.ACTIVATED, 0.5, r_center=(2.0, 2.0)),
    ]
    assert average_r_center(objs) == pytest.approx((1.0, 1.0))


def test_average_of_nothing_raises():
    with pytest.raises(ValueError):
        average_r_center([])


def test_assign_r_center_sets_every_object():
    objs = [
        _obj(EnemyColor.RED, RuneType.ACTIVATED, 0.5, r_center=(0.0, 0.0)),
        _obj(EnemyColor.BLUE, RuneType.INACTIVATED, 0.9, r_center=(5.0, 6.0)),
    ]
    assign_r_center(objs, (42.0, 43.0))
    assert [o.pts.r_center for o in objs] == [(42.0, 43.0), (42.0, 43.0)]


def test_select_target_prefers_most_probable_inactivated():
    low = _obj(EnemyColor.BLUE, RuneType.INACTIVATED, 0.6)
    high = _obj(EnemyColor.BLUE, RuneType.INACTIVATED, 0.8)
    active = _obj(EnemyColor.BLUE, RuneType.ACTIVATED, 0.99)
    other = _obj(EnemyColor.RED, RuneType.INACTIVATED, 0.95)
    assert select_target([low, active, other, high], EnemyColor.BLUE) is high


def test_select_target_none_when_all_activated():
    objs = [_obj(EnemyColor.RED, RuneType.ACTIVATED, 0.9)]
    assert select_target(objs, EnemyColor.RED) is None


def test_build_target_uses_chosen_points_and_given_r_tag():
    chosen = _obj(EnemyColor.RED, RuneType.INACTIVATED, 0.9, offset=100.0)
    other = _obj(EnemyColor.RED, RuneType.ACTIVATED, 0.95)
    target = build_rune_target(
        [other, chosen], EnemyColor.RED, is_big_rune=True, frame_id="cam", stamp=7, r_tag=(50.0, 60.0)
    )
    assert target.is_lost is False
    assert target.is_big_rune is True
    assert target.frame_id == "cam"
    assert target.stamp == 7
    assert target.pts[0] == (50.0, 60.0)
    assert target.pts[1:] == chosen.pts.to_list()[1:]
    assert other.pts.r_center == (50.0, 60.0)


def test_build_target_averages_r_centre_without_r_tag():
    a = _obj(EnemyColor.BLUE, RuneType.INACTIVATED, 0.9, r_center=(8.0, 8.0))
    b = _obj(EnemyColor.BLUE, RuneType.ACTIVATED, 0.7, r_center=(8.0, 8.0))
    ignored = _obj(EnemyColor.RED, RuneType.INACTIVATED, 0.99, r_center=(1000.0, 1000.0))
    target = build_rune_target([a, b, ignored], EnemyColor.BLUE)
    assert target.is_lost is False
    assert target.pts[0] == pytest.approx((8.0, 8.0))
    assert ignored.pts.r_center == (1000.0, 1000.0)


def test_build_target_lost_when_no_matching_colour():
    objs = [_obj(EnemyColor.RED, RuneType.INACTIVATED, 0.9)]
    target = build_rune_target(objs, EnemyColor.BLUE, stamp=3)
    assert target.is_lost is True
    assert target.stamp == 3


def test_build_target_lost_when_all_activated():
    objs = [_obj(EnemyColor.RED, RuneType.ACTIVATED, 0.9)]
    target = build_rune_target(objs, EnemyColor.RED)
    assert target.is_lost is True