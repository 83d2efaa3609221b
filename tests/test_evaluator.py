import pytest

from price_tracker.evaluator import Decision, evaluate
from tests.conftest import make_alert


@pytest.mark.parametrize("current,expected", [
    (499.0, Decision.FIRE),
    (500.0, Decision.FIRE),      # equality fires
    (0.0, Decision.FIRE),
    (500.01, Decision.NO_FIRE),
    (520.0, Decision.NO_FIRE),
])
def test_threshold_is_inclusive(current, expected):
    assert evaluate(make_alert(target=500.0), current) is expected


def test_zero_target_only_fires_on_free():
    alert = make_alert(target=0.0)
    assert evaluate(alert, 0.0) is Decision.FIRE
    assert evaluate(alert, 0.5) is Decision.NO_FIRE
