from __future__ import annotations

import pytest

from tradelab.strats.common import Strategy, crossed_above, crossed_below, param_names
from tradelab.strats.sma_crossover import SmaCrossover


def test_crossed_above_requires_strict_move():
    assert crossed_above(1.0, 2.0, 1.0, 1.5)
    assert not crossed_above(1.0, 1.5, 1.0, 1.5)  # touching is not crossing
    assert not crossed_above(2.0, 3.0, 1.0, 1.5)  # already above


def test_crossed_below_mirrors_above():
    assert crossed_below(2.0, 1.0, 2.0, 1.5)
    assert not crossed_below(1.0, 0.5, 1.5, 1.0)


def test_param_names_lists_dataclass_fields():
    assert param_names(SmaCrossover) == {"fast", "slow"}


def test_strategy_without_evaluate_cannot_be_built():
    class Incomplete(Strategy):
        strategy_id = "incomplete"

    with pytest.raises(TypeError):
        Incomplete()
