import copy
import pickle

import pytest

from cnnlab.exceptions import ShapeMismatch
from cnnlab.neural_networks import Size


def test_divide_even():
    assert Size(28, 28).divide(Size(2, 2)) == Size(14, 14)
    assert Size(24, 12).divide(Size(4, 3)) == Size(6, 4)


def test_divide_uneven_raises_with_both_operands():
    with pytest.raises(ShapeMismatch) as excinfo:
        Size(28, 28).divide(Size(3, 3))
    message = str(excinfo.value)
    assert "Size(x=28, y=28)" in message
    assert "Size(x=3, y=3)" in message


def test_divide_uneven_in_one_dimension_only():
    with pytest.raises(ShapeMismatch):
        Size(28, 27).divide(Size(2, 2))


def test_subtract():
    assert Size(28, 28).subtract(Size(5, 5), 1) == Size(24, 24)
    assert Size(10, 8).subtract(Size(3, 2), 0) == Size(7, 6)


def test_subtract_whole_map_gives_single_cell():
    assert Size(4, 4).subtract(Size(4, 4), 1) == Size(1, 1)


def test_subtract_larger_kernel_raises():
    with pytest.raises(ShapeMismatch):
        Size(3, 3).subtract(Size(5, 5), 1)


@pytest.mark.parametrize("x, y", [(0, 1), (1, -2), (1.5, 2), (True, 2)])
def test_invalid_dimensions(x, y):
    with pytest.raises(ShapeMismatch):
        Size(x, y)


def test_immutable():
    size = Size(3, 4)
    with pytest.raises(AttributeError):
        size.x = 5
    assert size.as_tuple() == (3, 4)


def test_value_semantics():
    assert Size(3, 4) == Size(3, 4)
    assert Size(3, 4) != Size(4, 3)
    assert len({Size(3, 4), Size(3, 4)}) == 1
    assert tuple(Size(3, 4)) == (3, 4)
    assert str(Size(28, 28)) == "Size(x=28, y=28)"


def test_of_accepts_tuples():
    assert Size.of((5, 6)) == Size(5, 6)
    size = Size(2, 2)
    assert Size.of(size) is size
    with pytest.raises(ShapeMismatch):
        Size.of(5)


def test_copy_and_pickle():
    size = Size(3, 4)
    assert copy.copy(size) == size
    assert copy.deepcopy(size) == size
    restored = pickle.loads(pickle.dumps(size))
    assert restored == size
    with pytest.raises(AttributeError):
        restored.x = 1
