"""
Map and kernel sizes.
"""
import numbers

from ..exceptions import ShapeMismatch


class Size:
    """
    Width/height pair of a feature map, convolution kernel or pooling window.

    Both dimensions are positive integers and the value cannot be changed
    once built.
    """
    __slots__ = ("_x", "_y")

    def __init__(self, x, y):
        for dim in (x, y):
            if (isinstance(dim, bool) or not isinstance(dim, numbers.Integral)
                    or dim <= 0):
                raise ShapeMismatch(
                    f"Size dimensions must be positive integers, got ({x}, {y})")
        object.__setattr__(self, "_x", int(x))
        object.__setattr__(self, "_y", int(y))

    def __setattr__(self, name, value):
        raise AttributeError("Size is immutable")

    def __reduce__(self):
        return (Size, (self._x, self._y))

    @property
    def x(self):
        """Width."""
        return self._x

    @property
    def y(self):
        """Height."""
        return self._y

    @classmethod
    def of(cls, value):
        """Coerce a Size or an (x, y) pair into a Size."""
        if isinstance(value, cls):
            return value
        try:
            x, y = value
        except (TypeError, ValueError) as exc:
            raise ShapeMismatch(f"Cannot interpret {value!r} as a Size") from exc
        return cls(x, y)

    def divide(self, scale_size):
        """
        Divide exactly by a pooling window.

        Args:
            scale_size (Size): Divisor, each dimension must divide this one evenly

        Returns:
            Size: (x / scale_size.x, y / scale_size.y)

        Raises:
            ShapeMismatch: If either dimension leaves a remainder
        """
        scale_size = Size.of(scale_size)
        if self._x % scale_size.x or self._y % scale_size.y:
            raise ShapeMismatch(f"{self} is not divisible by {scale_size}")
        return Size(self._x // scale_size.x, self._y // scale_size.y)

    def subtract(self, size, append):
        """
        Subtract a kernel size and add `append` to both dimensions.

        A kernel of width N covers N - 1 offsets, so a valid convolution uses
        append=1.

        Args:
            size (Size): Size to subtract
            append (int): Value added to each dimension afterwards

        Returns:
            Size: (x - size.x + append, y - size.y + append)
        """
        size = Size.of(size)
        x = self._x - size.x + append
        y = self._y - size.y + append
        if x <= 0 or y <= 0:
            raise ShapeMismatch(
                f"{self} minus {size} plus {append} leaves an empty map")
        return Size(x, y)

    def as_tuple(self):
        """Return (x, y), the numpy shape of a map of this size."""
        return (self._x, self._y)

    def __iter__(self):
        return iter((self._x, self._y))

    def __eq__(self, other):
        if isinstance(other, Size):
            return self.as_tuple() == other.as_tuple()
        return NotImplemented

    def __hash__(self):
        return hash((Size, self._x, self._y))

    def __repr__(self):
        return f"Size(x={self._x}, y={self._y})"
