"""
Exceptions raised by the layer model.
"""


class ShapeMismatch(ValueError):
    """Raised when two sizes are incompatible or a matrix has the wrong shape."""


class InvalidLayerOperation(TypeError):
    """
    Raised when an operation is not legal for a layer.

    Either the layer type does not carry the state being touched (kernels on a
    sampling layer) or the layer is not at the right point of its lifecycle
    (writing activations before they are allocated).
    """


class IndexOutOfRange(IndexError):
    """Raised when a record, map or cell index falls outside the allocated grid."""
