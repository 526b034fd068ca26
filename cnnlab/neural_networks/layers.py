"""
Layer model of a convolutional neural network.

Each layer stores its static configuration (map size, kernel or pooling size,
number of output maps), its learnable parameters (kernels and biases, only on
convolution and output layers) and the per-batch activation and error maps.
Activation and error maps are indexed by [record][map]; kernels by
[front_map][map].
"""
from abc import abstractmethod

import numpy as np

from ..base import BaseComponent
from ..exceptions import IndexOutOfRange, InvalidLayerOperation, ShapeMismatch
from ._size import Size


class BatchCursor:
    """
    Index of the record of the current mini-batch being written.

    One cursor is shared by every layer of a network, so that the
    record-implicit writes of all layers land in the same batch slot.
    """

    def __init__(self):
        """Constructor"""
        self.record = 0

    def prepare_for_new_batch(self):
        """Reset to the first record of a new mini-batch."""
        self.record = 0

    def prepare_for_new_record(self):
        """Move on to the next record of the mini-batch."""
        self.record += 1

    def __repr__(self):
        return f"BatchCursor(record={self.record})"


def _check_index(index, upper, what):
    """Raise IndexOutOfRange unless 0 <= index < upper."""
    if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
        raise IndexOutOfRange(f"{what} index must be an integer, got {index!r}")
    if not 0 <= index < upper:
        raise IndexOutOfRange(f"{what} index {index} out of range [0, {upper})")


def _check_count(value, what):
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
        raise ValueError(f"{what} must be a positive integer, got {value!r}")
    return int(value)


class Layer(BaseComponent):
    """
    Base class of the four layer types.

    Subclasses only fix the type tag, the constructor arguments and how the
    map size follows from the front layer. Every operation checks the type tag
    before touching kernels or biases.
    """
    _layer_type = None

    def __init__(self, out_map_num=0, rng=None, cursor=None):
        """
        Args:
            out_map_num (int): Number of maps the layer produces
            rng (np.random.Generator, optional): Random number generator for
                kernel and bias initialization
            cursor (BatchCursor, optional): Shared cursor selecting the record
                written by set_map_value and set_error
        """
        if rng is None:
            rng = np.random.default_rng()

        self.layer_type = self._layer_type
        self.out_map_num = out_map_num
        self.map_size_ = None
        self.kernel_size = None
        self.scale_size = None
        self.class_num = -1

        # Learnable parameters
        self.kernel_ = None
        self.bias_ = None

        # Per-batch maps, [record][map]
        self.outmaps_ = None
        self.errors_ = None

        self.rng = rng
        self.cursor = cursor

    def get_type(self):
        """Type tag: 'input', 'conv', 'samp' or 'output'."""
        return self.layer_type

    def get_out_map_num(self):
        """Number of output maps."""
        return self.out_map_num

    def get_map_size(self):
        """Size of each output map, None until the layer is wired."""
        return self.map_size_

    def set_map_size(self, map_size):
        """
        Fix the size of the output maps.

        Raises:
            InvalidLayerOperation: If the map size was already set
        """
        if self.map_size_ is not None:
            raise InvalidLayerOperation(
                f"map size of {self.layer_type} layer is already {self.map_size_}")
        self.map_size_ = Size.of(map_size)

    def get_kernel_size(self):
        """Kernel size, only set for conv and output layers."""
        return self.kernel_size

    def get_scale_size(self):
        """Pooling window size, only set for samp layers."""
        return self.scale_size

    def bind_cursor(self, cursor):
        """Attach the batch cursor shared by the network."""
        self.cursor = cursor
        return self

    @abstractmethod
    def compute_map_size(self, front_map_size):
        """Map size this layer would have behind a map of front_map_size."""
        raise NotImplementedError

    def infer_map_size(self, front_layer):
        """Derive the map size from the layer in front of this one."""
        self.set_map_size(self.compute_map_size(front_layer.get_map_size()))

    # Kernels and biases

    def _require_params(self, operation):
        if self.layer_type not in ("conv", "output"):
            raise InvalidLayerOperation(
                f"{operation} is not supported by {self.layer_type} layers, "
                "they have no kernels or biases")

    def init_kernel(self, front_map_num):
        """
        Randomly initialize a front_map_num x out_map_num grid of kernels.

        Args:
            front_map_num (int): Number of maps of the front layer
        """
        self._require_params("init_kernel")
        if self.kernel_size is None:
            raise InvalidLayerOperation("call init_output_kernel first")
        self._new_kernels(front_map_num)

    def init_output_kernel(self, front_map_num, size):
        """
        Initialize kernels spanning the whole front map.

        The convolution then reduces every front map to a single value, which
        makes the output layer fully connected.

        Args:
            front_map_num (int): Number of maps of the front layer
            size (Size): Map size of the front layer, used as kernel size
        """
        if self.layer_type != "output":
            raise InvalidLayerOperation(
                f"init_output_kernel is only valid for output layers, not {self.layer_type}")
        self.kernel_size = Size.of(size)
        self._new_kernels(front_map_num)

    def _init_limit(self, front_map_num):
        # Xavier initialization
        kx, ky = self.kernel_size if self.kernel_size is not None else (1, 1)
        fan_in = kx * ky * front_map_num
        fan_out = kx * ky * self.out_map_num
        return np.sqrt(6.0 / (fan_in + fan_out))

    def _new_kernels(self, front_map_num):
        front_map_num = _check_count(front_map_num, "front_map_num")
        limit = self._init_limit(front_map_num)
        shape = self.kernel_size.as_tuple()
        # One draw per (i, j) so that no two entries share storage
        self.kernel_ = [
            [self.rng.uniform(-limit, limit, shape) for _ in range(self.out_map_num)]
            for _ in range(front_map_num)
        ]

    def init_bias(self, out_map_num=None):
        """
        Randomly initialize one bias per output map.

        Args:
            out_map_num (int, optional): Expected number of output maps
        """
        self._require_params("init_bias")
        if out_map_num is not None and out_map_num != self.out_map_num:
            raise ShapeMismatch(
                f"{self.layer_type} layer has {self.out_map_num} maps, "
                f"cannot hold {out_map_num} biases")
        front_map_num = len(self.kernel_) if self.kernel_ is not None else 1
        limit = self._init_limit(front_map_num)
        self.bias_ = self.rng.uniform(-limit, limit, (self.out_map_num,))

    def get_kernel(self, i, j):
        """
        Kernel from map i of the front layer to map j of this layer.

        Args:
            i (int): Front layer map index
            j (int): Map index of this layer

        Returns:
            ndarray: Kernel of shape kernel_size
        """
        self._check_kernel_index(i, j, "get_kernel")
        return self.kernel_[i][j]

    def set_kernel(self, i, j, kernel):
        """Replace a kernel. The layer keeps the array passed in, not a copy."""
        self._check_kernel_index(i, j, "set_kernel")
        kernel = np.asarray(kernel, dtype=float)
        if kernel.shape != self.kernel_size.as_tuple():
            raise ShapeMismatch(
                f"kernel of shape {kernel.shape} does not match {self.kernel_size}")
        self.kernel_[i][j] = kernel

    def _check_kernel_index(self, i, j, operation):
        self._require_params(operation)
        if self.kernel_ is None:
            raise InvalidLayerOperation(
                f"kernels of {self.layer_type} layer are not initialized")
        _check_index(i, len(self.kernel_), "front map")
        _check_index(j, self.out_map_num, "map")

    def get_bias(self, map_no):
        """Bias of map map_no."""
        self._check_bias_index(map_no, "get_bias")
        return self.bias_[map_no]

    def set_bias(self, map_no, value):
        """Set the bias of map map_no."""
        self._check_bias_index(map_no, "set_bias")
        self.bias_[map_no] = value

    def _check_bias_index(self, map_no, operation):
        self._require_params(operation)
        if self.bias_ is None:
            raise InvalidLayerOperation(
                f"biases of {self.layer_type} layer are not initialized")
        _check_index(map_no, self.out_map_num, "map")

    # Per-batch activation and error maps

    def _new_grid(self, batch_size):
        if self.map_size_ is None:
            raise InvalidLayerOperation(
                f"map size of {self.layer_type} layer is unknown, wire the layer first")
        batch_size = _check_count(batch_size, "batch_size")
        shape = self.map_size_.as_tuple()
        return [[np.zeros(shape) for _ in range(self.out_map_num)]
                for _ in range(batch_size)]

    def init_outmaps(self, batch_size):
        """Allocate zeroed output maps for batch_size records, dropping old ones."""
        self.outmaps_ = self._new_grid(batch_size)

    def init_errors(self, batch_size):
        """Allocate zeroed error maps for batch_size records, dropping old ones."""
        self.errors_ = self._new_grid(batch_size)

    def _current_record(self, record_id):
        if record_id is not None:
            return record_id
        if self.cursor is None:
            raise InvalidLayerOperation(
                f"{self.layer_type} layer has no batch cursor; bind one or pass record_id")
        return self.cursor.record

    def _grid(self, name):
        grid = getattr(self, name)
        if grid is None:
            what = "output maps" if name == "outmaps_" else "errors"
            raise InvalidLayerOperation(
                f"{what} of {self.layer_type} layer are not allocated")
        return grid

    def _lookup(self, name, record_id, map_no):
        grid = self._grid(name)
        _check_index(record_id, len(grid), "record")
        _check_index(map_no, self.out_map_num, "map")
        return grid

    def _write(self, name, map_no, args, record_id):
        record_id = self._current_record(record_id)
        grid = self._lookup(name, record_id, map_no)

        if len(args) == 1:
            matrix = np.asarray(args[0], dtype=float)
            if matrix.shape != self.map_size_.as_tuple():
                raise ShapeMismatch(
                    f"matrix of shape {matrix.shape} does not match {self.map_size_}")
            grid[record_id][map_no] = matrix
        elif len(args) == 3:
            row, col, value = args
            _check_index(row, self.map_size_.x, "row")
            _check_index(col, self.map_size_.y, "column")
            grid[record_id][map_no][row, col] = value
        else:
            raise TypeError(
                "expected (map_no, matrix) or (map_no, row, col, value), "
                f"got {len(args) + 1} positional arguments")

    def set_map_value(self, map_no, *args, record_id=None):
        """
        Write an output map of the current record.

        Called either as set_map_value(map_no, row, col, value) to set one
        cell in place, or as set_map_value(map_no, matrix) to replace the
        whole map. In the second form the layer keeps the array passed in;
        the caller should not modify it afterwards.

        Args:
            map_no (int): Map index
            record_id (int, optional): Record to write instead of the cursor's
        """
        self._write("outmaps_", map_no, args, record_id)

    def set_error(self, map_no, *args, record_id=None):
        """Write an error map of the current record, same forms as set_map_value."""
        self._write("errors_", map_no, args, record_id)

    def get_map(self, record_id, map_no):
        """Output map map_no of record record_id."""
        return self._lookup("outmaps_", record_id, map_no)[record_id][map_no]

    def get_error(self, record_id, map_no):
        """Error map map_no of record record_id."""
        return self._lookup("errors_", record_id, map_no)[record_id][map_no]

    def get_maps(self):
        """All output maps, indexed [record][map]."""
        return self._grid("outmaps_")

    def get_errors(self):
        """All error maps, indexed [record][map]."""
        return self._grid("errors_")

    def __repr__(self):
        fields = [f"out_map_num={self.out_map_num}", f"map_size={self.map_size_}"]
        if self.kernel_size is not None:
            fields.append(f"kernel_size={self.kernel_size}")
        if self.scale_size is not None:
            fields.append(f"scale_size={self.scale_size}")
        return f"{type(self).__name__}({', '.join(fields)})"


class InputLayer(Layer):
    """Input layer: one map holding the raw record."""
    _layer_type = "input"

    def __init__(self, map_size, rng=None, cursor=None):
        super().__init__(out_map_num=1, rng=rng, cursor=cursor)
        self.set_map_size(map_size)

    def compute_map_size(self, front_map_size):
        raise InvalidLayerOperation("input layer must be the first layer")

    def infer_map_size(self, front_layer):
        self.compute_map_size(front_layer.get_map_size())


class ConvLayer(Layer):
    """Convolution layer: valid convolution of every front map with a kernel."""
    _layer_type = "conv"

    def __init__(self, out_map_num, kernel_size, rng=None, cursor=None):
        super().__init__(out_map_num=out_map_num, rng=rng, cursor=cursor)
        self.kernel_size = Size.of(kernel_size)

    def compute_map_size(self, front_map_size):
        return front_map_size.subtract(self.kernel_size, 1)


class SampLayer(Layer):
    """Sampling (pooling) layer: keeps the map count, shrinks maps by scale_size."""
    _layer_type = "samp"

    def __init__(self, scale_size, rng=None, cursor=None):
        super().__init__(rng=rng, cursor=cursor)
        self.scale_size = Size.of(scale_size)

    def compute_map_size(self, front_map_size):
        return front_map_size.divide(self.scale_size)

    def infer_map_size(self, front_layer):
        super().infer_map_size(front_layer)
        self.out_map_num = front_layer.get_out_map_num()


class OutputLayer(Layer):
    """Output layer: one 1x1 map per class."""
    _layer_type = "output"

    def __init__(self, class_num, rng=None, cursor=None):
        super().__init__(out_map_num=class_num, rng=rng, cursor=cursor)
        self.class_num = class_num
        self.set_map_size(Size(1, 1))

    def compute_map_size(self, front_map_size):
        if front_map_size is None:
            raise InvalidLayerOperation("front layer has no map size")
        return Size(1, 1)

    def infer_map_size(self, front_layer):
        # Fixed at construction, only the front layer is checked
        self.compute_map_size(front_layer.get_map_size())


def build_input_layer(map_size, rng=None, cursor=None):
    """Build an input layer whose single map has size map_size."""
    return InputLayer(Size.of(map_size), rng=rng, cursor=cursor)


def build_conv_layer(out_map_num, kernel_size, rng=None, cursor=None):
    """Build a convolution layer producing out_map_num maps."""
    out_map_num = _check_count(out_map_num, "out_map_num")
    return ConvLayer(out_map_num, Size.of(kernel_size), rng=rng, cursor=cursor)


def build_samp_layer(scale_size, rng=None, cursor=None):
    """Build a sampling layer with pooling window scale_size."""
    return SampLayer(Size.of(scale_size), rng=rng, cursor=cursor)


def build_output_layer(class_num, rng=None, cursor=None):
    """Build an output layer with one 1x1 map per class."""
    class_num = _check_count(class_num, "class_num")
    return OutputLayer(class_num, rng=rng, cursor=cursor)
