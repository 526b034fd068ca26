"""
Assembly of a layer stack into a convolutional neural network.

The network wires each layer to the one in front of it (map sizes, kernels,
biases) and manages the per-batch maps and the shared batch cursor. Forward
and backward arithmetic is left to the training code, which reads and writes
the layers through their accessors.
"""
import numpy as np

from ..exceptions import InvalidLayerOperation
from .layers import BatchCursor, Layer


class LayerBuilder:
    """
    Collects layers in network order.

    The first layer must be an input layer and the output layer, if any,
    must come last.
    """

    def __init__(self, layer=None):
        """Constructor"""
        self.layers = []
        if layer is not None:
            self.add_layer(layer)

    def add_layer(self, layer):
        """Append a layer and return the builder."""
        if not isinstance(layer, Layer):
            raise TypeError(f"Expected a Layer, got {type(layer).__name__}")

        layer_type = layer.get_type()
        if not self.layers and layer_type != "input":
            raise InvalidLayerOperation(
                f"first layer must be an input layer, got {layer_type}")
        if self.layers and layer_type == "input":
            raise InvalidLayerOperation("only the first layer can be an input layer")
        if self.layers and self.layers[-1].get_type() == "output":
            raise InvalidLayerOperation("output layer must be the last layer")

        self.layers.append(layer)
        return self

    def build(self, **kwargs):
        """Return a CNN over the collected layers."""
        return CNN(list(self.layers), **kwargs)


class CNN:
    """
    Convolutional neural network made of Input, Conv, Samp and Output layers.
    """

    def __init__(self, layers, batch_size=32, random_state=None, verbose=False):
        """
        Constructor

        Args:
            layers (list): Layers in network order, input layer first
            batch_size (int): Number of records per mini-batch
            random_state (int, optional): Seed for kernel and bias initialization
            verbose (bool): Whether to print the layer summary on setup
        """
        self.layers = layers
        self.batch_size = batch_size
        self.random_state = random_state
        self.verbose = verbose

        self.cursor_ = BatchCursor()
        self.rng_ = None
        self._is_setup = False

    def setup(self):
        """
        Wire every layer to its front layer.

        Map sizes are inferred and kernels and biases initialized. This
        happens once per network; layers keep their parameters afterwards.
        If the sizes do not fit together, ShapeMismatch is raised before any
        layer is changed.
        """
        if self._is_setup:
            raise InvalidLayerOperation("network is already set up")
        if not self.layers or self.layers[0].get_type() != "input":
            raise InvalidLayerOperation("first layer must be an input layer")

        # Check the whole chain before any layer is modified
        map_size = self.layers[0].get_map_size()
        for layer in self.layers[1:]:
            map_size = layer.compute_map_size(map_size)

        if self.random_state is not None:
            self.rng_ = np.random.default_rng(self.random_state)

        for layer in self.layers:
            layer.bind_cursor(self.cursor_)
            if self.rng_ is not None:
                layer.rng = self.rng_

        for front_layer, layer in zip(self.layers, self.layers[1:]):
            front_map_num = front_layer.get_out_map_num()
            layer.infer_map_size(front_layer)

            layer_type = layer.get_type()
            if layer_type == "conv":
                layer.init_kernel(front_map_num)
                layer.init_bias(layer.get_out_map_num())
            elif layer_type == "output":
                layer.init_output_kernel(front_map_num, front_layer.get_map_size())
                layer.init_bias(layer.get_out_map_num())

        self._is_setup = True

        if self.verbose:
            print(self.summary())

        return self

    def prepare_for_new_batch(self, batch_size=None):
        """
        Start a mini-batch: reset the cursor and reallocate all maps.

        Args:
            batch_size (int, optional): Size of this batch, defaults to
                self.batch_size (the last batch of an epoch may be smaller)
        """
        self._check_setup()
        if batch_size is None:
            batch_size = self.batch_size

        self.cursor_.prepare_for_new_batch()
        for layer in self.layers:
            layer.init_outmaps(batch_size)
            layer.init_errors(batch_size)

    def prepare_for_new_record(self):
        """Advance the cursor once every layer is done with the current record."""
        self.cursor_.prepare_for_new_record()

    def reset_errors(self, batch_size=None):
        """Reallocate the error maps before a backward pass."""
        self._check_setup()
        if batch_size is None:
            batch_size = self.batch_size
        for layer in self.layers:
            layer.init_errors(batch_size)

    @property
    def record(self):
        """Index of the record currently being written."""
        return self.cursor_.record

    def summary(self):
        """One line per layer with its type, map count and sizes."""
        lines = []
        for index, layer in enumerate(self.layers):
            line = (f"{index:>2} {layer.get_type():<6} maps={layer.get_out_map_num():<3} "
                    f"map_size={layer.get_map_size()}")
            if layer.get_kernel_size() is not None:
                line += f" kernel_size={layer.get_kernel_size()}"
            if layer.get_scale_size() is not None:
                line += f" scale_size={layer.get_scale_size()}"
            lines.append(line)
        return "\n".join(lines)

    def _check_setup(self):
        if not self._is_setup:
            raise InvalidLayerOperation("call setup() before processing batches")

    def get_params(self, mode: bool = True):
        """Get parameters for this network."""
        _ = mode  # Unused parameter for compatibility
        return {
            'layers': self.layers,
            'batch_size': self.batch_size,
            'random_state': self.random_state,
            'verbose': self.verbose
        }

    def set_params(self, **params):
        """Set the parameters of this network."""
        for param, value in params.items():
            if param in self.get_params():
                setattr(self, param, value)
            else:
                raise ValueError(f"Invalid parameter {param}")
        return self

    def __len__(self):
        return len(self.layers)

    def __iter__(self):
        return iter(self.layers)

    def __getitem__(self, index):
        return self.layers[index]

    def __repr__(self):
        """String representation"""
        return f"CNN(layers={len(self.layers)}, batch_size={self.batch_size})"
