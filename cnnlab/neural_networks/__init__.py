"""
Neural networks module: CNN layer model and network assembly.
"""
from ._size import Size
from .layers import (
    BatchCursor,
    Layer,
    InputLayer,
    ConvLayer,
    SampLayer,
    OutputLayer,
    build_input_layer,
    build_conv_layer,
    build_samp_layer,
    build_output_layer
)
from ._cnn import (
    CNN,
    LayerBuilder
)

__all__ = [
    'Size',
    'BatchCursor',
    'Layer',
    'InputLayer',
    'ConvLayer',
    'SampLayer',
    'OutputLayer',
    'build_input_layer',
    'build_conv_layer',
    'build_samp_layer',
    'build_output_layer',
    'CNN',
    'LayerBuilder'
]
