import numpy as np
import pytest

from cnnlab.neural_networks import (
    BatchCursor,
    LayerBuilder,
    build_conv_layer,
    build_input_layer,
    build_output_layer,
    build_samp_layer,
)


@pytest.fixture
def rng():
    return np.random.default_rng(0)


@pytest.fixture
def cursor():
    return BatchCursor()


@pytest.fixture
def lenet_builder():
    """28x28 -> conv(6, 5x5) -> samp(2x2) -> conv(12, 5x5) -> samp(2x2) -> output(10)"""
    return (LayerBuilder()
            .add_layer(build_input_layer((28, 28)))
            .add_layer(build_conv_layer(6, (5, 5)))
            .add_layer(build_samp_layer((2, 2)))
            .add_layer(build_conv_layer(12, (5, 5)))
            .add_layer(build_samp_layer((2, 2)))
            .add_layer(build_output_layer(10)))


@pytest.fixture
def lenet(lenet_builder):
    return lenet_builder.build(batch_size=4, random_state=42).setup()
