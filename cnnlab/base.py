# pylint: disable=missing-docstring
from typing import Any


# pylint: disable=too-few-public-methods
class BaseComponent:
    # Attributes holding learnable parameters
    _trainable = ("kernel_", "bias_")

    def get_params(self, mode: str = "all") -> Any:
        """
        Get parameters for this component.

        :param mode: Specifies which parameters to return. Options are:
            - "all": Return all parameters.
            - "trainable": Return only trainable parameters (kernels and biases).
            - "non_trainable": Return only non-trainable parameters (sizes, counts, per-batch maps).
        :return: Dictionary of parameter names mapped to their values.
        """
        if mode == "all":
            return dict(self.__dict__)
        if mode == "trainable":
            return {k: v for k, v in self.__dict__.items() if k in self._trainable}
        if mode == "non_trainable":
            return {k: v for k, v in self.__dict__.items() if k not in self._trainable}

        raise ValueError(
            f"Invalid mode '{mode}'. Choose from 'all', 'trainable', or 'non_trainable'."
        )
