"""
Layer Interface.

This module defines the abstract interface every operator implementation
follows, the base class for layers that own learned tensors, and the
signature of the functions that build layers from operator descriptions.
"""
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Callable

import numpy as np

from convinfer.domain.entities.runtime_ir import RuntimeOperator
from convinfer.domain.entities.status import InferStatus, ParseParameterAttrStatus
from convinfer.domain.entities.tensor import Tensor


class Layer(ABC):
    """
    Abstract interface for graph operators.

    A layer is built once and then invoked repeatedly. `forward` must not
    modify the layer or its inputs, so one instance can serve concurrent
    calls with different input batches.
    """

    def __init__(self, layer_name: str):
        self._layer_name = layer_name

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @abstractmethod
    def forward(self, inputs: Sequence[Tensor]) -> tuple[InferStatus, list[Tensor]]:
        """
        Run the operator on a batch of feature maps.

        Parameters
        ----------
        inputs : Sequence[Tensor]
            Batch of input feature maps, one tensor per item.

        Returns
        -------
        tuple[InferStatus, list[Tensor]]
            `InferStatus.SUCCESS` with one output per input item, or a
            failure status with an empty list.
        """
        pass


class ParamLayer(Layer):
    """Base class for layers holding learned weight and bias tensors."""

    def __init__(self, layer_name: str):
        super().__init__(layer_name)
        self._weights: list[Tensor] = []
        self._bias: list[Tensor] = []
        self._sealed = False

    def init_weight_param(self, count: int, channels: int, rows: int, cols: int, dtype=np.float32) -> None:
        self._weights = [Tensor(channels, rows, cols, dtype=dtype) for _ in range(count)]

    def init_bias_param(self, count: int, channels: int, rows: int, cols: int, dtype=np.float32) -> None:
        self._bias = [Tensor(channels, rows, cols, dtype=dtype) for _ in range(count)]

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """
        Make the weight and bias values read-only.

        After sealing, set_weights and set_bias raise RuntimeError and the
        arrays behind the weight and bias tensors reject writes.
        """
        for tensor in (*self._weights, *self._bias):
            tensor.set_read_only()
        self._sealed = True

    @property
    def weights(self) -> tuple[Tensor, ...]:
        return tuple(self._weights)

    @property
    def bias(self) -> tuple[Tensor, ...]:
        return tuple(self._bias)

    def set_weights(self, values) -> None:
        """
        Distribute a flat value sequence over the weight tensors.

        Values are consumed in order, each tensor taking as many values as
        it holds, in row-major (channel, row, column) order.

        Parameters
        ----------
        values : array_like
            Flat sequence holding the values of all weight tensors.

        Raises
        ------
        ValueError
            If the number of values differs from the total weight size.
        RuntimeError
            If the layer has been sealed.
        """
        self._check_writable()
        _distribute(self._weights, values, "weight")

    def set_bias(self, values) -> None:
        """
        Distribute a flat value sequence over the bias tensors.

        Raises
        ------
        ValueError
            If the number of values differs from the total bias size.
        RuntimeError
            If the layer has been sealed.
        """
        self._check_writable()
        _distribute(self._bias, values, "bias")

    def _check_writable(self) -> None:
        if self._sealed:
            raise RuntimeError(f"Parameters of layer '{self.layer_name}' are read-only once built")


def _distribute(tensors: list[Tensor], values, kind: str) -> None:
    flat = np.asarray(values).ravel()
    expected = sum(tensor.size for tensor in tensors)
    if flat.size != expected:
        raise ValueError(f"Expected {expected} {kind} values, got {flat.size}")

    offset = 0
    for tensor in tensors:
        tensor.fill(flat[offset:offset + tensor.size])
        offset += tensor.size


LayerCreator = Callable[[RuntimeOperator], tuple[ParseParameterAttrStatus, Layer | None]]
