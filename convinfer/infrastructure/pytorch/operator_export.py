"""
PyTorch export helpers.

This module provides:
- export_conv2d, turning a torch.nn.Conv2d into an "nn.Conv2d" RuntimeOperator
- tensors_from_torch / tensors_to_torch, converting (N, C, H, W) batches

This keeps the domain layer free of any torch dependency.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import torch
import torch.nn as nn

from convinfer.domain.entities.runtime_ir import (
    ParameterBool,
    ParameterInt,
    ParameterIntArray,
    RuntimeAttribute,
    RuntimeOperator,
)
from convinfer.domain.entities.tensor import Tensor
from convinfer.infrastructure.layers.convolution import CONVOLUTION_TYPE

logger = logging.getLogger(__name__)


def _as_pair(value) -> tuple[int, int]:
    if isinstance(value, int):
        return value, value
    return int(value[0]), int(value[1])


def export_conv2d(module: nn.Conv2d, name: str = "conv") -> RuntimeOperator:
    """
    Describe a torch convolution module as a runtime operator.

    Parameters
    ----------
    module : nn.Conv2d
        Module to export. Only ungrouped, undilated, zero-padded
        convolutions are supported.
    name : str
        Name given to the operator.

    Returns
    -------
    RuntimeOperator
        Operator of type "nn.Conv2d" with float32 weight and bias attributes.
        A module without bias gets a zero bias attribute.

    Raises
    ------
    ValueError
        If the module uses groups, dilation, a non-zero padding mode or
        string padding.
    """
    if module.groups != 1:
        raise ValueError(f"Grouped convolution is not supported (groups={module.groups})")
    if _as_pair(module.dilation) != (1, 1):
        raise ValueError(f"Dilated convolution is not supported (dilation={module.dilation})")
    if module.padding_mode != "zeros":
        raise ValueError(f"Padding mode '{module.padding_mode}' is not supported")
    if isinstance(module.padding, str):
        raise ValueError(f"String padding '{module.padding}' is not supported")

    with torch.no_grad():
        weight = module.weight.detach().cpu().numpy()
        if module.bias is not None:
            bias = module.bias.detach().cpu().numpy()
        else:
            bias = np.zeros(module.out_channels, dtype=np.float32)

    params = {
        "in_channels": ParameterInt(module.in_channels),
        "out_channels": ParameterInt(module.out_channels),
        "kernel_size": ParameterIntArray(_as_pair(module.kernel_size)),
        "stride": ParameterIntArray(_as_pair(module.stride)),
        "padding": ParameterIntArray(_as_pair(module.padding)),
        "bias": ParameterBool(module.bias is not None),
    }
    attributes = {
        "weight": RuntimeAttribute.from_array(weight),
        "bias": RuntimeAttribute.from_array(bias),
    }
    logger.debug(f"Exported {name}: weight shape {list(weight.shape)}")
    return RuntimeOperator(name=name, type=CONVOLUTION_TYPE, params=params, attributes=attributes)


def tensors_from_torch(batch: torch.Tensor) -> list[Tensor]:
    """
    Split a (N, C, H, W) torch tensor into one Tensor per batch item.

    Raises
    ------
    ValueError
        If `batch` is not four dimensional.
    """
    if batch.dim() != 4:
        raise ValueError(f"Expected a (N, C, H, W) tensor, got shape {tuple(batch.shape)}")
    array = batch.detach().cpu().numpy()
    return [Tensor.from_array(item) for item in array]


def tensors_to_torch(tensors: Sequence[Tensor]) -> torch.Tensor:
    """
    Stack same-shaped Tensors into a (N, C, H, W) torch tensor.

    Raises
    ------
    ValueError
        If `tensors` is empty.
    """
    if len(tensors) == 0:
        raise ValueError("Cannot stack an empty sequence of tensors")
    return torch.from_numpy(np.stack([tensor.data for tensor in tensors]))
