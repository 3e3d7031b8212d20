"""
2D convolution layer.

This module provides:
- ConvolutionLayer, a direct sliding-window convolution over (C, H, W) tensors
- build_convolution, which binds an "nn.Conv2d" operator description to a layer
"""
import logging
from collections.abc import Sequence

import numpy as np

from convinfer.domain.entities.runtime_ir import (
    ParameterBool,
    ParameterInt,
    ParameterIntArray,
    RuntimeAttribute,
    RuntimeOperator,
)
from convinfer.domain.entities.status import InferStatus, ParseParameterAttrStatus
from convinfer.domain.entities.tensor import Tensor
from convinfer.domain.interfaces.layer import ParamLayer

logger = logging.getLogger(__name__)

CONVOLUTION_TYPE = "nn.Conv2d"


class ConvolutionLayer(ParamLayer):
    """
    Direct 2D convolution with symmetric zero padding and a single stride.

    Attributes
    ----------
    output_channels : int
        Number of kernels, one per output channel.
    input_channels : int
        Channels expected in every input feature map.
    kernel_height, kernel_width : int
        Spatial size of each kernel.
    padding : int
        Zero border added on all four sides before convolving.
    stride : int
        Window step, identical for both axes.
    use_bias : bool
        Whether a per-channel bias is added to the output.
    """

    def __init__(
        self,
        output_channels: int,
        input_channels: int,
        kernel_height: int,
        kernel_width: int,
        padding: int = 0,
        stride: int = 1,
        use_bias: bool = True,
        dtype=np.float32,
    ):
        """
        Create the layer and allocate zero-valued weight and bias tensors.

        Raises
        ------
        ValueError
            If a channel count, kernel size or the stride is not positive,
            or the padding is negative.
        """
        super().__init__("Convolution")
        for label, value in (
            ("output_channels", output_channels),
            ("input_channels", input_channels),
            ("kernel_height", kernel_height),
            ("kernel_width", kernel_width),
            ("stride", stride),
        ):
            if value <= 0:
                raise ValueError(f"{label} must be positive, got {value}")
        if padding < 0:
            raise ValueError(f"padding must be non-negative, got {padding}")

        self._output_channels = output_channels
        self._input_channels = input_channels
        self._kernel_height = kernel_height
        self._kernel_width = kernel_width
        self._padding = padding
        self._stride = stride
        self._use_bias = use_bias

        self.init_weight_param(output_channels, input_channels, kernel_height, kernel_width, dtype=dtype)
        if use_bias:
            self.init_bias_param(output_channels, 1, 1, 1, dtype=dtype)

    @property
    def output_channels(self) -> int:
        return self._output_channels

    @property
    def input_channels(self) -> int:
        return self._input_channels

    @property
    def kernel_height(self) -> int:
        return self._kernel_height

    @property
    def kernel_width(self) -> int:
        return self._kernel_width

    @property
    def padding(self) -> int:
        return self._padding

    @property
    def stride(self) -> int:
        return self._stride

    @property
    def use_bias(self) -> bool:
        return self._use_bias

    def forward(self, inputs: Sequence[Tensor]) -> tuple[InferStatus, list[Tensor]]:
        if len(inputs) == 0:
            logger.error("The input feature map of convolution layer is empty")
            return InferStatus.INPUT_EMPTY, []
        if len(self._weights) == 0:
            logger.error("Weight parameters are empty")
            return InferStatus.WEIGHT_MISSING, []
        if self._use_bias and len(self._bias) != len(self._weights):
            logger.error(
                f"The number of bias tensors ({len(self._bias)}) does not match "
                f"the number of kernels ({len(self._weights)})"
            )
            return InferStatus.BIAS_PARAMETER_MISMATCH, []

        outputs: list[Tensor] = []
        for index, item in enumerate(inputs):
            status, output = self._convolve(item)
            if status != InferStatus.SUCCESS:
                logger.error(f"Convolution failed on batch item {index}: {status.name}")
                return status, []
            outputs.append(output)
        return InferStatus.SUCCESS, outputs

    def _convolve(self, item: Tensor) -> tuple[InferStatus, Tensor | None]:
        for kernel in self._weights:
            if kernel.channels != item.channels:
                logger.error(
                    f"Kernel expects {kernel.channels} channels but the input has {item.channels}"
                )
                return InferStatus.CHANNEL_MISMATCH, None

        if self._padding > 0:
            pad = self._padding
            item = item.padding([pad, pad, pad, pad], 0.0)

        input_h, input_w = item.rows, item.cols
        kernel_h, kernel_w = self._kernel_height, self._kernel_width
        stride = self._stride

        output_h = (input_h - kernel_h) // stride + 1
        output_w = (input_w - kernel_w) // stride + 1
        if output_h <= 0 or output_w <= 0:
            logger.error(
                f"Output feature map size ({output_h}, {output_w}) is not positive "
                f"for input ({input_h}, {input_w}) and kernel ({kernel_h}, {kernel_w})"
            )
            return InferStatus.OUTPUT_SIZE_INVALID, None

        dtype = np.result_type(item.dtype, self._weights[0].dtype)
        output = Tensor(len(self._weights), output_h, output_w, dtype=dtype)

        for k, kernel in enumerate(self._weights):
            output_channel = output.plane(k)
            for ic in range(item.channels):
                input_channel = item.plane(ic)
                kernel_channel = kernel.plane(ic)
                for r in range(0, input_h - kernel_h + 1, stride):
                    for c in range(0, input_w - kernel_w + 1, stride):
                        region = input_channel[r:r + kernel_h, c:c + kernel_w]
                        # cumsum adds strictly left to right, row by row
                        products = (region * kernel_channel).ravel()
                        output_channel[r // stride, c // stride] += np.cumsum(products)[-1]

            if self._use_bias:
                output_channel += self._bias[k].at(0, 0, 0)

        if output.empty:
            raise RuntimeError("Convolution produced an empty output tensor")
        return InferStatus.SUCCESS, output


def _int_param(op: RuntimeOperator, key: str) -> int | None:
    param = op.params.get(key)
    if isinstance(param, ParameterInt):
        return param.value
    return None


def _bool_param(op: RuntimeOperator, key: str) -> bool | None:
    param = op.params.get(key)
    if isinstance(param, ParameterBool):
        return param.value
    return None


def _pair_param(op: RuntimeOperator, key: str) -> tuple[int, int] | None:
    param = op.params.get(key)
    if isinstance(param, ParameterIntArray) and len(param.value) == 2:
        return param.value[0], param.value[1]
    return None


def _attribute_values(attribute: RuntimeAttribute, key: str) -> np.ndarray | None:
    try:
        return attribute.get()
    except (TypeError, ValueError) as error:
        logger.error(f"Can not read the {key} attribute: {error}")
        return None


def build_convolution(
    op: RuntimeOperator, dtype=np.float32
) -> tuple[ParseParameterAttrStatus, ConvolutionLayer | None]:
    """
    Build a ConvolutionLayer from an "nn.Conv2d" operator description.

    Parameters
    ----------
    op : RuntimeOperator
        Operator whose params hold in_channels, out_channels, padding,
        bias, stride and kernel_size, and whose attributes hold the bias
        and weight values.
    dtype : numpy dtype, optional
        Element type of the allocated weight and bias tensors.

    Returns
    -------
    tuple[ParseParameterAttrStatus, ConvolutionLayer | None]
        `PARSE_SUCCESS` with the populated layer, or the status naming the
        first field that is missing, mistyped or inconsistent, with None.
    """
    in_channels = _int_param(op, "in_channels")
    if in_channels is None or in_channels <= 0:
        logger.error("Can not find the in channel parameter")
        return ParseParameterAttrStatus.MISSING_IN_CHANNEL, None

    out_channels = _int_param(op, "out_channels")
    if out_channels is None or out_channels <= 0:
        logger.error("Can not find the out channel parameter")
        return ParseParameterAttrStatus.MISSING_OUT_CHANNEL, None

    paddings = _pair_param(op, "padding")
    if paddings is None or min(paddings) < 0:
        logger.error("Can not find the padding parameter")
        return ParseParameterAttrStatus.MISSING_PADDING, None

    use_bias = _bool_param(op, "bias")
    if use_bias is None:
        logger.error("Can not find the bias parameter")
        return ParseParameterAttrStatus.MISSING_USE_BIAS, None

    strides = _pair_param(op, "stride")
    if strides is None or min(strides) <= 0:
        logger.error("Can not find the stride parameter")
        return ParseParameterAttrStatus.MISSING_STRIDE, None

    kernels = _pair_param(op, "kernel_size")
    if kernels is None or min(kernels) <= 0:
        logger.error("Can not find the kernel parameter")
        return ParseParameterAttrStatus.MISSING_KERNEL, None

    # Only symmetric padding and stride are supported.
    if paddings[0] != paddings[1]:
        logger.warning(f"Operator {op.name} has padding {paddings}; using {paddings[0]} for both axes")
    if strides[0] != strides[1]:
        logger.warning(f"Operator {op.name} has stride {strides}; using {strides[0]} for both axes")

    # kernel_size is (height, width)
    layer = ConvolutionLayer(
        out_channels,
        in_channels,
        kernels[0],
        kernels[1],
        padding=paddings[0],
        stride=strides[0],
        use_bias=use_bias,
        dtype=dtype,
    )

    bias = op.attributes.get("bias")
    if bias is None:
        logger.error("Can not find the bias attribute")
        return ParseParameterAttrStatus.MISSING_ATTR_BIAS, None
    if not bias.shape or bias.shape[0] != out_channels:
        logger.error(f"Bias shape {bias.shape} does not match {out_channels} output channels")
        return ParseParameterAttrStatus.MISSING_ATTR_BIAS, None

    if use_bias:
        bias_values = _attribute_values(bias, "bias")
        if bias_values is None:
            return ParseParameterAttrStatus.MISSING_ATTR_BIAS, None
        try:
            layer.set_bias(bias_values)
        except ValueError as error:
            logger.error(f"Bias attribute does not fit the layer: {error}")
            return ParseParameterAttrStatus.ATTR_BIAS_SIZE_MISMATCH, None

    weight = op.attributes.get("weight")
    if weight is None:
        logger.error("Can not find the weight attribute")
        return ParseParameterAttrStatus.MISSING_ATTR_WEIGHT, None
    if not weight.shape:
        logger.error("Weight shape is empty")
        return ParseParameterAttrStatus.MISSING_ATTR_WEIGHT, None

    weight_values = _attribute_values(weight, "weight")
    if weight_values is None:
        return ParseParameterAttrStatus.MISSING_ATTR_WEIGHT, None
    try:
        layer.set_weights(weight_values)
    except ValueError as error:
        logger.error(f"Weight attribute does not fit the layer: {error}")
        return ParseParameterAttrStatus.ATTR_WEIGHT_SIZE_MISMATCH, None

    layer.seal()

    logger.debug(
        f"Built convolution {op.name}: {in_channels}->{out_channels}, kernel {kernels}, "
        f"padding {paddings[0]}, stride {strides[0]}, bias {use_bias}"
    )
    return ParseParameterAttrStatus.PARSE_SUCCESS, layer
