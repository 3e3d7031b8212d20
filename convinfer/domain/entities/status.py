"""Status codes and errors reported by layers and layer builders."""
from enum import Enum


class InferStatus(Enum):
    """Outcome of a layer forward pass."""

    SUCCESS = 0
    INPUT_EMPTY = 1
    WEIGHT_MISSING = 2
    BIAS_PARAMETER_MISMATCH = 3
    CHANNEL_MISMATCH = 4
    OUTPUT_SIZE_INVALID = 5


class ParseParameterAttrStatus(Enum):
    """Outcome of binding an operator description to a layer."""

    PARSE_SUCCESS = 0

    MISSING_STRIDE = 1
    MISSING_PADDING = 2
    MISSING_KERNEL = 3
    MISSING_USE_BIAS = 4
    MISSING_IN_CHANNEL = 5
    MISSING_OUT_CHANNEL = 6

    MISSING_ATTR_BIAS = 21
    MISSING_ATTR_WEIGHT = 22
    ATTR_BIAS_SIZE_MISMATCH = 23
    ATTR_WEIGHT_SIZE_MISMATCH = 24


class LayerBuildError(Exception):
    """Raised by the layer loader when an operator cannot be turned into a layer."""

    def __init__(self, operator_name: str, operator_type: str, status: ParseParameterAttrStatus):
        self.operator_name = operator_name
        self.operator_type = operator_type
        self.status = status
        super().__init__(
            f"Failed to build layer '{operator_name}' of type '{operator_type}': {status.name}"
        )


class UnknownLayerTypeError(KeyError):
    """Raised when no creator is registered for an operator type."""

    def __init__(self, layer_type: str):
        self.layer_type = layer_type
        super().__init__(f"No layer creator registered for type '{layer_type}'")
