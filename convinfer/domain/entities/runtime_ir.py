"""
Runtime operator description.

An operator description is the untyped form of one graph node, as produced
by a model-file deserializer: named parameters carrying small scalar or
array values, and named attributes carrying raw learned values together
with their shape.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

import numpy as np


@dataclass(frozen=True)
class ParameterBool:
    value: bool


@dataclass(frozen=True)
class ParameterInt:
    value: int


@dataclass(frozen=True)
class ParameterFloat:
    value: float


@dataclass(frozen=True)
class ParameterString:
    value: str


@dataclass(frozen=True)
class ParameterIntArray:
    value: tuple[int, ...]


@dataclass(frozen=True)
class ParameterFloatArray:
    value: tuple[float, ...]


@dataclass(frozen=True)
class ParameterStringArray:
    value: tuple[str, ...]


RuntimeParameter = Union[
    ParameterBool,
    ParameterInt,
    ParameterFloat,
    ParameterString,
    ParameterIntArray,
    ParameterFloatArray,
    ParameterStringArray,
]


class RuntimeDataType(Enum):
    """Element type of an attribute payload."""

    UNKNOWN = 0
    FLOAT32 = 1
    FLOAT64 = 2
    FLOAT16 = 3
    INT32 = 4
    INT64 = 5
    INT16 = 6
    INT8 = 7
    UINT8 = 8
    BOOL = 9


_FLOATING_TYPES = {
    RuntimeDataType.FLOAT32: np.dtype("<f4"),
    RuntimeDataType.FLOAT64: np.dtype("<f8"),
    RuntimeDataType.FLOAT16: np.dtype("<f2"),
}


@dataclass
class RuntimeAttribute:
    """
    Learned values of an operator, stored as little-endian bytes.

    Attributes
    ----------
    shape : list[int]
        Logical shape of the values.
    data_type : RuntimeDataType
        Element type of `weight_data`.
    weight_data : bytes
        Raw payload.
    """

    shape: list[int]
    data_type: RuntimeDataType = RuntimeDataType.FLOAT32
    weight_data: bytes = b""

    @classmethod
    def from_array(cls, array) -> "RuntimeAttribute":
        """
        Create a float32 attribute from an array, keeping its shape.

        Parameters
        ----------
        array : array_like
            Values to store.

        Returns
        -------
        RuntimeAttribute
            Attribute whose payload is `array` as little-endian float32.
        """
        array = np.asarray(array, dtype="<f4")
        return cls(
            shape=list(array.shape),
            data_type=RuntimeDataType.FLOAT32,
            weight_data=array.tobytes(order="C"),
        )

    def get(self, clear_weight: bool = False) -> np.ndarray:
        """
        Decode the payload as floating-point values.

        Parameters
        ----------
        clear_weight : bool, optional
            Release the raw payload after decoding. Default is False.

        Returns
        -------
        np.ndarray
            Flat array of the decoded values, in storage order.

        Raises
        ------
        TypeError
            If the payload is not of a floating-point type.
        ValueError
            If the payload length is not a multiple of the element size.
        """
        dtype = _FLOATING_TYPES.get(self.data_type)
        if dtype is None:
            raise TypeError(f"Attribute data type {self.data_type.name} is not a floating-point type")
        if len(self.weight_data) % dtype.itemsize != 0:
            raise ValueError(
                f"Attribute payload of {len(self.weight_data)} bytes is not a multiple "
                f"of the {dtype.itemsize}-byte element size"
            )

        values = np.frombuffer(self.weight_data, dtype=dtype).copy()
        if clear_weight:
            self.weight_data = b""
        return values


@dataclass
class RuntimeOperator:
    """One graph node as handed over by the model-file deserializer."""

    name: str
    type: str
    params: dict[str, RuntimeParameter] = field(default_factory=dict)
    attributes: dict[str, RuntimeAttribute] = field(default_factory=dict)
