"""Tensor entity - three dimensional feature map backed by numpy."""
from collections.abc import Sequence

import numpy as np


class Tensor:
    """
    Dense (channel, row, column) array.

    The shape is fixed at creation; only the values can change, until
    set_read_only is called. Padding produces a new tensor instead of
    resizing this one.
    """

    def __init__(self, channels: int, rows: int, cols: int, dtype=np.float32):
        """
        Allocate a zero-filled tensor.

        Parameters
        ----------
        channels : int
            Number of channels.
        rows : int
            Number of rows of each channel plane.
        cols : int
            Number of columns of each channel plane.
        dtype : numpy dtype, optional
            Element type. Default is float32.

        Raises
        ------
        ValueError
            If any dimension is negative.
        """
        if channels < 0 or rows < 0 or cols < 0:
            raise ValueError(
                f"Tensor dimensions must be non-negative, got ({channels}, {rows}, {cols})"
            )
        self._data = np.zeros((channels, rows, cols), dtype=dtype)

    @classmethod
    def from_array(cls, array) -> "Tensor":
        """
        Create a tensor holding a copy of a 3-D array.

        Parameters
        ----------
        array : array_like
            Values laid out as (channels, rows, cols).

        Returns
        -------
        Tensor
            New tensor with the same shape and dtype as `array`.

        Raises
        ------
        ValueError
            If `array` is not three dimensional.
        """
        array = np.asarray(array)
        if array.ndim != 3:
            raise ValueError(f"Expected a 3-D array, got {array.ndim} dimensions")
        dtype = array.dtype if np.issubdtype(array.dtype, np.floating) else np.float32
        tensor = cls(*array.shape, dtype=dtype)
        tensor._data[...] = array
        return tensor

    @property
    def shape(self) -> tuple[int, int, int]:
        return self._data.shape

    @property
    def channels(self) -> int:
        return self._data.shape[0]

    @property
    def rows(self) -> int:
        return self._data.shape[1]

    @property
    def cols(self) -> int:
        return self._data.shape[2]

    @property
    def size(self) -> int:
        return self._data.size

    @property
    def dtype(self):
        return self._data.dtype

    @property
    def empty(self) -> bool:
        return self._data.size == 0

    @property
    def data(self) -> np.ndarray:
        """Underlying array. Writes through it change the tensor values unless it is read-only."""
        return self._data

    def plane(self, channel: int) -> np.ndarray:
        """Return a view on one channel as a (rows, cols) matrix."""
        return self._data[channel]

    def at(self, channel: int, row: int, col: int) -> float:
        return float(self._data[channel, row, col])

    def accumulate(self, channel: int, row: int, col: int, value: float) -> None:
        self._data[channel, row, col] += value

    def fill(self, values, row_major: bool = True) -> None:
        """
        Overwrite all values from a flat sequence.

        Parameters
        ----------
        values : array_like
            Flat sequence with exactly `size` elements.
        row_major : bool, optional
            When True (default) values are read channel by channel, each
            plane row by row. When False each plane is read column by column.

        Raises
        ------
        ValueError
            If the number of values does not match the tensor size.
        """
        flat = np.asarray(values, dtype=self._data.dtype).ravel()
        if flat.size != self._data.size:
            raise ValueError(
                f"Cannot fill a tensor of {self._data.size} elements with {flat.size} values"
            )
        if row_major:
            self._data[...] = flat.reshape(self._data.shape)
        else:
            channels, rows, cols = self._data.shape
            self._data[...] = flat.reshape(channels, cols, rows).transpose(0, 2, 1)

    def fill_value(self, value: float) -> None:
        self._data.fill(value)

    @property
    def writable(self) -> bool:
        return self._data.flags.writeable

    def set_read_only(self) -> None:
        """Reject any later write to the values, including through views."""
        self._data.setflags(write=False)

    def values(self) -> np.ndarray:
        """Return a row-major flat copy of the values."""
        return self._data.ravel().copy()

    def padding(self, pads: Sequence[int], padding_value: float = 0.0) -> "Tensor":
        """
        Return a copy surrounded by a constant border.

        Parameters
        ----------
        pads : Sequence[int]
            Border widths as (left, right, top, bottom).
        padding_value : float, optional
            Value of the border cells. Default is 0.

        Returns
        -------
        Tensor
            New tensor of shape (channels, rows + top + bottom, cols + left + right).

        Raises
        ------
        ValueError
            If `pads` does not hold four non-negative integers.
        """
        if len(pads) != 4:
            raise ValueError(f"Padding needs four values (left, right, top, bottom), got {len(pads)}")
        if any(pad < 0 for pad in pads):
            raise ValueError(f"Padding values must be non-negative, got {list(pads)}")

        left, right, top, bottom = pads
        padded = np.pad(
            self._data,
            ((0, 0), (top, bottom), (left, right)),
            mode="constant",
            constant_values=padding_value,
        )
        return Tensor.from_array(padded)

    def __repr__(self) -> str:
        return f"Tensor(shape={self.shape}, dtype={self.dtype})"
