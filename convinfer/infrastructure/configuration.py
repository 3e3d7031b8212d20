import logging
import os
import tomllib
from dataclasses import dataclass

import numpy as np

_SUPPORTED_DTYPES = {
    "float32": np.float32,
    "float64": np.float64,
}


@dataclass
class RuntimeConfiguration:
    """Configuration for building and running layers."""

    log_level: str = "INFO"
    dtype: str = "float32"

    def __post_init__(self):
        """Validate the configured values.

        Raises:
            ValueError: If `dtype` or `log_level` is not recognised.
        """
        if self.dtype not in _SUPPORTED_DTYPES:
            raise ValueError(
                f"Unsupported dtype '{self.dtype}', expected one of {sorted(_SUPPORTED_DTYPES)}"
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level '{self.log_level}'")

    @property
    def numpy_dtype(self):
        """Numpy element type matching `dtype`."""
        return _SUPPORTED_DTYPES[self.dtype]

    @classmethod
    def load(cls, config_path: str) -> "RuntimeConfiguration":
        """
        Load runtime configuration from a TOML file.

        Parameters
        ----------
        config_path : str
            Filesystem path to a TOML file containing a "runtime" table.

        Returns
        -------
        RuntimeConfiguration
            Instance populated from the "runtime" table; fields not present use their defaults.

        Raises
        ------
        FileNotFoundError
            If no file exists at `config_path`.
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found at {config_path}")

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        runtime_data = data.get("runtime", {})
        return cls(**runtime_data)
