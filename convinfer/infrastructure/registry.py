from functools import partial

from convinfer.domain.use_cases.layer_registry import LayerRegistry
from convinfer.infrastructure.configuration import RuntimeConfiguration
from convinfer.infrastructure.layers.convolution import CONVOLUTION_TYPE, build_convolution
from convinfer.infrastructure.logging import setup_logging


def create_default_registry(config: RuntimeConfiguration | None = None) -> LayerRegistry:
    """
    Create a registry holding every layer implemented by this package.

    Parameters
    ----------
    config : RuntimeConfiguration | None, optional
        Runtime settings bound into the creators. Defaults are used when None.

    Returns
    -------
    LayerRegistry
        A new registry; each call returns an independent instance.
    """
    config = config or RuntimeConfiguration()
    registry = LayerRegistry()
    registry.register(CONVOLUTION_TYPE, partial(build_convolution, dtype=config.numpy_dtype))
    return registry


def create_registry_from_file(config_path: str = "configuration.toml") -> LayerRegistry:
    """
    Load the runtime configuration, set up logging and create the default registry.

    Parameters
    ----------
    config_path : str
        Path to a TOML file containing a "runtime" table.

    Returns
    -------
    LayerRegistry
        Registry whose creators use the configured dtype.

    Raises
    ------
    FileNotFoundError
        If no file exists at `config_path`.
    """
    config = RuntimeConfiguration.load(config_path)
    setup_logging(config.log_level)
    return create_default_registry(config)
