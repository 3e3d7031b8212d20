"""Tests for the layer registry and the layer loader."""
import os
import tempfile

import pytest
from fixtures.operators import make_conv_operator

from convinfer.domain.entities.runtime_ir import RuntimeOperator
from convinfer.domain.entities.status import (
    LayerBuildError,
    ParseParameterAttrStatus,
    UnknownLayerTypeError,
)
from convinfer.domain.use_cases.layer_registry import LayerRegistry
from convinfer.domain.use_cases.load_layers import LayerLoader
from convinfer.infrastructure.configuration import RuntimeConfiguration
from convinfer.infrastructure.layers.convolution import ConvolutionLayer
from convinfer.infrastructure import registry as registry_module
from convinfer.infrastructure.registry import create_default_registry, create_registry_from_file


class TestLayerRegistry:
    """Tests for LayerRegistry."""

    def test_new_registry_is_empty(self):
        """A registry starts without creators."""
        registry = LayerRegistry()
        assert len(registry) == 0
        assert registry.layer_types() == []

    def test_register_and_create(self):
        """A registered creator should be used for operators of its type."""
        registry = LayerRegistry()
        calls = []

        def creator(op):
            calls.append(op.name)
            return ParseParameterAttrStatus.PARSE_SUCCESS, None

        registry.register("nn.Identity", creator)
        status, _ = registry.create_layer(RuntimeOperator(name="id0", type="nn.Identity"))

        assert "nn.Identity" in registry
        assert status == ParseParameterAttrStatus.PARSE_SUCCESS
        assert calls == ["id0"]

    def test_duplicate_registration_raises(self):
        """Registering the same type twice is an error."""
        registry = LayerRegistry()
        registry.register("nn.Conv2d", lambda op: (ParseParameterAttrStatus.PARSE_SUCCESS, None))
        with pytest.raises(ValueError, match="already registered"):
            registry.register("nn.Conv2d", lambda op: (ParseParameterAttrStatus.PARSE_SUCCESS, None))

    def test_unknown_type_raises(self):
        """Looking up an unregistered type raises UnknownLayerTypeError."""
        registry = LayerRegistry()
        with pytest.raises(UnknownLayerTypeError) as excinfo:
            registry.create_layer(RuntimeOperator(name="pool", type="nn.MaxPool2d"))

        assert isinstance(excinfo.value, KeyError)
        assert excinfo.value.layer_type == "nn.MaxPool2d"


class TestDefaultRegistry:
    """Tests for create_default_registry."""

    def test_registers_convolution(self, registry):
        """The convolution builder is registered under nn.Conv2d."""
        assert registry.layer_types() == ["nn.Conv2d"]

    def test_registries_are_independent(self):
        """Each call returns a separate registry."""
        first = create_default_registry()
        second = create_default_registry()
        first.register("nn.Extra", lambda op: (ParseParameterAttrStatus.PARSE_SUCCESS, None))

        assert "nn.Extra" not in second

    def test_creates_convolution_layer(self, registry, conv_operator):
        """The registered creator builds a ConvolutionLayer."""
        status, layer = registry.create_layer(conv_operator)

        assert status == ParseParameterAttrStatus.PARSE_SUCCESS
        assert isinstance(layer, ConvolutionLayer)

    def test_configured_dtype_is_used(self, conv_operator):
        """The configuration's dtype should reach the built tensors."""
        registry = create_default_registry(RuntimeConfiguration(dtype="float64"))
        _, layer = registry.create_layer(conv_operator)

        assert layer.weights[0].dtype == "float64"


class TestLayerLoader:
    """Tests for LayerLoader."""

    def test_loads_operators_in_order(self, registry):
        """Every operator should produce one loaded layer, in order."""
        operators = [
            make_conv_operator(in_channels=1, out_channels=2, name="conv1"),
            make_conv_operator(in_channels=2, out_channels=3, name="conv2"),
        ]
        loaded = LayerLoader(registry).load(operators)

        assert [item.name for item in loaded] == ["conv1", "conv2"]
        assert all(item.type == "nn.Conv2d" for item in loaded)
        assert loaded[1].layer.input_channels == 2

    def test_build_failure_raises_layer_build_error(self, registry):
        """A failing build aborts loading with the operator and status."""
        broken = make_conv_operator(name="conv2")
        del broken.attributes["weight"]

        with pytest.raises(LayerBuildError) as excinfo:
            LayerLoader(registry).load([make_conv_operator(name="conv1"), broken])

        assert excinfo.value.operator_name == "conv2"
        assert excinfo.value.operator_type == "nn.Conv2d"
        assert excinfo.value.status == ParseParameterAttrStatus.MISSING_ATTR_WEIGHT

    def test_unknown_operator_type_raises(self, registry):
        """Operators without a registered creator cannot be loaded."""
        with pytest.raises(UnknownLayerTypeError):
            LayerLoader(registry).load([RuntimeOperator(name="relu", type="nn.ReLU")])


class TestRegistryFromFile:
    """Tests for create_registry_from_file."""

    def test_applies_configuration(self, monkeypatch, conv_operator):
        """The file's log level reaches logging and its dtype reaches the layers."""
        levels = []
        monkeypatch.setattr(registry_module, "setup_logging", levels.append)

        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = os.path.join(tmpdir, "config.toml")
            with open(config_path, "w") as f:
                f.write('[runtime]\nlog_level = "DEBUG"\ndtype = "float64"\n')

            registry = create_registry_from_file(config_path)

        assert levels == ["DEBUG"]
        assert registry.layer_types() == ["nn.Conv2d"]
        _, layer = registry.create_layer(conv_operator)
        assert layer.weights[0].dtype == "float64"

    def test_missing_file_raises(self):
        """A missing configuration file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            create_registry_from_file("/nonexistent/config.toml")
