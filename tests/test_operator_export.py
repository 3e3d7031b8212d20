"""Tests comparing exported torch convolutions with the reference implementation."""
import pytest
import torch
import torch.nn as nn
import torch.nn.functional as F

from convinfer.domain.entities.runtime_ir import ParameterBool, ParameterIntArray
from convinfer.domain.entities.status import InferStatus, ParseParameterAttrStatus
from convinfer.infrastructure.layers.convolution import build_convolution
from convinfer.infrastructure.pytorch.operator_export import (
    export_conv2d,
    tensors_from_torch,
    tensors_to_torch,
)


class TestExportConv2d:
    """Tests for export_conv2d."""

    def test_exports_parameters_and_attributes(self):
        """The operator should carry the module's configuration and learned values."""
        module = nn.Conv2d(3, 8, kernel_size=(3, 5), stride=2, padding=1)
        op = export_conv2d(module, name="conv1")

        assert op.name == "conv1"
        assert op.type == "nn.Conv2d"
        assert op.params["kernel_size"] == ParameterIntArray((3, 5))
        assert op.params["stride"] == ParameterIntArray((2, 2))
        assert op.params["padding"] == ParameterIntArray((1, 1))
        assert op.params["bias"] == ParameterBool(True)
        assert op.attributes["weight"].shape == [8, 3, 3, 5]
        assert op.attributes["bias"].shape == [8]

    def test_module_without_bias_gets_zero_bias_attribute(self):
        """A bias-free module still exports a bias attribute, filled with zeros."""
        op = export_conv2d(nn.Conv2d(2, 4, 3, bias=False))

        assert op.params["bias"] == ParameterBool(False)
        assert op.attributes["bias"].shape == [4]
        assert not op.attributes["bias"].get().any()

    @pytest.mark.parametrize(
        "module",
        [
            nn.Conv2d(4, 4, 3, groups=2),
            nn.Conv2d(1, 1, 3, dilation=2),
            nn.Conv2d(1, 1, 3, padding=1, padding_mode="reflect"),
            nn.Conv2d(1, 1, 3, padding="same"),
        ],
    )
    def test_unsupported_modules_raise(self, module):
        """Configurations the layer cannot express are rejected."""
        with pytest.raises(ValueError, match="not supported"):
            export_conv2d(module)


class TestTorchEquivalence:
    """The built layer should agree with torch's own convolution."""

    @pytest.mark.parametrize("stride", [1, 2, 3])
    @pytest.mark.parametrize("padding", [0, 1, 2])
    @pytest.mark.parametrize("bias", [True, False])
    def test_matches_torch_conv2d(self, stride, padding, bias):
        """Outputs should match torch.nn.functional.conv2d to float32 tolerance."""
        torch.manual_seed(42)
        module = nn.Conv2d(3, 5, kernel_size=3, stride=stride, padding=padding, bias=bias)
        batch = torch.randn(2, 3, 10, 9)

        status, layer = build_convolution(export_conv2d(module))
        assert status == ParseParameterAttrStatus.PARSE_SUCCESS

        status, outputs = layer.forward(tensors_from_torch(batch))
        assert status == InferStatus.SUCCESS

        with torch.no_grad():
            expected = F.conv2d(batch, module.weight, module.bias, stride=stride, padding=padding)

        got = tensors_to_torch(outputs)
        assert got.shape == expected.shape
        assert torch.allclose(got, expected, rtol=1e-4, atol=1e-5), (
            f"Outputs differ for stride={stride}, padding={padding}, bias={bias}"
        )

    def test_rectangular_kernel(self):
        """A (2, 4) kernel is applied as height 2, width 4."""
        torch.manual_seed(0)
        module = nn.Conv2d(2, 3, kernel_size=(2, 4))
        batch = torch.randn(1, 2, 6, 7)

        _, layer = build_convolution(export_conv2d(module))
        _, outputs = layer.forward(tensors_from_torch(batch))

        with torch.no_grad():
            expected = module(batch)
        assert torch.allclose(tensors_to_torch(outputs), expected, rtol=1e-4, atol=1e-5)


class TestTensorConversion:
    """Tests for converting between torch batches and Tensors."""

    def test_round_trip_preserves_values(self):
        """Splitting and stacking a batch should give it back unchanged."""
        batch = torch.randn(3, 2, 4, 5)
        tensors = tensors_from_torch(batch)

        assert len(tensors) == 3
        assert tensors[0].shape == (2, 4, 5)
        assert torch.equal(tensors_to_torch(tensors), batch)

    def test_from_torch_requires_four_dimensions(self):
        """Only (N, C, H, W) batches can be split."""
        with pytest.raises(ValueError, match="N, C, H, W"):
            tensors_from_torch(torch.zeros(2, 3, 4))

    def test_to_torch_requires_tensors(self):
        """An empty sequence cannot be stacked."""
        with pytest.raises(ValueError, match="empty"):
            tensors_to_torch([])
