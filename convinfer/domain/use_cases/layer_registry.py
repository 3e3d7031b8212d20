import logging

from convinfer.domain.entities.runtime_ir import RuntimeOperator
from convinfer.domain.entities.status import ParseParameterAttrStatus, UnknownLayerTypeError
from convinfer.domain.interfaces.layer import Layer, LayerCreator

logger = logging.getLogger(__name__)


class LayerRegistry:
    """
    Maps operator type names to the functions that build their layers.

    Registries are plain objects: create one, register creators on it and
    hand it to whatever loads the graph.
    """

    def __init__(self):
        self._creators: dict[str, LayerCreator] = {}

    def register(self, layer_type: str, creator: LayerCreator) -> None:
        """
        Register a creator for an operator type.

        Parameters
        ----------
        layer_type : str
            Operator type name, e.g. "nn.Conv2d".
        creator : LayerCreator
            Function building a layer from a RuntimeOperator.

        Raises
        ------
        ValueError
            If a creator is already registered for `layer_type`.
        """
        if layer_type in self._creators:
            raise ValueError(f"A layer creator is already registered for type '{layer_type}'")
        self._creators[layer_type] = creator
        logger.debug(f"Registered layer creator for {layer_type}")

    def creator(self, layer_type: str) -> LayerCreator:
        try:
            return self._creators[layer_type]
        except KeyError:
            raise UnknownLayerTypeError(layer_type) from None

    def create_layer(self, op: RuntimeOperator) -> tuple[ParseParameterAttrStatus, Layer | None]:
        """
        Build the layer for an operator with the creator registered for its type.

        Raises
        ------
        UnknownLayerTypeError
            If nothing is registered for `op.type`.
        """
        return self.creator(op.type)(op)

    def layer_types(self) -> list[str]:
        return sorted(self._creators)

    def __contains__(self, layer_type: str) -> bool:
        return layer_type in self._creators

    def __len__(self) -> int:
        return len(self._creators)
