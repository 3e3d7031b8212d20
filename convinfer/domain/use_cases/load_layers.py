import logging
from collections.abc import Iterable
from dataclasses import dataclass

from convinfer.domain.entities.runtime_ir import RuntimeOperator
from convinfer.domain.entities.status import LayerBuildError, ParseParameterAttrStatus
from convinfer.domain.interfaces.layer import Layer
from convinfer.domain.use_cases.layer_registry import LayerRegistry

logger = logging.getLogger(__name__)


@dataclass
class LoadedLayer:
    """A layer built from one operator description."""

    name: str
    type: str
    layer: Layer


class LayerLoader:
    """
    Turns operator descriptions into layers using dependency injection.
    """

    def __init__(self, registry: LayerRegistry):
        """
        Parameters
        ----------
        registry : LayerRegistry
            Registry used to find the creator of each operator type.
        """
        self.registry = registry

    def load(self, operators: Iterable[RuntimeOperator]) -> list[LoadedLayer]:
        """
        Build a layer for every operator, in order.

        Parameters
        ----------
        operators : Iterable[RuntimeOperator]
            Operator descriptions of the graph nodes.

        Returns
        -------
        list[LoadedLayer]
            One entry per operator, in input order.

        Raises
        ------
        LayerBuildError
            If a creator reports a failure status for an operator.
        UnknownLayerTypeError
            If an operator type has no registered creator.
        """
        loaded: list[LoadedLayer] = []
        for op in operators:
            logger.debug(f"Building layer {op.name} ({op.type})")
            try:
                status, layer = self.registry.create_layer(op)
                if status != ParseParameterAttrStatus.PARSE_SUCCESS or layer is None:
                    raise LayerBuildError(op.name, op.type, status)
            except Exception as error:
                logger.error(f"Failed to load operator {op.name}: {error}")
                raise error

            loaded.append(LoadedLayer(name=op.name, type=op.type, layer=layer))

        logger.info(f"Loaded {len(loaded)} layers.")
        return loaded
