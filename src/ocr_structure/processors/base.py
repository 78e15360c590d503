"""Common base for the table detection processors."""

from typing import Any, Dict, Optional
import numpy as np
from abc import ABC, abstractmethod
from pathlib import Path
import logging

import cv2

from ..exceptions import InvalidInputError

logger = logging.getLogger(__name__)


class BaseProcessor(ABC):
    """A detection step driven by a ``Config``, collecting intermediate masks."""

    def __init__(self, config: Optional[Any] = None):
        self.config = config
        self.debug_images: Dict[str, np.ndarray] = {}

    def get_config_value(self, key: str, default: Any) -> Any:
        """Look up a dotted setting such as ``"grid.boundary_tolerance"``.

        Falls back to ``default`` without a config or when any part is unset.
        """
        node = self.config
        for name in key.split("."):
            node = getattr(node, name, None)
            if node is None:
                return default
        return node

    @abstractmethod
    def process(self, image: np.ndarray, **kwargs) -> Any:
        pass

    def validate_image(self, image: np.ndarray) -> None:
        """Reject anything that is not a non-empty numpy image."""
        if not isinstance(image, np.ndarray):
            raise InvalidInputError(
                f"Expected a numpy image, got {type(image).__name__}",
                processor=type(self).__name__,
            )
        if image.size == 0:
            raise InvalidInputError("Image is empty", processor=type(self).__name__)

    def save_debug_image(self, name: str, image: np.ndarray) -> None:
        """Keep an intermediate mask when ``save_debug_images`` is on."""
        if self.get_config_value("save_debug_images", False):
            self.debug_images[name] = image

    def get_debug_images(self) -> Dict[str, np.ndarray]:
        return self.debug_images

    def clear_debug_images(self) -> None:
        self.debug_images = {}

    def save_debug_images_to_dir(self, debug_dir: Path, prefix: str = "") -> None:
        """Write the kept masks as ``<prefix>_<name>.png``; failures are logged."""
        if not self.debug_images:
            return
        debug_dir.mkdir(parents=True, exist_ok=True)

        for name, mask in self.debug_images.items():
            target = debug_dir / (f"{prefix}_{name}.png" if prefix else f"{name}.png")
            if cv2.imwrite(str(target), mask):
                logger.debug(f"Saved debug mask {target}")
            else:
                logger.warning(f"Could not write debug mask {target}")
