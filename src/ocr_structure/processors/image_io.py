"""Page image loading and discovery."""

from pathlib import Path
from typing import Iterable, List, Union

import cv2
import numpy as np

from ..exceptions import ImageUnreadableError

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".tif", ".tiff", ".bmp"})


def load_image(image_path: Union[str, Path]) -> np.ndarray:
    """Decode a page image as BGR.

    Raises:
        ImageUnreadableError: If the file is missing or OpenCV cannot decode it
    """
    path = Path(image_path)
    if not path.is_file():
        raise ImageUnreadableError(f"Image file not found: {path}", image_path=str(path))

    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise ImageUnreadableError(f"Could not decode image: {path}", image_path=str(path))
    return image


def get_image_files(directory: Path) -> List[Path]:
    """Image files directly inside ``directory``, sorted by name.

    Extensions are matched case-insensitively.
    """
    return sorted(
        p for p in Path(directory).iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def expand_image_paths(paths: Iterable[Union[str, Path]]) -> List[Path]:
    """Replace each directory in ``paths`` by the images it contains, keeping order."""
    expanded: List[Path] = []
    for item in paths:
        path = Path(item)
        if path.is_dir():
            expanded.extend(get_image_files(path))
        else:
            expanded.append(path)
    return expanded
