"""
I/O utilities for the identity matching engine.

Provides functions for loading reference and probe images from disk,
decoding uploaded image bytes, and persisting JSON results.
"""

import io
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from facehash.errors import InvalidImage


# Supported image extensions
SUPPORTED_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.bmp', '.webp', '.tif', '.tiff'}


def load_image(path: Union[str, Path]) -> np.ndarray:
    """
    Load an image from disk as an RGB (or RGBA) array.

    Args:
        path: Path to the image file

    Returns:
        uint8 array of shape (H, W, 3) or (H, W, 4)

    Raises:
        FileNotFoundError: If image file does not exist
        InvalidImage: If the file cannot be decoded
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    # cv2.imread cannot open non-ASCII paths on every platform
    buffer = np.fromfile(str(path), dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)

    if image is None:
        raise InvalidImage(f"Failed to load image: {path}")

    return _to_rgb(image)


def _to_rgb(image: np.ndarray) -> np.ndarray:
    if image.dtype == np.uint16:
        image = (image // 257).astype(np.uint8)

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode uploaded image bytes into an RGB (or RGBA) array.

    Args:
        data: Raw encoded image bytes (PNG, JPEG, ...)

    Returns:
        uint8 array of shape (H, W, 3) or (H, W, 4)

    Raises:
        InvalidImage: If the bytes are not a decodable image
    """
    if not data:
        raise InvalidImage("Empty image data")

    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            mode = "RGBA" if "A" in image.getbands() else "RGB"
            return np.array(image.convert(mode))
    except (UnidentifiedImageError, OSError, ValueError, EOFError) as e:
        raise InvalidImage(f"Failed to decode image: {e}") from e


def save_image(image: np.ndarray, path: Union[str, Path]) -> None:
    """
    Save an RGB or RGBA array to disk.

    Args:
        image: uint8 array of shape (H, W, 3) or (H, W, 4)
        path: Output path; format follows the extension
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if image.ndim == 3 and image.shape[2] == 4:
        bgr = cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)
    elif image.ndim == 3:
        bgr = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    else:
        bgr = image

    ok, encoded = cv2.imencode(path.suffix or ".png", bgr)
    if not ok:
        raise ValueError(f"Failed to encode image for {path}")
    encoded.tofile(str(path))


def discover_images(
    directory: Union[str, Path],
    extensions: Optional[set] = None,
    recursive: bool = True
) -> List[Path]:
    """
    Discover all images in a directory.

    Args:
        directory: Root directory to search
        extensions: Set of valid extensions (default: SUPPORTED_EXTENSIONS)
        recursive: Whether to search subdirectories

    Returns:
        Sorted list of paths to discovered images
    """
    directory = Path(directory)
    extensions = extensions or SUPPORTED_EXTENSIONS

    images = []
    pattern = '**/*' if recursive else '*'

    for path in directory.glob(pattern):
        if path.is_file() and path.suffix.lower() in extensions:
            images.append(path)

    return sorted(images)


def identity_from_path(path: Union[str, Path], root: Union[str, Path]) -> str:
    """
    Derive the identity label of a probe image.

    Images inside a subdirectory of ``root`` are labeled with the
    subdirectory name (``root/alice/1.jpg`` -> ``alice``). Images directly
    in ``root`` are labeled with their stem up to the last underscore
    (``root/alice_1.jpg`` -> ``alice``).
    """
    path = Path(path)
    relative = path.relative_to(root)

    if len(relative.parts) > 1:
        return relative.parts[0]

    stem = path.stem
    if "_" in stem:
        return stem.rsplit("_", 1)[0]
    return stem


def group_images_by_identity(
    images: List[Path],
    root: Union[str, Path]
) -> Dict[str, List[Path]]:
    """
    Group probe images by identity label.

    Args:
        images: List of image paths under ``root``
        root: Directory the labels are relative to

    Returns:
        Dictionary mapping identity name to list of image paths
    """
    groups: Dict[str, List[Path]] = {}

    for img_path in images:
        groups.setdefault(identity_from_path(img_path, root), []).append(img_path)

    return groups


def load_json(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a JSON file."""
    with open(path, 'r') as f:
        return json.load(f)


def save_json(data: Dict[str, Any], path: Union[str, Path], indent: int = 2) -> None:
    """Save data to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(data, f, indent=indent, default=str)
