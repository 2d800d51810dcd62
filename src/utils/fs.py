"""Filesystem helpers for render outputs and configs.

Every write goes to a sibling temporary file which is then renamed over the
target, so a reader sees either the previous file or the complete new one.

Provides:
    - ensure_dir(): mkdir -p
    - atomic_write_bytes(), atomic_save_image(), atomic_yaml_dump()
    - load_yaml(): safe YAML parsing with the file path in errors

Usage:
    from src.utils import fs
    fs.atomic_save_image(canvas, "outputs/outline.png")
    fs.atomic_yaml_dump(metadata, "outputs/outline_metadata.yaml")

Note: Module named `fs.py` to avoid shadowing stdlib `io`.
"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import numpy as np
import yaml
from PIL import Image

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Create ``p`` (and parents) if missing; returns it as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


@contextmanager
def _replace_on_success(path: Path, tmp_path: Path) -> Iterator[Path]:
    """Yield ``tmp_path`` for writing, then rename it over ``path``.

    The temporary file is removed if the body raises.
    """
    ensure_dir(path.parent)
    try:
        yield tmp_path
        # Same directory, so the rename stays on one filesystem
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Atomic write to {path} failed: {e}") from e


def atomic_write_bytes(path: PathLike, data: bytes, tmp_suffix: str = ".tmp") -> None:
    """Write ``data`` to ``path`` atomically, fsync'ed before the rename."""
    path = Path(path)
    with _replace_on_success(path, path.with_suffix(path.suffix + tmp_suffix)) as tmp:
        with open(tmp, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())


def atomic_save_image(
    img: np.ndarray,
    path: PathLike,
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save a canvas as an image file atomically.

    Parameters
    ----------
    img : np.ndarray
        (H, W) grayscale or (H, W, 3) RGB. Non-uint8 input is clipped to
        0..255. Column views of padded buffers are accepted.
    path : PathLike
        Target path; the extension selects the format
    pil_kwargs : dict, optional
        Passed through to ``PIL.Image.save``
    """
    path = Path(path)

    if img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[..., 0]

    # PIL wants a packed buffer, strided canvases are not
    pil_img = Image.fromarray(np.ascontiguousarray(img))

    # Extension stays last so PIL infers the format from the temp name
    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    with _replace_on_success(path, tmp_path) as tmp:
        pil_img.save(tmp, **(pil_kwargs or {}))


def atomic_yaml_dump(obj: Any, path: PathLike) -> None:
    """Dump ``obj`` as block-style YAML, keeping key order."""
    text = yaml.safe_dump(obj, default_flow_style=False, sort_keys=False, allow_unicode=True)
    atomic_write_bytes(path, text.encode('utf-8'))


def load_yaml(path: PathLike) -> Any:
    """Parse a YAML file with ``yaml.safe_load``.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist
    yaml.YAMLError
        If the content is not valid YAML (message includes the path)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in {path}: {e}") from e
