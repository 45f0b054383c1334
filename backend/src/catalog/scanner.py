"""Discover image volumes under a dataset root."""

from __future__ import annotations

import logging
import os
from pathlib import Path


logger = logging.getLogger(__name__)

NIFTI_SUFFIXES = (".nii", ".nii.gz")
DICOM_SUFFIX = ".dcm"


def _is_nifti(name: str) -> bool:
    lowered = name.lower()
    return any(lowered.endswith(suffix) for suffix in NIFTI_SUFFIXES)


def scan_image_paths(root: Path | str) -> list[str]:
    """Return sorted POSIX paths, relative to ``root``, of every image volume.

    A NIfTI file is one volume. A directory holding ``.dcm`` files is one
    DICOM series volume; its files are not listed individually.
    """
    root_path = Path(root).expanduser().resolve()
    if not root_path.is_dir():
        raise FileNotFoundError(f"Dataset root {root_path} is not a directory")

    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames.sort()
        current = Path(dirpath)
        if any(name.lower().endswith(DICOM_SUFFIX) for name in filenames):
            # DICOM files directly under the root make the root itself a series, listed as "."
            found.append(current.relative_to(root_path).as_posix())
        for name in filenames:
            if _is_nifti(name):
                found.append((current / name).relative_to(root_path).as_posix())

    found.sort()
    logger.info("Scanned %s: %d image volume(s)", root_path, len(found))
    return found
