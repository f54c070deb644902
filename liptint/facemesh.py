from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

try:
    import cv2
    import mediapipe as mp
except Exception as e:  # pragma: no cover - environment import guard
    cv2 = None  # type: ignore
    mp = None  # type: ignore

from .types import BBox, FaceRecord, Keypoint

logger = logging.getLogger(__name__)


# Region names attached to keypoints, keyed by MediaPipe connection set
_REGION_CONNECTIONS = (
    ("lips", "FACEMESH_LIPS"),
    ("left_eye", "FACEMESH_LEFT_EYE"),
    ("right_eye", "FACEMESH_RIGHT_EYE"),
    ("left_eyebrow", "FACEMESH_LEFT_EYEBROW"),
    ("right_eyebrow", "FACEMESH_RIGHT_EYEBROW"),
    ("left_iris", "FACEMESH_LEFT_IRIS"),
    ("right_iris", "FACEMESH_RIGHT_IRIS"),
    ("face_oval", "FACEMESH_FACE_OVAL"),
)


@dataclass
class FaceMeshConfig:
    static_image_mode: bool = True
    refine_landmarks: bool = True
    max_faces: int = 1

    @classmethod
    def from_cfg(cls, cfg: Mapping) -> "FaceMeshConfig":
        mp_cfg = cfg.get("mediapipe", {})
        return cls(
            static_image_mode=bool(mp_cfg.get("static_image_mode", True)),
            refine_landmarks=bool(mp_cfg.get("refine_landmarks", True)),
            max_faces=int(mp_cfg.get("max_faces", 1)),
        )


def _indices_from_connections(connections: Iterable[Tuple[int, int]]) -> List[int]:
    return sorted({i for edge in connections for i in edge})


def region_names() -> Dict[int, str]:
    """Map FaceMesh landmark index -> region name; the first region listed wins."""
    if mp is None:
        return {}
    names: Dict[int, str] = {}
    for region, attr in _REGION_CONNECTIONS:
        conns = getattr(mp.solutions.face_mesh, attr, None)
        if conns is None:
            continue
        for idx in _indices_from_connections(conns):
            names.setdefault(idx, region)
    return names


def face_record_from_pixels(pixel: np.ndarray, names: Optional[Mapping[int, str]] = None) -> FaceRecord:
    """Build a FaceRecord from an (N, 2) array of pixel coordinates.

    Keypoint `index` is the row number; `name` comes from `names` when given.
    The box is the landmark bounds.
    """
    names = names or {}
    keypoints = [
        Keypoint(x=float(x), y=float(y), name=names.get(i), index=i)
        for i, (x, y) in enumerate(pixel)
    ]
    x_min, y_min = float(np.min(pixel[:, 0])), float(np.min(pixel[:, 1]))
    x_max, y_max = float(np.max(pixel[:, 0])), float(np.max(pixel[:, 1]))
    box = BBox(x_min=x_min, y_min=y_min, width=x_max - x_min, height=y_max - y_min)
    return FaceRecord(keypoints=keypoints, box=box)


def _landmarks_to_pixels(lms, width: int, height: int) -> np.ndarray:
    xs = [pt.x * width for pt in lms.landmark]
    ys = [pt.y * height for pt in lms.landmark]
    return np.stack([xs, ys], axis=1).astype(np.float32)


class FaceMeshDetector:
    """Reusable wrapper around MediaPipe FaceMesh producing FaceRecords.

    Usage:
        with FaceMeshDetector(FaceMeshConfig()) as det:
            face = det.detect(image_bgr)
    """

    def __init__(self, cfg: Optional[FaceMeshConfig] = None):
        if mp is None or cv2 is None:
            raise ImportError("mediapipe and opencv-python must be installed to use FaceMeshDetector")
        self.cfg = cfg or FaceMeshConfig()
        self._mesh = None
        self._names = region_names()

    def __enter__(self):
        self._mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=self.cfg.static_image_mode,
            refine_landmarks=self.cfg.refine_landmarks,
            max_num_faces=self.cfg.max_faces,
        )
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._mesh is not None:
            self._mesh.close()
            self._mesh = None

    def _ensure_open(self):
        if self._mesh is None:
            # Allow use without context manager by lazy init
            self.__enter__()

    def detect(self, image_bgr: np.ndarray) -> Optional[FaceRecord]:
        """Return the largest detected face, or None."""
        self._ensure_open()
        assert self._mesh is not None

        if image_bgr.ndim == 2:
            img_rgb = cv2.cvtColor(image_bgr, cv2.COLOR_GRAY2RGB)
        elif image_bgr.shape[2] == 4:
            img_rgb = cv2.cvtColor(image_bgr, cv2.COLOR_BGRA2RGB)
        else:
            img_rgb = cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB)
        results = self._mesh.process(img_rgb)
        if not results or not results.multi_face_landmarks:
            return None

        height, width = image_bgr.shape[:2]
        faces = [
            face_record_from_pixels(_landmarks_to_pixels(flm, width, height), self._names)
            for flm in results.multi_face_landmarks
        ]
        # Primary face: largest box area
        primary = max(faces, key=lambda f: f.box.width * f.box.height)
        logger.debug("Detected %d face(s); primary box %s", len(faces), primary.box)
        return primary


__all__ = ["FaceMeshDetector", "FaceMeshConfig", "face_record_from_pixels", "region_names"]
