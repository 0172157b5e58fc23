"""
pyrender adapter for the orbit controller.

PyrenderCameraSink is a pose sink that drives a camera node in a
pyrender.Scene. pyrender is imported lazily, only when a camera node has
to be created, so the controller itself never needs OpenGL.
"""

import numpy as np
from typing import Any, Optional, Tuple
from numpy.typing import NDArray

from . import coordinates
from .coordinates import VectorLike


class PyrenderCameraSink:
    """
    Pose sink writing camera-to-world poses into a pyrender scene.

    Args:
        scene: pyrender.Scene (anything with set_pose(node, pose) works)
        node: Camera node inside that scene
    """

    def __init__(self, scene: Any, node: Any):
        self.scene = scene
        self.node = node
        self.position = coordinates.vec3([0.0, 0.0, 0.0])
        self.pose: Optional[NDArray[np.float64]] = None

    @classmethod
    def add_to_scene(
        cls,
        scene: Any,
        fov_deg: float = 60.0,
        render_size: Tuple[int, int] = (512, 512),
        zfar: float = 1000.0
    ) -> "PyrenderCameraSink":
        """
        Add a perspective camera to a pyrender scene and wrap it.

        Args:
            scene: pyrender.Scene to add the camera to
            fov_deg: Vertical field of view in degrees
            render_size: (width, height) used for the aspect ratio
            zfar: Far clip distance

        Returns:
            PyrenderCameraSink driving the new camera node
        """
        try:
            import pyrender
        except ImportError:
            raise ImportError(
                "pyrender is required for PyrenderCameraSink. "
                "Install with: pip install pyrender"
            )

        width, height = render_size
        pr_camera = pyrender.PerspectiveCamera(
            yfov=np.radians(fov_deg),
            aspectRatio=width / height,
            zfar=zfar
        )
        node = scene.add(pr_camera, pose=np.eye(4))
        return cls(scene, node)

    def set_position(self, x: float, y: float, z: float) -> None:
        self.position = coordinates.vec3([x, y, z])

    def look_at(self, target: VectorLike, up: VectorLike) -> None:
        # pyrender cameras look down -Z, same as look_at_matrix
        self.pose = np.array(coordinates.look_at_matrix(self.position, target, up))
        self.scene.set_pose(self.node, pose=self.pose)

    def __repr__(self) -> str:
        return f"PyrenderCameraSink(pos={self.position.tolist()})"
