"""Robot scan sweep: camera poses around an object and cloud acquisition.

Motion planning and the sensor stream are injected through the
``MotionInterface`` and ``CloudSensor`` protocols. Every cloud received
during a sweep is handed to the registered callbacks, typically
``SurfaceDetection.add_cloud``.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, Sequence

import numpy as np

from surfdet.core.contracts import PointCloud, Pose
from surfdet.core.errors import AcquisitionFailure
from surfdet.utils.geometry import axis_rotation, make_transform
from .config import ScanConfig

logger = logging.getLogger(__name__)

ScanCallback = Callable[[PointCloud], object]


class MotionInterface(Protocol):
    def compute_cartesian_path(self, poses: Sequence[Pose]) -> float:
        """Fraction (0-1) of ``poses`` a cartesian path can reach."""
        ...

    def move_to(self, pose: Pose) -> bool:
        ...


class CloudSensor(Protocol):
    def wait_for_cloud(self, timeout: float) -> Optional[PointCloud]:
        """Next cloud in the scan target frame, or None on timeout."""
        ...


def create_scan_poses(config: ScanConfig) -> list[Pose]:
    """Tool poses sweeping the camera around the object.

    For each sweep angle ``a`` (evenly spaced, both ends included) the camera
    sits at ``Tz(zoffset) * Rz(a) * Tx(xoffset) * Ry(tilt)`` in the object
    frame; the returned pose is that camera pose mapped back to the tool.
    """
    n = config.num_scan_points
    world_to_obj = config.world_to_obj_pose.to_matrix()
    cam_to_tcp = np.linalg.inv(config.tcp_to_cam_pose.to_matrix())
    z_disp = make_transform(translation=[0.0, 0.0, config.cam_to_obj_zoffset])
    x_disp = make_transform(translation=[config.cam_to_obj_xoffset, 0.0, 0.0])
    tilt = axis_rotation("y", config.cam_tilt_angle)

    poses = []
    for alpha in np.linspace(config.sweep_angle_start, config.sweep_angle_end, n):
        obj_to_cam = z_disp @ axis_rotation("z", float(alpha)) @ x_disp @ tilt
        poses.append(Pose.from_matrix(world_to_obj @ obj_to_cam @ cam_to_tcp))
    return poses


class RobotScan:
    def __init__(self, config: ScanConfig, motion: MotionInterface, sensor: CloudSensor):
        self.config = config
        self.motion = motion
        self.sensor = sensor
        self._callbacks: list[ScanCallback] = []

    def add_scan_callback(self, callback: ScanCallback) -> None:
        self._callbacks.append(callback)

    def clear_callbacks(self) -> None:
        self._callbacks.clear()

    def get_scan_poses(self) -> list[Pose]:
        return create_scan_poses(self.config)

    def _check_reachability(self, poses: list[Pose]) -> bool:
        ratio = self.config.reachable_scan_points_ratio
        fraction = self.motion.compute_cartesian_path(poses)
        if fraction >= ratio:
            logger.info(f"Reachable scan poses {fraction:.0%} meets the threshold of {ratio:.0%}")
            return True
        logger.warning(f"Reachable scan poses {fraction:.0%} is below the threshold of {ratio:.0%}")
        return False

    def _acquire(self, index: int) -> PointCloud:
        cloud = self.sensor.wait_for_cloud(self.config.wait_msg_duration)
        if cloud is None:
            raise AcquisitionFailure(
                f"No cloud received at pose {index} within {self.config.wait_msg_duration}s"
            )
        return cloud.finite()

    def scan(self, move_only: bool = False) -> int:
        """Run the sweep and return the number of poses reached."""
        poses = self.get_scan_poses()
        logger.info(f"Scanning with {len(poses)} poses")
        if not self._check_reachability(poses):
            return 0

        reached = 0
        for i, pose in enumerate(poses):
            if not self.motion.move_to(pose):
                if self.config.stop_on_planning_error:
                    logger.error(f"Planning error at pose {i}, stopping scan")
                    break
                logger.warning(f"Move to scan pose {i} failed, skipping")
                continue
            reached += 1

            if move_only:
                logger.debug(f"Move-only mode, no acquisition at pose {i}")
                continue
            try:
                cloud = self._acquire(i)
            except AcquisitionFailure as e:
                logger.error(str(e))
                continue

            logger.info(f"Cloud with {len(cloud)} points received at pose {i}")
            for callback in self._callbacks:
                callback(cloud)

        logger.info(f"Scan finished: {reached}/{len(poses)} poses reached")
        return reached
