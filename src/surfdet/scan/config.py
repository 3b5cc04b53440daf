"""Configuration for the robot scan sweep."""

import math

import numpy as np
from pydantic import BaseModel, Field

from surfdet.utils.geometry import make_transform, rpy_to_matrix


class PoseParam(BaseModel):
    """Pose given as a translation plus fixed-axis roll/pitch/yaw (radians)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    rx: float = 0.0
    ry: float = 0.0
    rz: float = 0.0

    def to_matrix(self) -> np.ndarray:
        return make_transform(rpy_to_matrix(self.rx, self.ry, self.rz), [self.x, self.y, self.z])


class ScanConfig(BaseModel):
    group_name: str = Field("manipulator", description="Motion planning group")
    world_frame: str = Field("world_frame", description="Frame the scan poses are expressed in")
    tcp_frame: str = Field("tcp", description="Tool frame driven to each scan pose")
    tcp_to_cam_pose: PoseParam = Field(default_factory=PoseParam, description="Camera pose in the tool frame")
    world_to_obj_pose: PoseParam = Field(default_factory=PoseParam, description="Object pose in the world frame")
    cam_to_obj_zoffset: float = Field(0.0, description="Camera height above the object (meters)")
    cam_to_obj_xoffset: float = Field(0.0, description="Camera radial distance from the object (meters)")
    cam_tilt_angle: float = Field(-math.pi / 4, description="Camera tilt about its y axis (radians)")
    sweep_angle_start: float = Field(0.0, description="First sweep angle about the object z axis (radians)")
    sweep_angle_end: float = Field(2 * math.pi, description="Last sweep angle (radians, inclusive)")
    scan_topic: str = Field("point_cloud", description="Sensor stream the clouds arrive on")
    num_scan_points: int = Field(20, ge=2, description="Number of poses in the sweep")
    reachable_scan_points_ratio: float = Field(
        0.5, ge=0, le=1, description="Minimum reachable fraction of the sweep to start scanning"
    )
    scan_target_frame: str = Field("world_frame", description="Frame received clouds are delivered in")
    stop_on_planning_error: bool = Field(True, description="Abort the sweep on the first failed move")
    wait_msg_duration: float = Field(2.0, gt=0, description="Seconds to wait for a cloud at each pose")
