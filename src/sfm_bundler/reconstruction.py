"""
In-memory reconstruction: views (images with a camera) and tracks (3D points
with the views observing them).

View and track identifiers are dense integers handed out in insertion order.
`Reconstruction.view_ids()` and `Reconstruction.track_ids()` return them in
that order, and every exporter iterates in that order.
"""

import copy
import logging
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from .camera import Camera, CameraIntrinsicsPrior

logger = logging.getLogger("sfm_bundler")

ViewId = int
TrackId = int


class Feature:
    """2D observation in pixel coordinates, origin at the top-left corner and y pointing down."""

    def __init__(self, x: float, y: float):
        self.point = np.array([x, y], dtype=np.float64)

    @property
    def x(self) -> float:
        return float(self.point[0])

    @property
    def y(self) -> float:
        return float(self.point[1])

    def __repr__(self) -> str:
        return f"Feature({self.x}, {self.y})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Feature):
            return NotImplemented
        return bool(np.array_equal(self.point, other.point))


class View:
    """
    A single image of the reconstruction.

    Attributes:
        name (str): Image file name, as written to the list file.
        camera (Camera): Calibrated camera with the estimated pose.
        camera_intrinsics_prior (CameraIntrinsicsPrior): Intrinsics known before
            the reconstruction.
        is_estimated (bool): True once the pose of the view has been solved.
    """

    def __init__(self, name: str):
        self.name = name
        self.camera = Camera()
        self.camera_intrinsics_prior = CameraIntrinsicsPrior()
        self.is_estimated = False
        self._features: Dict[TrackId, Feature] = {}

    def __repr__(self) -> str:
        return f"View({self.name}, estimated={self.is_estimated}, features={len(self._features)})"

    def add_feature(self, track_id: TrackId, feature: Feature) -> None:
        self._features[track_id] = feature

    def remove_feature(self, track_id: TrackId) -> bool:
        return self._features.pop(track_id, None) is not None

    def get_feature(self, track_id: TrackId) -> Optional[Feature]:
        return self._features.get(track_id)

    def track_ids(self) -> List[TrackId]:
        return list(self._features.keys())

    def num_features(self) -> int:
        return len(self._features)


class Track:
    """
    A 3D point and the set of views observing it.

    The point is stored in homogeneous coordinates (x, y, z, w).
    """

    def __init__(self):
        self.point = np.array([0.0, 0.0, 0.0, 1.0])
        self.is_estimated = False
        # dict keys keep insertion order, used as an ordered set
        self._view_ids: Dict[ViewId, None] = {}

    def __repr__(self) -> str:
        return f"Track(views={list(self._view_ids)}, estimated={self.is_estimated})"

    def set_point(self, point: np.ndarray) -> None:
        point = np.asarray(point, dtype=np.float64).reshape(-1)
        if point.shape == (3,):
            point = np.append(point, 1.0)
        if point.shape != (4,):
            raise ValueError(f"Invalid track point shape {point.shape}, expected (3,) or (4,)")
        self.point = point

    def dehomogenized_point(self) -> np.ndarray:
        return self.point[:3] / self.point[3]

    def add_view(self, view_id: ViewId) -> None:
        self._view_ids[view_id] = None

    def remove_view(self, view_id: ViewId) -> bool:
        if view_id not in self._view_ids:
            return False
        del self._view_ids[view_id]
        return True

    def view_ids(self) -> List[ViewId]:
        return list(self._view_ids.keys())

    def num_views(self) -> int:
        return len(self._view_ids)


class Reconstruction:
    """
    Container of views and tracks.

    Views and tracks reference each other through identifiers: a view maps
    track ids to its features, a track holds the ids of its observing views.
    Removing a view or a track keeps both sides consistent.
    """

    def __init__(self):
        self._views: Dict[ViewId, View] = {}
        self._tracks: Dict[TrackId, Track] = {}
        self._name_to_view_id: Dict[str, ViewId] = {}
        self._next_view_id = 0
        self._next_track_id = 0

    def __repr__(self) -> str:
        return f"Reconstruction({self.summary()})"

    def copy(self) -> "Reconstruction":
        """Return an independent deep copy."""
        return copy.deepcopy(self)

    def summary(self) -> str:
        num_estimated_views = sum(view.is_estimated for view in self._views.values())
        num_estimated_tracks = sum(track.is_estimated for track in self._tracks.values())
        return (
            f"{self.num_views()} views ({num_estimated_views} estimated), "
            f"{self.num_tracks()} tracks ({num_estimated_tracks} estimated)"
        )

    # Views

    def add_view(self, name: str) -> ViewId:
        if name in self._name_to_view_id:
            raise ValueError(f"A view named {name} already exists in the reconstruction.")
        view_id = self._next_view_id
        self._next_view_id += 1
        self._views[view_id] = View(name)
        self._name_to_view_id[name] = view_id
        return view_id

    def view(self, view_id: ViewId) -> Optional[View]:
        return self._views.get(view_id)

    def view_id_from_name(self, name: str) -> Optional[ViewId]:
        return self._name_to_view_id.get(name)

    def view_ids(self) -> List[ViewId]:
        return list(self._views.keys())

    def num_views(self) -> int:
        return len(self._views)

    def remove_view(self, view_id: ViewId) -> bool:
        """Remove a view and detach it from all the tracks it observes."""
        view = self._views.pop(view_id, None)
        if view is None:
            logger.debug(f"Cannot remove view {view_id}: it does not exist.")
            return False
        del self._name_to_view_id[view.name]
        for track_id in view.track_ids():
            track = self._tracks.get(track_id)
            if track is not None:
                track.remove_view(view_id)
        return True

    # Tracks

    def add_track(self, observations: Iterable[Tuple[ViewId, Feature]]) -> TrackId:
        """
        Add a new track observed by the given views.

        Args:
            observations (Iterable[Tuple[ViewId, Feature]]): Pairs of view id and
                the feature observed in that view. At least two distinct views are required.

        Returns:
            TrackId: The id of the new track.

        Raises:
            ValueError: If fewer than two observations are given, a view appears
                twice or a view does not exist.
        """
        observations = list(observations)
        if len(observations) < 2:
            raise ValueError(f"A track needs at least 2 observations, got {len(observations)}.")
        view_ids = [view_id for view_id, _ in observations]
        if len(set(view_ids)) != len(view_ids):
            raise ValueError(f"A track cannot be observed twice by the same view: {view_ids}")
        for view_id in view_ids:
            if view_id not in self._views:
                raise ValueError(f"Cannot add a track observed by view {view_id}: the view does not exist.")

        track_id = self._next_track_id
        self._next_track_id += 1
        self._tracks[track_id] = Track()
        for view_id, feature in observations:
            self.add_observation(view_id, track_id, feature)
        return track_id

    def add_observation(self, view_id: ViewId, track_id: TrackId, feature: Feature) -> bool:
        """Add an observation of an existing track. Returns False if the view already observes the track."""
        view = self._views.get(view_id)
        track = self._tracks.get(track_id)
        if view is None or track is None:
            raise ValueError(f"Invalid observation: view {view_id} or track {track_id} does not exist.")
        if view.get_feature(track_id) is not None:
            logger.debug(f"View {view_id} already observes track {track_id}.")
            return False
        view.add_feature(track_id, feature)
        track.add_view(view_id)
        return True

    def track(self, track_id: TrackId) -> Optional[Track]:
        return self._tracks.get(track_id)

    def track_ids(self) -> List[TrackId]:
        return list(self._tracks.keys())

    def num_tracks(self) -> int:
        return len(self._tracks)

    def remove_track(self, track_id: TrackId) -> bool:
        """Remove a track and its features from all the observing views."""
        track = self._tracks.pop(track_id, None)
        if track is None:
            logger.debug(f"Cannot remove track {track_id}: it does not exist.")
            return False
        for view_id in track.view_ids():
            view = self._views.get(view_id)
            if view is not None:
                view.remove_feature(track_id)
        return True
