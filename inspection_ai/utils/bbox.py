"""
Bounding box normalization
"""
from typing import Any, Optional, Sequence, Tuple


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _average_points(points: Sequence[Any]) -> Optional[Tuple[float, float]]:
    xs, ys = [], []
    for point in points:
        if not isinstance(point, (list, tuple)) or len(point) < 2:
            return None
        if not (_is_number(point[0]) and _is_number(point[1])):
            return None
        xs.append(float(point[0]))
        ys.append(float(point[1]))

    if not xs:
        return None
    return sum(xs) / len(xs), sum(ys) / len(ys)


def to_centroid(bbox: Any) -> Optional[Tuple[float, float]]:
    """
    Average (x, y) of a bounding box in any of the shapes the model returns

    Supported shapes:
        - {"points": [[x, y], ...]}
        - [[x1, y1], [x2, y2], ...]
        - [x1, y1, x2, y2]

    Args:
        bbox: Bounding box as received

    Returns:
        (x, y) centroid, or None when the box is missing or unusable
    """
    if isinstance(bbox, dict):
        points = bbox.get("points")
        if isinstance(points, (list, tuple)):
            return _average_points(points)
        return None

    if not isinstance(bbox, (list, tuple)) or not bbox:
        return None

    if isinstance(bbox[0], (list, tuple)):
        return _average_points(bbox)

    if len(bbox) >= 4 and all(_is_number(v) for v in bbox[:4]):
        x1, y1, x2, y2 = (float(v) for v in bbox[:4])
        return (x1 + x2) / 2, (y1 + y2) / 2

    return None
