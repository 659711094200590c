import cv2
import numpy as np
from pathlib import Path


def imwrite_params(picture_type: str, quality: int = 75) -> list[int]:
    """
    Returns the OpenCV encoder parameters for a picture type.

    Args:
        picture_type (str): "jpeg", "webp" or "ppm".
        quality (int): Encoder quality (1-100), ignored for ppm.

    Returns:
        list: Flat [flag, value, ...] list for cv2.imwrite / cv2.imencode.
    """
    if picture_type == "ppm":
        return [int(cv2.IMWRITE_PXM_BINARY), 1]
    if picture_type == "webp":
        return [int(cv2.IMWRITE_WEBP_QUALITY), int(quality)]
    return [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)]


def write_picture(path: str, frame, picture_type: str = "jpeg", quality: int = 75) -> bool:
    """
    Writes a frame to disk.

    A numpy frame is encoded by OpenCV according to picture_type; a bytes
    buffer is taken as already encoded and written as-is.

    Args:
        path: Target file path. Parent directories are created.
        frame: BGR numpy array or encoded bytes.
        picture_type: "jpeg", "webp" or "ppm".
        quality: Encoder quality.

    Returns:
        True if the file was written completely, False otherwise.
    """
    if frame is None:
        return False
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    if isinstance(frame, np.ndarray):
        return bool(cv2.imwrite(str(path), frame, imwrite_params(picture_type, quality)))
    with open(path, "wb") as f:
        f.write(bytes(frame))
    return True


def encode_jpeg(frame: np.ndarray, quality: int = 80) -> bytes | None:
    """
    Encodes a BGR frame as JPEG.

    Returns:
        The JPEG bytes, or None if encoding failed.
    """
    ret, buffer = cv2.imencode(".jpg", frame, imwrite_params("jpeg", quality))
    if not ret:
        return None
    return buffer.tobytes()
