"""CLI tool for face detection with visualization."""
import argparse
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from facerecall.core.container import ServiceContainer
from facerecall.core.exceptions import InvalidImageError
from facerecall.core.logging import get_logger
from facerecall.domain.entities.face import Face
from facerecall.services.file_service import FileService

logger = get_logger(__name__)

BOX_COLOR = (0, 180, 0)
TEXT_COLOR = (255, 255, 255)


def draw_faces(image: np.ndarray, faces: List[Face]) -> np.ndarray:
    """
    Draw bounding boxes and confidence scores on a copy of the image.

    Args:
        image: Original BGR image
        faces: Detected faces with relative bounding boxes

    Returns:
        Annotated copy of the image
    """
    img_draw = image.copy()
    height, width = img_draw.shape[:2]
    font_scale = 0.6
    thickness = 2
    padding = 10

    for i, face in enumerate(faces, 1):
        bbox = face.bounding_box
        x1 = int(bbox.left * width)
        y1 = int(bbox.top * height)
        x2 = int((bbox.left + bbox.width) * width)
        y2 = int((bbox.top + bbox.height) * height)

        cv2.rectangle(img_draw, (x1, y1), (x2, y2), BOX_COLOR, thickness)

        label = f"Face {i}: {face.confidence:.2f}"
        (text_width, text_height), _ = cv2.getTextSize(
            label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, thickness
        )
        # Keep the label inside the image for faces touching the top edge
        label_top = max(y1 - text_height - padding * 2, 0)
        cv2.rectangle(
            img_draw,
            (x1, label_top),
            (x1 + text_width + padding, label_top + text_height + padding * 2),
            BOX_COLOR,
            -1
        )
        cv2.putText(
            img_draw,
            label,
            (x1 + padding // 2, label_top + text_height + padding),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            TEXT_COLOR,
            thickness
        )

    return img_draw


def output_path_for(image_file: Path) -> Path:
    return image_file.parent / f"{image_file.stem}_detected{image_file.suffix}"


async def detect_faces(args: argparse.Namespace, container: ServiceContainer) -> int:
    """Detect faces in a photo, print them and save an annotated copy."""
    image_file = FileService().resolve(args.image_path)
    image_bytes = await FileService().get_file_bytes(image_file)

    result = await container.extractor.detect(image_bytes)
    logger.info("Face detection completed", num_faces=len(result.faces), image_path=str(image_file))

    if not result.faces:
        print("No face detected")
    for i, face in enumerate(result.faces, 1):
        bbox = face.bounding_box
        print(
            f"Face {i}: confidence {face.confidence:.2f}, "
            f"left {bbox.left:.3f} top {bbox.top:.3f} width {bbox.width:.3f} height {bbox.height:.3f}"
        )

    if args.no_save and not args.show:
        return 0

    img = cv2.imread(str(image_file))
    if img is None:
        raise InvalidImageError(f"Failed to load image for visualization: {image_file}")
    annotated = draw_faces(img, result.faces)

    output_path: Optional[Path] = None
    if not args.no_save:
        output_path = output_path_for(image_file)
        cv2.imwrite(str(output_path), annotated)
        print(f"Saved annotated image to {output_path}")

    if args.show:
        cv2.imshow("Detected Faces", annotated)
        cv2.waitKey(0)
        cv2.destroyAllWindows()
    return 0


def register(subparsers: argparse._SubParsersAction) -> None:
    detect = subparsers.add_parser("detect", help="Detect and visualize faces in an image")
    detect.add_argument("image_path", help="Path to the image file")
    detect.add_argument("--no-save", action="store_true", help="Don't save the annotated image")
    detect.add_argument("--show", action="store_true", help="Display the annotated image in a window")
    detect.set_defaults(handler=detect_faces, needs_models=True)
