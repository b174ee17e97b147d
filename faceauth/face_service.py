"""
Face Descriptor Extraction using DeepFace

This module turns an uploaded image into a face descriptor:
- Image loading and preprocessing
- Face detection and alignment
- Descriptor generation with the configured model (Dlib by default)

The model is held by a process-wide ModelHandle that is initialized once
at startup and never mutated afterwards.
"""
import numpy as np
import cv2
from PIL import Image, UnidentifiedImageError
from pathlib import Path
from typing import Union
import logging

from faceauth.config import (
    FACE_RECOGNITION_MODEL,
    FACE_DETECTOR_BACKEND,
    MAX_IMAGE_SIZE,
    DESCRIPTOR_DIM
)
from faceauth.descriptor import as_descriptor
from faceauth.exceptions import ExtractionFailure, InvalidInput, ModelNotInitialized

logger = logging.getLogger(__name__)


class ModelHandle:
    """
    Read-only handle on the loaded recognition model.

    initialize() must be called once before serving requests.
    """

    def __init__(
        self,
        model_name: str = FACE_RECOGNITION_MODEL,
        detector_backend: str = FACE_DETECTOR_BACKEND,
        descriptor_dim: int = DESCRIPTOR_DIM
    ):
        self.model_name = model_name
        self.detector_backend = detector_backend
        self.descriptor_dim = descriptor_dim
        self._model = None

    @property
    def is_initialized(self) -> bool:
        return self._model is not None

    def initialize(self) -> None:
        """Load the model. Calling it again is a no-op."""
        if self.is_initialized:
            return

        from deepface import DeepFace

        logger.info(f"Loading {self.model_name} model...")
        self._model = DeepFace.build_model(model_name=self.model_name)
        logger.info(f"{self.model_name} model loaded successfully")

    def ensure_initialized(self) -> None:
        if not self.is_initialized:
            raise ModelNotInitialized(f"{self.model_name} model has not been initialized")


class DescriptorExtractor:
    """
    Converts an image file into a descriptor.

    Raises a distinct ExtractionFailure when no face can be found so that
    callers never confuse it with a verification no-match.
    """

    def __init__(self, handle: ModelHandle):
        self.handle = handle

    def preprocess_image(self, image_path: Union[str, Path]) -> np.ndarray:
        """
        Load an image file into a BGR numpy array.

        Steps:
        1. Load image from disk
        2. Convert to RGB
        3. Resize if too large (preserving aspect ratio)
        4. Convert to BGR numpy array (DeepFace expects OpenCV channel order)

        Raises:
            InvalidInput: If the file is not a readable image
        """
        try:
            with Image.open(image_path) as image:
                # Convert to RGB (handles PNG with alpha, grayscale, etc.)
                if image.mode != "RGB":
                    image = image.convert("RGB")

                if image.size[0] > MAX_IMAGE_SIZE[0] or image.size[1] > MAX_IMAGE_SIZE[1]:
                    image.thumbnail(MAX_IMAGE_SIZE, Image.Resampling.LANCZOS)
                    logger.debug(f"Image resized to {image.size}")

                img_array = np.array(image)
        except (UnidentifiedImageError, OSError) as e:
            logger.error(f"Image preprocessing failed: {e}")
            raise InvalidInput(f"Failed to read image: {e}")

        return cv2.cvtColor(img_array, cv2.COLOR_RGB2BGR)

    def generate_descriptor(self, img_array: np.ndarray) -> np.ndarray:
        """
        Generate the face descriptor for a preprocessed image.

        Raises:
            ExtractionFailure: If no face is detected or the model returns nothing
        """
        self.handle.ensure_initialized()

        from deepface import DeepFace

        try:
            representations = DeepFace.represent(
                img_path=img_array,
                model_name=self.handle.model_name,
                detector_backend=self.handle.detector_backend,
                enforce_detection=True,
                align=True
            )
        except ValueError as e:
            # DeepFace signals "face could not be detected" with ValueError
            logger.warning(f"Face detection failed: {e}")
            raise ExtractionFailure("No face detected in the provided image") from e

        if not representations or representations[0].get("embedding") is None:
            raise ExtractionFailure("Model returned no descriptor for the provided image")

        if len(representations) > 1:
            logger.info(f"{len(representations)} faces detected, using the first")

        try:
            return as_descriptor(representations[0]["embedding"], dim=self.handle.descriptor_dim)
        except InvalidInput as e:
            raise ExtractionFailure(f"Model produced an invalid descriptor: {e.message}") from e

    def extract(self, image_path: Union[str, Path]) -> np.ndarray:
        """Complete pipeline: image file -> descriptor."""
        img_array = self.preprocess_image(image_path)
        return self.generate_descriptor(img_array)
