import boto3
from botocore.exceptions import BotoCoreError, ClientError
from app.config import settings
from app.core.exceptions import ExternalServiceError
from dataclasses import dataclass
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Rekognition rejects images in which it cannot find a face with these codes
_NO_FACE_ERRORS = {"InvalidParameterException", "InvalidImageFormatException"}


@dataclass
class FaceMatchResult:
    is_match: bool
    score: float


class FaceMatcher:
    """Face similarity through AWS Rekognition CompareFaces."""

    def __init__(self, client=None, threshold: Optional[float] = None):
        if client is None:
            client = boto3.client(
                "rekognition",
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=settings.aws_region
            )
        self.client = client
        self.threshold = settings.face_match_threshold if threshold is None else threshold

    def similarity(self, source: bytes, target: bytes) -> float:
        """Best similarity (0-100) of the face in source among the faces in target"""
        try:
            response = self.client.compare_faces(
                SourceImage={"Bytes": source},
                TargetImage={"Bytes": target},
                SimilarityThreshold=0
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in _NO_FACE_ERRORS:
                logger.info(f"No comparable face found: {code}")
                return 0.0
            logger.error(f"Rekognition compare_faces failed: {str(e)}")
            raise ExternalServiceError("Face comparison service failed")
        except BotoCoreError as e:
            logger.error(f"Rekognition unreachable: {str(e)}")
            raise ExternalServiceError("Face comparison service unreachable")

        matches = response.get("FaceMatches") or []
        return max((m.get("Similarity") or 0.0 for m in matches), default=0.0)

    def compare(self, source: bytes, target: bytes) -> FaceMatchResult:
        score = self.similarity(source, target)
        return FaceMatchResult(is_match=score >= self.threshold, score=score)


_matcher: Optional[FaceMatcher] = None


def get_face_matcher() -> FaceMatcher:
    global _matcher
    if _matcher is None:
        _matcher = FaceMatcher()
    return _matcher
