import base64
import logging
from dataclasses import dataclass, field

import httpx

from app.config import settings
from app.models.document import TAG_NAME_MAX_LENGTH
from app.services.document_storage import storage
from app.services.document_tag import normalize_tag_name

logger = logging.getLogger(__name__)

# (substring in the lowercased file name, tags it implies)
_FILE_NAME_TAG_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("invoice", ("invoice",)),
    ("receipt", ("receipt",)),
    ("contract", ("contract",)),
    ("tax", ("tax-document",)),
    ("payroll", ("payroll",)),
    ("w2", ("tax-form", "w2")),
    ("1099", ("tax-form", "1099")),
    ("financial", ("financial-statement",)),
    ("report", ("report",)),
)


class ClassifierNotConfigured(RuntimeError):
    pass


@dataclass
class ClassificationResult:
    extracted_text: str | None = None
    tags: list[str] = field(default_factory=list)
    # None means unscored.
    confidence: float | None = None


def categorize_by_file_name(file_name: str) -> list[str]:
    lower_name = file_name.lower()
    tags: list[str] = []
    for needle, implied in _FILE_NAME_TAG_RULES:
        if needle in lower_name:
            for tag in implied:
                if tag not in tags:
                    tags.append(tag)
    return tags


def clamp_confidence(value) -> float | None:
    if value is None:
        return None
    return min(max(float(value), 0.0), 1.0)


class DocumentClassifier:
    @staticmethod
    def is_configured() -> bool:
        return bool(settings.ai_analysis_url)

    @staticmethod
    def supports(mime_type: str) -> bool:
        mime = mime_type.lower()
        return "pdf" in mime or "image" in mime

    @staticmethod
    def classify(
        storage_path: str, mime_type: str, original_file_name: str
    ) -> ClassificationResult | None:
        """Extract text and suggest tags for PDFs and images.

        PDFs are tagged from their file name and left unscored. Images are sent
        to the configured analysis endpoint. Returns None for other MIME types.
        Raises on any collaborator failure; callers treat that as "no metadata".
        """
        mime = mime_type.lower()
        if "image" in mime:
            return DocumentClassifier._analyze_image(storage_path, mime_type)
        if "pdf" in mime:
            return ClassificationResult(
                extracted_text=None,
                tags=categorize_by_file_name(original_file_name),
                confidence=None,
            )
        return None

    @staticmethod
    def _analyze_image(storage_path: str, mime_type: str) -> ClassificationResult:
        if not DocumentClassifier.is_configured():
            raise ClassifierNotConfigured(
                "AI analysis is not configured. Set AI_ANALYSIS_URL."
            )
        encoded = base64.b64encode(storage.read_bytes(storage_path)).decode("ascii")
        headers = {"Content-Type": "application/json"}
        if settings.ai_analysis_api_key:
            headers["Authorization"] = f"Bearer {settings.ai_analysis_api_key}"
        with httpx.Client(timeout=settings.ai_analysis_timeout_seconds) as client:
            response = client.post(
                settings.ai_analysis_url,
                json={"image": encoded, "mime_type": mime_type},
                headers=headers,
            )
            response.raise_for_status()
            data = response.json()
        tags = []
        for suggested in data.get("suggested_tags") or []:
            tag = normalize_tag_name(str(suggested))
            if len(tag) > TAG_NAME_MAX_LENGTH:
                logger.warning(
                    "Dropping suggested tag longer than %d characters",
                    TAG_NAME_MAX_LENGTH,
                )
                continue
            if tag:
                tags.append(tag)
        return ClassificationResult(
            extracted_text=data.get("extracted_text") or None,
            tags=tags,
            confidence=clamp_confidence(data.get("confidence")),
        )


classifier = DocumentClassifier()
